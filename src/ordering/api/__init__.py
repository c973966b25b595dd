"""Ordering API package."""

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import (
    buyer_router,
    cart_router,
    chef_router,
    dish_router,
    maintenance_router,
    order_router,
    seller_router,
)

routers = [
    chef_router,
    dish_router,
    cart_router,
    order_router,
    buyer_router,
    seller_router,
    maintenance_router,
]

__all__ = ["register_exception_handlers", "routers"]
