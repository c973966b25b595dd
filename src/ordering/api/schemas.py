"""Pydantic request/response schemas for the HomeChef ordering API.

These are external contracts, kept separate from the internal Protean
commands. Money is always integer cents.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Chefs and dishes
# ---------------------------------------------------------------------------
class RegisterChefRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    email: str | None = None
    phone: str | None = None
    chef_id: str | None = None  # Admins may register on behalf of a chef

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Auntie Mei's Kitchen",
                    "email": "mei@example.com",
                    "phone": "+1 555 0100",
                }
            ]
        }
    }


class UpdateChefContactRequest(BaseModel):
    name: str | None = Field(default=None, max_length=150)
    email: str | None = None
    phone: str | None = None


class LinkPayoutAccountRequest(BaseModel):
    payout_account_id: str = Field(min_length=1)


class ChefIdResponse(BaseModel):
    chef_id: str


class PayoutStatusResponse(BaseModel):
    chef_id: str
    charges_enabled: bool


class PayoutOnboardingResponse(BaseModel):
    chef_id: str
    payout_account_id: str
    url: str


class SetChefActiveRequest(BaseModel):
    active: bool
    note: str | None = Field(default=None, max_length=500)


class ChefActiveResponse(BaseModel):
    chef_id: str
    active: bool


class ChefResponse(BaseModel):
    chef_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    payout_account_id: str | None = None
    charges_enabled: bool = False
    active: bool = True


class ListDishRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    price_cents: int = Field(ge=1)
    description: str | None = None
    image_url: str | None = None
    chef_id: str | None = None  # Defaults to the caller

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Pork and chive dumplings (12)",
                    "price_cents": 1450,
                    "description": "Hand folded, pan fried",
                }
            ]
        }
    }


class ChangeDishPriceRequest(BaseModel):
    price_cents: int = Field(ge=1)


class SetDishAvailabilityRequest(BaseModel):
    available: bool


class DishIdResponse(BaseModel):
    dish_id: str


class DishResponse(BaseModel):
    dish_id: str
    chef_id: str
    name: str
    description: str | None = None
    price_cents: int
    image_url: str | None = None
    available: bool


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    dish_id: str
    quantity: int = Field(ge=1, default=1)


class SetCartQuantityRequest(BaseModel):
    quantity: int  # Zero or less removes the line


class CheckoutRequest(BaseModel):
    pickup_at: str = Field(description="ISO-8601 pickup time")
    success_url: str | None = None
    cancel_url: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "pickup_at": "2026-10-21T17:30:00Z",
                }
            ]
        }
    }


class CartIdResponse(BaseModel):
    cart_id: str


class CartItemResponse(BaseModel):
    dish_id: str
    dish_name: str | None = None
    seller_id: str
    unit_price_cents: int
    quantity: int


class CartResponse(BaseModel):
    cart_id: str
    buyer_id: str
    seller_id: str | None = None
    status: str
    items: list[CartItemResponse]
    total_cents: int


class CheckoutResponse(BaseModel):
    order_id: str
    payment_redirect: str | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class ReasonRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class OverrideStatusRequest(BaseModel):
    status: str
    note: str | None = Field(default=None, max_length=500)


class AcceptOrderResponse(BaseModel):
    status: str = "pending"
    capture_id: str


class OverrideStatusResponse(BaseModel):
    status: str
    payment_in_sync: bool


class OrderLineResponse(BaseModel):
    dish_id: str
    dish_name: str | None = None
    quantity: int
    unit_price_cents: int
    line_total_cents: int


class SellerContactResponse(BaseModel):
    seller_id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class HistoryEntryResponse(BaseModel):
    event_type: str
    status: str
    description: str
    actor_id: str | None = None
    occurred_at: datetime


class OrderResponse(BaseModel):
    order_id: str
    buyer_id: str
    seller_id: str
    status: str
    status_description: str
    items: list[OrderLineResponse]
    total_cents: int
    platform_fee_cents: int
    seller_net_cents: int | None = None
    currency: str
    pickup_at: datetime | None = None
    payment_status: str | None = None
    payment_redirect: str | None = None
    payment_in_sync: bool = True
    gateway_payment_status: str | None = None
    reason: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    updated_at: datetime | None = None
    seller: SellerContactResponse | None = None
    history: list[HistoryEntryResponse] = []


class ActiveOrderResponse(BaseModel):
    order: OrderResponse | None = None


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str
    message: str
    event_type: str | None = None
    payment_status: str | None = None
    occurred_at: datetime | None = None


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------
class ExpireOrdersRequest(BaseModel):
    as_of: datetime | None = None
    older_than_minutes: int | None = Field(default=None, ge=0)


class ExpireOrdersResponse(BaseModel):
    checked: int
    rejected: int
    failed: int = 0
