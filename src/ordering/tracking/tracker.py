"""Read side of order tracking: what buyers and chefs see.

Everything here reads projections (plus the Chef aggregate for contact
details); nothing mutates state.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.kitchen.chef import Chef
from ordering.order.order import ACTIVE_STATUSES, OrderStatus
from ordering.projections.order_detail import OrderDetail
from ordering.projections.order_timeline import OrderTimeline

_STATUS_DESCRIPTIONS = {
    OrderStatus.REQUESTED.value: "Waiting for chef approval",
    OrderStatus.PENDING.value: "Chef approved, preparing your order",
    OrderStatus.READY.value: "Your order is ready for pickup",
    OrderStatus.COMPLETED.value: "Order picked up",
    OrderStatus.REJECTED.value: "The chef could not take this order",
    OrderStatus.CANCELLED.value: "Order cancelled",
}

_ACTIVE_VALUES = frozenset(status.value for status in ACTIVE_STATUSES)


def describe_status(status) -> str:
    """Buyer-facing text for an order status."""
    value = status.value if isinstance(status, OrderStatus) else str(status)
    return _STATUS_DESCRIPTIONS.get(value, value)


@dataclass
class SellerContact:
    seller_id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None


@dataclass
class HistoryEntry:
    event_type: str
    status: str
    description: str
    actor_id: str | None
    occurred_at: datetime


@dataclass
class OrderSnapshot:
    order_id: str
    buyer_id: str
    seller_id: str
    status: str
    status_description: str
    items: list[dict]
    total_cents: int
    platform_fee_cents: int
    seller_net_cents: int | None
    currency: str
    pickup_at: datetime | None
    payment_status: str | None
    payment_redirect: str | None
    payment_in_sync: bool
    gateway_payment_status: str | None
    reason: str | None
    created_at: datetime | None
    expires_at: datetime | None
    updated_at: datetime | None
    seller: SellerContact | None = None
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status in _ACTIVE_VALUES

    def to_dict(self) -> dict:
        return asdict(self)


def _seller_contact(seller_id) -> SellerContact | None:
    try:
        chef = current_domain.repository_for(Chef).get(str(seller_id))
    except ObjectNotFoundError:
        return None
    return SellerContact(seller_id=str(chef.id), name=chef.name, email=chef.email, phone=chef.phone)


def _snapshot(detail: OrderDetail, with_history: bool = True) -> OrderSnapshot:
    items = json.loads(detail.items) if detail.items else []
    return OrderSnapshot(
        order_id=str(detail.order_id),
        buyer_id=str(detail.buyer_id),
        seller_id=str(detail.seller_id),
        status=detail.status,
        status_description=describe_status(detail.status),
        items=[
            {
                "dish_id": line.get("dish_id"),
                "dish_name": line.get("dish_name"),
                "quantity": line.get("quantity"),
                "unit_price_cents": line.get("unit_price_cents"),
                "line_total_cents": (line.get("unit_price_cents") or 0) * (line.get("quantity") or 0),
            }
            for line in items
        ],
        total_cents=detail.total_cents,
        platform_fee_cents=detail.platform_fee_cents,
        seller_net_cents=detail.seller_net_cents,
        currency=detail.currency,
        pickup_at=detail.pickup_at,
        payment_status=detail.payment_status,
        payment_redirect=detail.payment_redirect,
        payment_in_sync=bool(detail.payment_in_sync),
        gateway_payment_status=detail.gateway_payment_status,
        reason=detail.reason,
        created_at=detail.created_at,
        expires_at=detail.expires_at,
        updated_at=detail.updated_at,
        seller=_seller_contact(detail.seller_id),
        history=order_history(detail.order_id) if with_history else [],
    )


def order_history(order_id) -> list[HistoryEntry]:
    """Timeline entries for an order, oldest first."""
    entries = (
        current_domain.repository_for(OrderTimeline)
        ._dao.query.filter(order_id=str(order_id))
        .order_by("occurred_at")
        .limit(None)
        .all()
        .items
    )
    return [
        HistoryEntry(
            event_type=entry.event_type,
            status=entry.status,
            description=entry.description,
            actor_id=str(entry.actor_id) if entry.actor_id else None,
            occurred_at=entry.occurred_at,
        )
        for entry in entries
    ]


def get_order(order_id) -> OrderSnapshot:
    """The order with its line items, the chef's contact details and history.

    Raises ``ObjectNotFoundError`` for an unknown order.
    """
    detail = current_domain.repository_for(OrderDetail).get(str(order_id))
    return _snapshot(detail)


def get_active_order(buyer_id) -> OrderSnapshot | None:
    """The buyer's most recent order that is still in progress, if any."""
    newest = (
        current_domain.repository_for(OrderDetail)
        ._dao.query.filter(buyer_id=str(buyer_id), status__in=sorted(_ACTIVE_VALUES))
        .order_by("-created_at")
        .limit(1)
        .all()
        .first
    )
    if newest is None:
        return None
    return _snapshot(newest)


def orders_for_seller(seller_id, statuses=None) -> list[OrderSnapshot]:
    """The chef's dashboard queue, newest first, optionally filtered by status."""
    query = current_domain.repository_for(OrderDetail)._dao.query.filter(seller_id=str(seller_id))
    if statuses:
        wanted = sorted({status.value if isinstance(status, OrderStatus) else str(status) for status in statuses})
        query = query.filter(status__in=wanted)
    rows = query.order_by("-created_at").limit(None).all().items
    return [_snapshot(row, with_history=False) for row in rows]
