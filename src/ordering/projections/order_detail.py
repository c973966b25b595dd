"""Order detail: full order view for tracking pages and the chef dashboard."""

import json

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCompleted,
    OrderMarkedReady,
    OrderPlaced,
    OrderRejected,
    OrderStatusOverridden,
    PaymentAuthorized,
    PaymentStatusReported,
)
from ordering.order.order import Order, OrderStatus, PaymentStatus


@ordering.projection
class OrderDetail:
    order_id = Identifier(identifier=True, required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    status = String(required=True)
    items = Text()  # JSON: list of line item dicts
    item_count = Integer(default=0)
    total_cents = Integer(default=0)
    platform_fee_cents = Integer(default=0)
    seller_net_cents = Integer()
    currency = String(default="USD")
    pickup_at = DateTime()
    payment_status = String()
    payment_redirect = String(max_length=2048)
    payment_in_sync = Boolean(default=True)
    gateway_payment_status = String(max_length=50)
    reason = String(max_length=500)
    created_at = DateTime()
    expires_at = DateTime()
    updated_at = DateTime()


def _update(order_id, **changes):
    repo = current_domain.repository_for(OrderDetail)
    detail = repo.get(str(order_id))
    for name, value in changes.items():
        setattr(detail, name, value)
    repo.add(detail)


@ordering.projector(projector_for=OrderDetail, aggregates=[Order])
class OrderDetailProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        lines = json.loads(event.items) if isinstance(event.items, str) else (event.items or [])
        current_domain.repository_for(OrderDetail).add(
            OrderDetail(
                order_id=event.order_id,
                buyer_id=event.buyer_id,
                seller_id=event.seller_id,
                status=OrderStatus.REQUESTED.value,
                items=event.items,
                item_count=sum(line.get("quantity", 0) for line in lines),
                total_cents=event.total_cents,
                platform_fee_cents=event.platform_fee_cents,
                currency=event.currency or "USD",
                pickup_at=event.pickup_at,
                payment_status=PaymentStatus.REQUIRES_PAYMENT_METHOD.value,
                created_at=event.created_at,
                expires_at=event.expires_at,
                updated_at=event.created_at,
            )
        )

    @on(PaymentAuthorized)
    def on_payment_authorized(self, event):
        _update(
            event.order_id,
            payment_status=PaymentStatus.REQUIRES_CAPTURE.value,
            payment_redirect=event.redirect_url,
            updated_at=event.authorized_at,
        )

    @on(OrderAccepted)
    def on_order_accepted(self, event):
        _update(
            event.order_id,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.SUCCEEDED.value,
            seller_net_cents=event.seller_net_cents,
            payment_in_sync=True,
            updated_at=event.accepted_at,
        )

    @on(OrderRejected)
    def on_order_rejected(self, event):
        _update(
            event.order_id,
            status=OrderStatus.REJECTED.value,
            payment_status=(PaymentStatus.REFUNDED if event.refund_id else PaymentStatus.CANCELED).value,
            reason=event.reason,
            payment_in_sync=True,
            updated_at=event.rejected_at,
        )

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        _update(
            event.order_id,
            status=OrderStatus.CANCELLED.value,
            payment_status=(PaymentStatus.REFUNDED if event.refund_id else PaymentStatus.CANCELED).value,
            reason=event.reason,
            payment_in_sync=True,
            updated_at=event.cancelled_at,
        )

    @on(OrderMarkedReady)
    def on_order_marked_ready(self, event):
        _update(event.order_id, status=OrderStatus.READY.value, updated_at=event.ready_at)

    @on(OrderCompleted)
    def on_order_completed(self, event):
        _update(event.order_id, status=OrderStatus.COMPLETED.value, updated_at=event.completed_at)

    @on(OrderStatusOverridden)
    def on_status_overridden(self, event):
        _update(
            event.order_id,
            status=event.new_status,
            reason=event.note,
            payment_in_sync=event.payment_in_sync,
            updated_at=event.overridden_at,
        )

    @on(PaymentStatusReported)
    def on_payment_status_reported(self, event):
        _update(
            event.order_id,
            gateway_payment_status=event.gateway_status,
            payment_in_sync=event.payment_in_sync,
        )
