"""Order timeline: append-only history of everything that happened to an order."""

import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String
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
)
from ordering.order.order import Order, OrderStatus
from ordering.order.pricing import format_money


@ordering.projection
class OrderTimeline:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    event_type = String(required=True)
    status = String(required=True)
    description = String(required=True, max_length=500)
    actor_id = Identifier()
    occurred_at = DateTime(required=True)


def _add_entry(order_id, event_type, status, description, occurred_at, actor_id=None):
    current_domain.repository_for(OrderTimeline).add(
        OrderTimeline(
            entry_id=str(uuid.uuid4()),
            order_id=order_id,
            event_type=event_type,
            status=status,
            description=description,
            actor_id=actor_id,
            occurred_at=occurred_at,
        )
    )


@ordering.projector(projector_for=OrderTimeline, aggregates=[Order])
class OrderTimelineProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        _add_entry(
            event.order_id,
            "OrderPlaced",
            OrderStatus.REQUESTED.value,
            f"Order placed for {format_money(event.total_cents, event.currency or 'USD')}",
            event.created_at,
            actor_id=event.buyer_id,
        )

    @on(PaymentAuthorized)
    def on_payment_authorized(self, event):
        _add_entry(
            event.order_id,
            "PaymentAuthorized",
            OrderStatus.REQUESTED.value,
            "Payment authorized, waiting for chef approval",
            event.authorized_at,
        )

    @on(OrderAccepted)
    def on_order_accepted(self, event):
        _add_entry(
            event.order_id,
            "OrderAccepted",
            OrderStatus.PENDING.value,
            "Chef accepted the order and the payment was captured",
            event.accepted_at,
            actor_id=event.accepted_by,
        )

    @on(OrderRejected)
    def on_order_rejected(self, event):
        description = "Order expired before the chef responded" if event.expired else "Chef declined the order"
        if event.refund_id:
            description = f"{description} and the payment was refunded"
        if event.reason:
            description = f"{description}: {event.reason}"
        _add_entry(
            event.order_id,
            "OrderRejected",
            OrderStatus.REJECTED.value,
            description,
            event.rejected_at,
            actor_id=event.rejected_by,
        )

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        description = "Order cancelled and refunded" if event.refund_id else "Order cancelled"
        if event.reason:
            description = f"{description}: {event.reason}"
        _add_entry(
            event.order_id,
            "OrderCancelled",
            OrderStatus.CANCELLED.value,
            description,
            event.cancelled_at,
            actor_id=event.cancelled_by,
        )

    @on(OrderMarkedReady)
    def on_order_marked_ready(self, event):
        _add_entry(
            event.order_id,
            "OrderMarkedReady",
            OrderStatus.READY.value,
            "Order is ready for pickup",
            event.ready_at,
            actor_id=event.marked_by,
        )

    @on(OrderCompleted)
    def on_order_completed(self, event):
        _add_entry(
            event.order_id,
            "OrderCompleted",
            OrderStatus.COMPLETED.value,
            "Order picked up",
            event.completed_at,
            actor_id=event.completed_by,
        )

    @on(OrderStatusOverridden)
    def on_status_overridden(self, event):
        description = f"Status changed by an administrator from {event.previous_status} to {event.new_status}"
        if not event.payment_in_sync:
            description = f"{description} (payment not adjusted)"
        _add_entry(
            event.order_id,
            "OrderStatusOverridden",
            event.new_status,
            description,
            event.overridden_at,
            actor_id=event.overridden_by,
        )
