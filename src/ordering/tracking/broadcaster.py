"""Pushes a live status update for every Order event."""

import structlog
from protean.utils.mixins import handle

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
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.tracking.channel import StatusUpdate, get_channel
from ordering.tracking.tracker import describe_status
from ordering.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)


def _publish(event, status, payment_status=None, occurred_at=None):
    update = StatusUpdate(
        order_id=str(event.order_id),
        status=status,
        event_type=type(event).__name__,
        message=describe_status(status),
        payment_status=payment_status,
        occurred_at=as_utc(occurred_at) or utcnow(),
    )
    delivered = get_channel().publish(update)
    logger.debug("Order update published", order_id=update.order_id, status=status, delivered=delivered)


@ordering.event_handler(part_of=Order)
class OrderUpdateBroadcaster:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        _publish(
            event,
            OrderStatus.REQUESTED.value,
            PaymentStatus.REQUIRES_PAYMENT_METHOD.value,
            event.created_at,
        )

    @handle(PaymentAuthorized)
    def on_payment_authorized(self, event: PaymentAuthorized) -> None:
        _publish(event, OrderStatus.REQUESTED.value, PaymentStatus.REQUIRES_CAPTURE.value, event.authorized_at)

    @handle(OrderAccepted)
    def on_order_accepted(self, event: OrderAccepted) -> None:
        _publish(event, OrderStatus.PENDING.value, PaymentStatus.SUCCEEDED.value, event.accepted_at)

    @handle(OrderRejected)
    def on_order_rejected(self, event: OrderRejected) -> None:
        _publish(event, OrderStatus.REJECTED.value, PaymentStatus.CANCELED.value, event.rejected_at)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        payment_status = PaymentStatus.REFUNDED if event.refund_id else PaymentStatus.CANCELED
        _publish(event, OrderStatus.CANCELLED.value, payment_status.value, event.cancelled_at)

    @handle(OrderMarkedReady)
    def on_order_marked_ready(self, event: OrderMarkedReady) -> None:
        _publish(event, OrderStatus.READY.value, occurred_at=event.ready_at)

    @handle(OrderCompleted)
    def on_order_completed(self, event: OrderCompleted) -> None:
        _publish(event, OrderStatus.COMPLETED.value, occurred_at=event.completed_at)

    @handle(OrderStatusOverridden)
    def on_status_overridden(self, event: OrderStatusOverridden) -> None:
        _publish(event, event.new_status, occurred_at=event.overridden_at)
