"""Orders awaiting the chef's decision.

Holds one row per order currently in ``requested``. Rows are inserted when
an order is placed, or when an administrator moves an order back to
``requested``, and removed as soon as it leaves ``requested`` for any
other reason, so the expiry sweep only ever scans live candidates.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderPlaced,
    OrderRejected,
    OrderStatusOverridden,
)
from ordering.order.order import Order, OrderStatus
from ordering.projections.order_detail import OrderDetail


@ordering.projection
class AwaitingAcceptance:
    order_id = Identifier(identifier=True, required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    total_cents = Integer(default=0)
    created_at = DateTime()
    expires_at = DateTime()


def _remove(order_id):
    repo = current_domain.repository_for(AwaitingAcceptance)
    try:
        record = repo.get(str(order_id))
        repo._dao.delete(record)
    except ObjectNotFoundError:
        pass


def _requeue(order_id):
    """Put an order back in the queue with its original deadline."""
    detail = current_domain.repository_for(OrderDetail).get(str(order_id))
    current_domain.repository_for(AwaitingAcceptance).add(
        AwaitingAcceptance(
            order_id=detail.order_id,
            buyer_id=detail.buyer_id,
            seller_id=detail.seller_id,
            total_cents=detail.total_cents,
            created_at=detail.created_at,
            expires_at=detail.expires_at,
        )
    )


@ordering.projector(projector_for=AwaitingAcceptance, aggregates=[Order])
class AwaitingAcceptanceProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(AwaitingAcceptance).add(
            AwaitingAcceptance(
                order_id=event.order_id,
                buyer_id=event.buyer_id,
                seller_id=event.seller_id,
                total_cents=event.total_cents,
                created_at=event.created_at,
                expires_at=event.expires_at,
            )
        )

    @on(OrderAccepted)
    def on_order_accepted(self, event):
        _remove(event.order_id)

    @on(OrderRejected)
    def on_order_rejected(self, event):
        _remove(event.order_id)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        _remove(event.order_id)

    @on(OrderStatusOverridden)
    def on_status_overridden(self, event):
        if event.new_status == OrderStatus.REQUESTED.value:
            _requeue(event.order_id)
        else:
            _remove(event.order_id)
