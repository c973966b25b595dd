"""Order rejection by the chef, and release of the buyer's payment.

A rejected order never keeps the buyer's money: an uncaptured hold is
voided, and a capture (possible only after an admin moved an accepted
order back to ``requested``) is refunded.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Principal, get_policy
from ordering.domain import ordering
from ordering.errors import PaymentCancellationError
from ordering.order.order import Order, OrderStatus
from payments.gateway import get_gateway

logger = structlog.get_logger(__name__)

DEFAULT_REJECTION_REASON = "Chef declined the order"


@ordering.command(part_of="Order")
class RejectOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


def void_authorization(order: Order) -> None:
    """Release the uncaptured hold on the buyer's card, if there is one."""
    if not order.has_live_authorization:
        return

    result = get_gateway().cancel(
        order.payment_authorization_id,
        idempotency_key=f"order-void-{order.id}",
    )
    if not result.success:
        logger.warning(
            "Payment authorization could not be voided",
            order_id=str(order.id),
            reason=result.failure_reason,
        )
        raise PaymentCancellationError(result.failure_reason)


def refund_capture(order: Order, reason=None) -> str:
    """Refund the full captured amount and return the refund id."""
    result = get_gateway().refund(
        order.payment_capture_id,
        amount_cents=order.total_cents,
        idempotency_key=f"order-refund-{order.id}",
        reason=reason,
    )
    if not result.success:
        logger.warning(
            "Refund failed, order left unchanged",
            order_id=str(order.id),
            reason=result.failure_reason,
        )
        raise PaymentCancellationError(result.failure_reason or "Refund failed")
    return result.refund_id


def release_payment(order: Order, reason=None) -> str | None:
    """Give the buyer's money back: refund a capture, otherwise void the hold.

    Returns the refund id when a capture was refunded.
    """
    if order.payment_capture_id:
        return refund_capture(order, reason)
    void_authorization(order)
    return None


@ordering.command_handler(part_of=Order)
class RejectOrderHandler:
    @handle(RejectOrder)
    def reject_order(self, command):
        principal = Principal.from_command(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        get_policy().require_party(principal, order.seller_id, "order's seller")
        reason = command.reason or DEFAULT_REJECTION_REASON
        order.assert_can_transition(OrderStatus.REJECTED)

        refund_id = release_payment(order, reason)
        order.reject(reason=reason, rejected_by=principal.id, refund_id=refund_id)
        repo.add(order)

        logger.info("Order rejected", order_id=str(order.id), reason=reason, refunded=refund_id is not None)
