"""Order cancellation, by the buyer before acceptance or by the chef at any active stage.

Before acceptance the payment hold is voided. After acceptance the
captured amount is refunded through the gateway.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Principal, get_policy
from ordering.domain import ordering
from ordering.errors import ForbiddenActorError, InvalidTransitionError
from ordering.order.order import Order, OrderStatus
from ordering.order.rejection import release_payment

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        principal = Principal.from_command(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        is_admin = get_policy().is_admin(principal)
        is_seller = str(order.seller_id) == principal.id
        is_buyer = str(order.buyer_id) == principal.id
        if not (is_admin or is_seller or is_buyer):
            raise ForbiddenActorError("Only the buyer, the chef or an administrator may cancel this order")

        order.assert_can_transition(OrderStatus.CANCELLED)
        if is_buyer and not (is_admin or is_seller) and order.current_status != OrderStatus.REQUESTED:
            raise InvalidTransitionError("Orders can only be cancelled by the buyer before the chef accepts")

        refund_id = release_payment(order, command.reason)

        order.cancel(reason=command.reason, cancelled_by=principal.id, refund_id=refund_id)
        repo.add(order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_by=principal.id,
            refunded=refund_id is not None,
        )
