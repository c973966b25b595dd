"""Order acceptance: the chef takes the order and the payment is captured.

Every check runs before the gateway is called, so a refused acceptance
never moves money. A capture that fails at the gateway leaves the order
in ``requested``, free to be retried or swept up by expiry.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Principal, get_policy
from ordering.domain import ordering
from ordering.errors import PaymentCaptureError, SellerNotOnboardedError
from ordering.kitchen.chef import Chef
from ordering.order.order import Order
from payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class AcceptOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


def _receiving_chef(seller_id) -> Chef:
    try:
        chef = current_domain.repository_for(Chef).get(str(seller_id))
    except ObjectNotFoundError as exc:
        raise SellerNotOnboardedError("Chef profile not found") from exc
    if not chef.can_receive_funds:
        raise SellerNotOnboardedError("Please complete payouts onboarding first")
    return chef


@ordering.command_handler(part_of=Order)
class AcceptOrderHandler:
    @handle(AcceptOrder)
    def accept_order(self, command):
        principal = Principal.from_command(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        get_policy().require_party(principal, order.seller_id, "order's seller")
        order.assert_can_accept()
        chef = _receiving_chef(order.seller_id)

        result = get_gateway().capture(
            order.payment_authorization_id,
            idempotency_key=f"order-capture-{order.id}",
        )
        if not result.success:
            logger.warning(
                "Payment capture failed, order stays requested",
                order_id=str(order.id),
                reason=result.failure_reason,
            )
            raise PaymentCaptureError(result.failure_reason)

        order.accept(
            capture_id=result.capture_id,
            accepted_by=principal.id,
            transfer_destination=chef.payout_account_id,
            transfer_id=result.transfer_id,
        )
        repo.add(order)

        logger.info(
            "Order accepted",
            order_id=str(order.id),
            capture_id=result.capture_id,
            platform_fee_cents=order.platform_fee_cents,
            seller_net_cents=order.seller_net_cents,
        )
        return result.capture_id
