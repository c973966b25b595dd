"""Payment reports from the processor's webhooks.

The processor tells us when a buyer completes the hosted checkout page and
when a payment intent succeeds, fails or is cancelled. These reports never
move money or change the order status; they are recorded on the order so
disagreements with our own bookkeeping show up on the dashboard.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RecordGatewayPaymentStatus:
    order_id = Identifier(required=True)
    gateway_status = String(required=True, max_length=50)  # requires_capture, succeeded, canceled, failed
    payment_intent_id = String(max_length=255)


@ordering.command_handler(part_of=Order)
class GatewayReportHandler:
    @handle(RecordGatewayPaymentStatus)
    def record_gateway_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.record_gateway_status(command.gateway_status, payment_intent_id=command.payment_intent_id):
            logger.info(
                "Repeated or stale payment report ignored",
                order_id=str(order.id),
                gateway_status=command.gateway_status,
            )
            return bool(order.payment_in_sync)

        repo.add(order)
        if order.payment_in_sync:
            logger.info("Payment report recorded", order_id=str(order.id), gateway_status=command.gateway_status)
        else:
            logger.warning(
                "Payment report disagrees with order",
                order_id=str(order.id),
                status=order.status,
                payment_status=order.payment_status,
                gateway_status=command.gateway_status,
            )
        return bool(order.payment_in_sync)
