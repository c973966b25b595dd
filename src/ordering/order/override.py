"""Administrative status override.

A manual escape hatch: an administrator may move any non-terminal order
to any other status. No capture, void or refund is performed, so the
payment can end up disagreeing with the status (say, ``pending`` with
nothing captured). Such overrides are flagged on the order and logged
at warning level for follow-up in the payment processor's dashboard.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Principal, get_policy
from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class OverrideOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    note = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class OverrideOrderStatusHandler:
    @handle(OverrideOrderStatus)
    def override_status(self, command):
        principal = Principal.from_command(command)
        get_policy().require_admin(principal)

        try:
            target = OrderStatus(command.status)
        except ValueError as exc:
            raise ValidationError(
                {"status": [f"Unknown status {command.status!r}; expected one of {[s.value for s in OrderStatus]}"]}
            ) from exc

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        in_sync = order.override_status(target, overridden_by=principal.id, note=command.note)
        repo.add(order)

        if in_sync:
            logger.info(
                "Order status overridden",
                order_id=str(order.id),
                previous_status=previous,
                new_status=target.value,
                admin_id=principal.id,
            )
        else:
            logger.warning(
                "Order status overridden without matching payment action",
                order_id=str(order.id),
                previous_status=previous,
                new_status=target.value,
                payment_status=order.payment_status,
                admin_id=principal.id,
            )
        return in_sync
