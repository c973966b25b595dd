"""Marking an accepted order ready for pickup."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Principal, get_policy
from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class MarkOrderReady:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class MarkOrderReadyHandler:
    @handle(MarkOrderReady)
    def mark_ready(self, command):
        principal = Principal.from_command(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        get_policy().require_party(principal, order.seller_id, "order's seller")
        order.mark_ready(marked_by=principal.id)
        repo.add(order)
