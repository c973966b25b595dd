"""Chef moderation: administrators open and close kitchens.

A suspended chef keeps their menu and their open orders, but buyers can no
longer check out with them. Approving a new chef's application is the same
switch flipped on.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Principal, get_policy
from ordering.domain import ordering
from ordering.kitchen.chef import Chef

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Chef")
class SetChefActive:
    chef_id = Identifier(required=True)
    active = Boolean(required=True)
    note = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Chef)
class ChefModerationHandler:
    @handle(SetChefActive)
    def set_active(self, command):
        principal = Principal.from_command(command)
        get_policy().require_admin(principal)

        repo = current_domain.repository_for(Chef)
        chef = repo.get(command.chef_id)
        if chef.set_active(command.active, changed_by=principal.id, note=command.note):
            repo.add(chef)
            logger.info(
                "Chef reinstated" if chef.active else "Chef suspended",
                chef_id=str(chef.id),
                admin_id=principal.id,
            )
        return bool(chef.active)
