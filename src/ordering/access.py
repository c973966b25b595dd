"""Role checks for order transitions.

The identity provider in front of the service hands us a principal id and
role flags; this module is the single place that turns them into yes/no
answers. The policy is swappable so tests and deployments can inject
their own allow-lists.
"""

from dataclasses import dataclass
from enum import Enum

from ordering.errors import ForbiddenActorError
from ordering.settings import get_settings


class Role(Enum):
    ADMIN = "admin"
    SELLER = "seller"
    BUYER = "buyer"


@dataclass(frozen=True)
class Principal:
    id: str
    email: str | None = None
    is_admin: bool = False
    is_seller: bool = False

    @classmethod
    def from_command(cls, command) -> "Principal":
        return cls(
            id=str(command.actor_id),
            email=command.actor_email,
            is_admin=bool(command.actor_is_admin),
        )


SYSTEM = Principal(id="system", is_admin=True)


class AccessPolicy:
    def __init__(self, admin_emails: frozenset[str] | None = None) -> None:
        self.admin_emails = frozenset(e.lower() for e in admin_emails) if admin_emails is not None else None

    def _admin_emails(self) -> frozenset[str]:
        if self.admin_emails is not None:
            return self.admin_emails
        return get_settings().admin_emails

    def has_role(self, principal: Principal, role: Role) -> bool:
        if principal.is_admin or (principal.email and principal.email.lower() in self._admin_emails()):
            return True
        if role == Role.SELLER:
            return principal.is_seller
        if role == Role.BUYER:
            return bool(principal.id)
        return False

    def is_admin(self, principal: Principal) -> bool:
        return self.has_role(principal, Role.ADMIN)

    def require_party(self, principal: Principal, owner_id: str | None, party: str) -> None:
        """Allow the owning party or an admin; raise otherwise."""
        if self.is_admin(principal):
            return
        if owner_id is not None and str(owner_id) == str(principal.id):
            return
        raise ForbiddenActorError(f"Only the {party} may do this")

    def require_role(self, principal: Principal, role: Role) -> None:
        if not self.has_role(principal, role):
            raise ForbiddenActorError(f"Only a {role.value} may do this")

    def require_admin(self, principal: Principal) -> None:
        if not self.is_admin(principal):
            raise ForbiddenActorError("Only administrators may do this")


_current_policy: AccessPolicy | None = None


def get_policy() -> AccessPolicy:
    global _current_policy
    if _current_policy is None:
        _current_policy = AccessPolicy()
    return _current_policy


def set_policy(policy: AccessPolicy) -> None:
    global _current_policy
    _current_policy = policy


def reset_policy() -> None:
    global _current_policy
    _current_policy = None
