"""Chef aggregate: the seller side of the marketplace.

A chef's id is the seller's principal id. The chef owns a payout account
at the payment processor; orders can only be accepted (and funds
captured) while that account is enabled for receiving charges. An
administrator can suspend a chef, which closes their kitchen to new
checkouts until they are reinstated.
"""

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from ordering.domain import ordering
from ordering.kitchen.events import (
    ChefActivityChanged,
    ChefContactUpdated,
    ChefRegistered,
    PayoutAccountLinked,
    PayoutStatusChanged,
)
from ordering.utils.clock import utcnow


@ordering.aggregate
class Chef:
    name = String(required=True, max_length=150)
    email = String(max_length=254)
    phone = String(max_length=30)
    payout_account_id = String(max_length=255)
    charges_enabled = Boolean(default=False)
    active = Boolean(default=True)
    registered_at = DateTime()

    @classmethod
    def register(cls, chef_id, name, email=None, phone=None):
        now = utcnow()
        chef = cls(
            id=str(chef_id),
            name=name,
            email=email,
            phone=phone,
            charges_enabled=False,
            active=True,
            registered_at=now,
        )
        chef.raise_(
            ChefRegistered(
                chef_id=str(chef.id),
                name=name,
                email=email,
                registered_at=now,
            )
        )
        return chef

    @property
    def is_onboarded(self) -> bool:
        """The chef has a payout account, whether or not it can receive funds yet."""
        return bool(self.payout_account_id)

    @property
    def can_receive_funds(self) -> bool:
        return self.is_onboarded and bool(self.charges_enabled)

    def update_contact(self, name=None, email=None, phone=None):
        if name is not None:
            self.name = name
        if email is not None:
            self.email = email
        if phone is not None:
            self.phone = phone

        self.raise_(
            ChefContactUpdated(
                chef_id=str(self.id),
                name=self.name,
                email=self.email,
                phone=self.phone,
            )
        )

    def link_payout_account(self, payout_account_id):
        if not payout_account_id:
            raise ValidationError({"payout_account_id": ["Payout account is required"]})

        if payout_account_id != self.payout_account_id:
            self.payout_account_id = payout_account_id
            self.charges_enabled = False
            self.raise_(
                PayoutAccountLinked(
                    chef_id=str(self.id),
                    payout_account_id=payout_account_id,
                )
            )

    def record_payout_status(self, charges_enabled):
        """Record the processor's answer; only a change raises an event."""
        if not self.payout_account_id:
            raise ValidationError({"payout_account_id": ["No payout account linked"]})

        enabled = bool(charges_enabled)
        if enabled == bool(self.charges_enabled):
            return False

        self.charges_enabled = enabled
        self.raise_(
            PayoutStatusChanged(
                chef_id=str(self.id),
                payout_account_id=self.payout_account_id,
                charges_enabled=enabled,
            )
        )
        return True

    def set_active(self, active, changed_by, note=None):
        """Suspend or reinstate the kitchen. Returns whether anything changed."""
        active = bool(active)
        if active == bool(self.active):
            return False

        self.active = active
        self.raise_(
            ChefActivityChanged(
                chef_id=str(self.id),
                active=active,
                changed_by=str(changed_by),
                note=note,
                changed_at=utcnow(),
            )
        )
        return True
