"""Chef onboarding: registration, contact details and payout readiness.

Payout readiness reaches us two ways: the chef asks for a refresh, or the
payment processor calls back when the connected account changes
(``SyncPayoutAccount``, dispatched from the webhook endpoint).
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import PayoutOnboardingError
from ordering.kitchen.chef import Chef
from ordering.settings import get_settings
from payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Chef")
class RegisterChef:
    chef_id = Identifier(required=True)
    name = String(required=True, max_length=150)
    email = String(max_length=254)
    phone = String(max_length=30)


@ordering.command(part_of="Chef")
class UpdateChefContact:
    chef_id = Identifier(required=True)
    name = String(max_length=150)
    email = String(max_length=254)
    phone = String(max_length=30)


@ordering.command(part_of="Chef")
class LinkPayoutAccount:
    """Attach the chef's payout account and check right away whether it can receive funds."""

    chef_id = Identifier(required=True)
    payout_account_id = String(required=True, max_length=255)


@ordering.command(part_of="Chef")
class RefreshPayoutStatus:
    """Ask the payment processor whether the chef's account can receive funds."""

    chef_id = Identifier(required=True)


@ordering.command(part_of="Chef")
class StartPayoutOnboarding:
    """Open the processor's hosted onboarding page, creating the payout account if needed."""

    chef_id = Identifier(required=True)


@ordering.command(part_of="Chef")
class SyncPayoutAccount:
    """Apply the processor's view of a connected account.

    ``chef_id`` comes from the account's metadata when the processor has it;
    otherwise the chef is found by payout account.
    """

    payout_account_id = String(required=True, max_length=255)
    charges_enabled = Boolean(default=False)
    chef_id = Identifier()


def _refresh(chef):
    enabled = get_gateway().is_destination_enabled(chef.payout_account_id)
    if chef.record_payout_status(enabled):
        logger.info(
            "Payout status changed",
            chef_id=str(chef.id),
            payout_account_id=chef.payout_account_id,
            charges_enabled=enabled,
        )
    return enabled


def _chef_for_account(repo, command):
    if command.chef_id:
        try:
            return repo.get(command.chef_id)
        except ObjectNotFoundError:
            logger.warning("Payout account names an unknown chef", chef_id=str(command.chef_id))
    return repo._dao.query.filter(payout_account_id=command.payout_account_id).limit(1).all().first


@ordering.command_handler(part_of=Chef)
class ChefOnboardingHandler:
    @handle(RegisterChef)
    def register_chef(self, command):
        chef = Chef.register(
            chef_id=command.chef_id,
            name=command.name,
            email=command.email,
            phone=command.phone,
        )
        current_domain.repository_for(Chef).add(chef)
        return str(chef.id)

    @handle(UpdateChefContact)
    def update_contact(self, command):
        repo = current_domain.repository_for(Chef)
        chef = repo.get(command.chef_id)
        chef.update_contact(name=command.name, email=command.email, phone=command.phone)
        repo.add(chef)

    @handle(LinkPayoutAccount)
    def link_payout_account(self, command):
        repo = current_domain.repository_for(Chef)
        chef = repo.get(command.chef_id)
        chef.link_payout_account(command.payout_account_id)
        enabled = _refresh(chef)
        repo.add(chef)
        return enabled

    @handle(RefreshPayoutStatus)
    def refresh_payout_status(self, command):
        repo = current_domain.repository_for(Chef)
        chef = repo.get(command.chef_id)
        enabled = _refresh(chef)
        repo.add(chef)
        return enabled

    @handle(StartPayoutOnboarding)
    def start_payout_onboarding(self, command):
        settings = get_settings()
        repo = current_domain.repository_for(Chef)
        chef = repo.get(command.chef_id)

        result = get_gateway().create_onboarding_link(
            owner_ref=str(chef.id),
            refresh_url=settings.onboarding_refresh_url,
            return_url=settings.onboarding_return_url,
            account_id=chef.payout_account_id,
            email=chef.email,
        )
        if not result.success:
            logger.warning("Payout onboarding failed", chef_id=str(chef.id), reason=result.failure_reason)
            raise PayoutOnboardingError(result.failure_reason or None)

        chef.link_payout_account(result.account_id)
        repo.add(chef)
        return {"account_id": result.account_id, "url": result.url}

    @handle(SyncPayoutAccount)
    def sync_payout_account(self, command):
        repo = current_domain.repository_for(Chef)
        chef = _chef_for_account(repo, command)
        if chef is None:
            logger.info("No chef for payout account", payout_account_id=command.payout_account_id)
            return None

        chef.link_payout_account(command.payout_account_id)
        if chef.record_payout_status(command.charges_enabled):
            logger.info(
                "Payout status changed",
                chef_id=str(chef.id),
                payout_account_id=chef.payout_account_id,
                charges_enabled=bool(command.charges_enabled),
            )
        repo.add(chef)
        return str(chef.id)
