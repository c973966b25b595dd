"""Application tests for chef onboarding and menu management."""

import pytest
from ordering.errors import ForbiddenActorError, PayoutOnboardingError
from ordering.kitchen.chef import Chef
from ordering.kitchen.dish import Dish
from ordering.kitchen.menu import ChangeDishPrice, ListDish, SetDishAvailability
from ordering.kitchen.moderation import SetChefActive
from ordering.kitchen.onboarding import (
    LinkPayoutAccount,
    RefreshPayoutStatus,
    RegisterChef,
    StartPayoutOnboarding,
    SyncPayoutAccount,
    UpdateChefContact,
)
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _chef(chef_id):
    return current_domain.repository_for(Chef).get(chef_id)


def _dish(dish_id):
    return current_domain.repository_for(Dish).get(dish_id)


class TestOnboarding:
    def test_register_uses_the_principal_id(self, chef_id):
        returned = current_domain.process(
            RegisterChef(chef_id=chef_id, name="Auntie Mei", email="mei@example.com"),
            asynchronous=False,
        )

        assert returned == chef_id
        chef = _chef(chef_id)
        assert chef.name == "Auntie Mei"
        assert not chef.is_onboarded
        assert not chef.can_receive_funds

    def test_link_enabled_payout_account(self, chef_id, register_chef):
        register_chef(chef_id, link=False)

        enabled = current_domain.process(
            LinkPayoutAccount(chef_id=chef_id, payout_account_id="acct_123"),
            asynchronous=False,
        )

        assert enabled is True
        chef = _chef(chef_id)
        assert chef.payout_account_id == "acct_123"
        assert chef.can_receive_funds

    def test_link_account_that_cannot_receive_funds_yet(self, chef_id, register_chef, gateway):
        register_chef(chef_id, link=False)
        gateway.set_destination_enabled("acct_pending", False)

        enabled = current_domain.process(
            LinkPayoutAccount(chef_id=chef_id, payout_account_id="acct_pending"),
            asynchronous=False,
        )

        assert enabled is False
        chef = _chef(chef_id)
        assert chef.is_onboarded
        assert not chef.can_receive_funds

    def test_refresh_picks_up_processor_changes(self, chef_id, register_chef, gateway):
        gateway.set_destination_enabled("acct_pending", False)
        register_chef(chef_id, payout_account_id="acct_pending")

        gateway.set_destination_enabled("acct_pending", True)
        assert current_domain.process(RefreshPayoutStatus(chef_id=chef_id), asynchronous=False) is True
        assert _chef(chef_id).can_receive_funds

    def test_update_contact_keeps_unset_fields(self, onboarded_chef):
        current_domain.process(UpdateChefContact(chef_id=onboarded_chef, phone="+1 555 0199"), asynchronous=False)

        chef = _chef(onboarded_chef)
        assert chef.phone == "+1 555 0199"
        assert chef.name == "Auntie Mei"
        assert chef.email == "chef-001@example.com"


class TestPayoutOnboarding:
    def test_first_link_creates_the_account(self, chef_id, register_chef, gateway):
        register_chef(chef_id, link=False)

        result = current_domain.process(StartPayoutOnboarding(chef_id=chef_id), asynchronous=False)

        assert result["url"].endswith(result["account_id"])
        chef = _chef(chef_id)
        assert chef.payout_account_id == result["account_id"]
        assert not chef.can_receive_funds
        call = gateway.calls_for("create_onboarding_link")[0]
        assert call["account_id"] is None
        assert call["email"] == "chef-001@example.com"
        assert call["return_url"].endswith("onboarding=return")

    def test_resumes_the_linked_account(self, onboarded_chef, gateway):
        result = current_domain.process(StartPayoutOnboarding(chef_id=onboarded_chef), asynchronous=False)

        assert result["account_id"] == "acct_chef-001"
        assert _chef(onboarded_chef).can_receive_funds

    def test_processor_failure(self, chef_id, register_chef, gateway):
        register_chef(chef_id, link=False)
        gateway.configure(should_succeed=False, failure_reason="Country not supported", operation="onboard")

        with pytest.raises(PayoutOnboardingError):
            current_domain.process(StartPayoutOnboarding(chef_id=chef_id), asynchronous=False)
        assert not _chef(chef_id).is_onboarded


class TestPayoutSync:
    def test_account_found_by_id(self, chef_id, register_chef, gateway):
        gateway.set_destination_enabled("acct_pending", False)
        register_chef(chef_id, payout_account_id="acct_pending")

        returned = current_domain.process(
            SyncPayoutAccount(payout_account_id="acct_pending", charges_enabled=True),
            asynchronous=False,
        )

        assert returned == chef_id
        assert _chef(chef_id).can_receive_funds

    def test_account_linked_from_metadata(self, chef_id, register_chef):
        register_chef(chef_id, link=False)

        current_domain.process(
            SyncPayoutAccount(payout_account_id="acct_from_processor", charges_enabled=True, chef_id=chef_id),
            asynchronous=False,
        )

        chef = _chef(chef_id)
        assert chef.payout_account_id == "acct_from_processor"
        assert chef.can_receive_funds

    def test_disabled_account(self, onboarded_chef):
        current_domain.process(
            SyncPayoutAccount(payout_account_id="acct_chef-001", charges_enabled=False),
            asynchronous=False,
        )
        assert not _chef(onboarded_chef).can_receive_funds

    def test_unknown_account_is_ignored(self):
        returned = current_domain.process(
            SyncPayoutAccount(payout_account_id="acct_nobody", charges_enabled=True),
            asynchronous=False,
        )
        assert returned is None


class TestModeration:
    def test_admin_suspends_a_chef(self, onboarded_chef):
        active = current_domain.process(
            SetChefActive(
                chef_id=onboarded_chef, active=False, note="Complaint", actor_id="admin-001", actor_is_admin=True
            ),
            asynchronous=False,
        )

        assert active is False
        assert _chef(onboarded_chef).active is False

    def test_chef_cannot_reinstate_themselves(self, onboarded_chef):
        current_domain.process(
            SetChefActive(chef_id=onboarded_chef, active=False, actor_id="admin-001", actor_is_admin=True),
            asynchronous=False,
        )
        with pytest.raises(ForbiddenActorError):
            current_domain.process(
                SetChefActive(chef_id=onboarded_chef, active=True, actor_id=onboarded_chef),
                asynchronous=False,
            )
        assert _chef(onboarded_chef).active is False


class TestMenu:
    def test_list_dish(self, onboarded_chef):
        dish_id = current_domain.process(
            ListDish(chef_id=onboarded_chef, name="Char siu bao", price_cents=900, actor_id=onboarded_chef),
            asynchronous=False,
        )

        dish = _dish(dish_id)
        assert dish.chef_id == onboarded_chef
        assert dish.price_cents == 900
        assert dish.available

    def test_only_the_chef_lists_on_their_menu(self, onboarded_chef):
        with pytest.raises(ForbiddenActorError):
            current_domain.process(
                ListDish(chef_id=onboarded_chef, name="Imposter stew", price_cents=900, actor_id="buyer-001"),
                asynchronous=False,
            )

    def test_admin_may_list_for_a_chef(self, onboarded_chef):
        dish_id = current_domain.process(
            ListDish(
                chef_id=onboarded_chef,
                name="Congee",
                price_cents=700,
                actor_id="ops-1",
                actor_is_admin=True,
            ),
            asynchronous=False,
        )
        assert _dish(dish_id).chef_id == onboarded_chef

    def test_unknown_chef(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                ListDish(chef_id="nobody", name="Ghost soup", price_cents=100, actor_id="nobody"),
                asynchronous=False,
            )

    def test_change_price(self, dish_id, chef_id):
        current_domain.process(ChangeDishPrice(dish_id=dish_id, price_cents=1350, actor_id=chef_id), asynchronous=False)
        assert _dish(dish_id).price_cents == 1350

    def test_other_chef_cannot_change_price(self, dish_id, register_chef):
        register_chef("chef-002")
        with pytest.raises(ForbiddenActorError):
            current_domain.process(
                ChangeDishPrice(dish_id=dish_id, price_cents=1, actor_id="chef-002"),
                asynchronous=False,
            )
        assert _dish(dish_id).price_cents == 1200

    def test_withdraw_and_relist(self, dish_id, chef_id):
        current_domain.process(
            SetDishAvailability(dish_id=dish_id, available=False, actor_id=chef_id),
            asynchronous=False,
        )
        assert not _dish(dish_id).available

        current_domain.process(
            SetDishAvailability(dish_id=dish_id, available=True, actor_id=chef_id),
            asynchronous=False,
        )
        assert _dish(dish_id).available
