from datetime import timedelta

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Marketplace fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def chef_id():
    return "chef-001"


@pytest.fixture()
def buyer_id():
    return "buyer-001"


@pytest.fixture()
def pickup_at():
    """Tomorrow at noon UTC: always inside the pickup window."""
    from ordering.utils.clock import utcnow

    tomorrow = utcnow() + timedelta(days=1)
    return tomorrow.replace(hour=12, minute=0, second=0, microsecond=0).isoformat()


@pytest.fixture()
def register_chef():
    """Register a chef and link an (enabled) payout account."""
    from ordering.kitchen.onboarding import LinkPayoutAccount, RegisterChef
    from protean import current_domain

    def _register(chef_id, name="Auntie Mei", payout_account_id=None, link=True):
        current_domain.process(
            RegisterChef(chef_id=chef_id, name=name, email=f"{chef_id}@example.com", phone="+1 555 0100"),
            asynchronous=False,
        )
        if link:
            current_domain.process(
                LinkPayoutAccount(chef_id=chef_id, payout_account_id=payout_account_id or f"acct_{chef_id}"),
                asynchronous=False,
            )
        return chef_id

    return _register


@pytest.fixture()
def list_dish():
    from ordering.kitchen.menu import ListDish
    from protean import current_domain

    def _list(chef_id, name="Pork dumplings", price_cents=1200):
        return current_domain.process(
            ListDish(chef_id=chef_id, name=name, price_cents=price_cents, actor_id=chef_id),
            asynchronous=False,
        )

    return _list


@pytest.fixture()
def onboarded_chef(chef_id, register_chef):
    return register_chef(chef_id)


@pytest.fixture()
def dish_id(onboarded_chef, list_dish):
    return list_dish(onboarded_chef)


@pytest.fixture()
def fill_cart():
    """Create a cart for a buyer and add ``quantity`` of each dish."""
    from ordering.cart.items import AddToCart
    from ordering.cart.management import CreateCart
    from protean import current_domain

    def _fill(buyer_id, *dish_ids, quantity=2):
        cart_id = current_domain.process(CreateCart(buyer_id=buyer_id), asynchronous=False)
        for dish in dish_ids:
            current_domain.process(AddToCart(cart_id=cart_id, dish_id=dish, quantity=quantity), asynchronous=False)
        return cart_id

    return _fill


@pytest.fixture()
def cart_id(buyer_id, dish_id, fill_cart):
    return fill_cart(buyer_id, dish_id)


@pytest.fixture()
def place_order(pickup_at):
    """Check out a cart and return the order id."""
    from ordering.checkout.initiation import CheckoutCart
    from protean import current_domain

    def _place(cart_id, buyer_id, when=None):
        result = current_domain.process(
            CheckoutCart(cart_id=cart_id, buyer_id=buyer_id, pickup_at=when or pickup_at),
            asynchronous=False,
        )
        return result["order_id"]

    return _place


@pytest.fixture()
def order_id(cart_id, buyer_id, place_order):
    """An order waiting for the chef: 2 x 1200 cents, payment authorized."""
    return place_order(cart_id, buyer_id)
