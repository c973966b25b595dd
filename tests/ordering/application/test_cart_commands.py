"""Application tests for cart commands: prices and sellers come from the dish record."""

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, SetCartQuantity
from ordering.cart.management import CreateCart
from ordering.errors import DifferentSellerError, UnavailableDishError
from ordering.kitchen.menu import ChangeDishPrice, SetDishAvailability
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _cart(cart_id):
    return current_domain.repository_for(ShoppingCart).get(cart_id)


class TestCreateCart:
    def test_new_cart_is_empty_and_unbound(self, buyer_id):
        cart_id = current_domain.process(CreateCart(buyer_id=buyer_id), asynchronous=False)

        cart = _cart(cart_id)
        assert cart.buyer_id == buyer_id
        assert cart.is_empty
        assert cart.seller_id is None


class TestAddToCart:
    def test_copies_price_and_seller_from_dish(self, cart_id, dish_id, chef_id):
        cart = _cart(cart_id)
        line = cart.items[0]
        assert line.dish_id == dish_id
        assert line.unit_price_cents == 1200
        assert line.dish_name == "Pork dumplings"
        assert cart.seller_id == chef_id

    def test_adding_the_same_dish_merges_quantities(self, cart_id, dish_id):
        current_domain.process(AddToCart(cart_id=cart_id, dish_id=dish_id, quantity=3), asynchronous=False)

        cart = _cart(cart_id)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5
        assert cart.total() == 6000

    def test_later_price_change_does_not_touch_the_cart_line(self, cart_id, dish_id, chef_id):
        current_domain.process(
            ChangeDishPrice(dish_id=dish_id, price_cents=1500, actor_id=chef_id),
            asynchronous=False,
        )
        assert _cart(cart_id).items[0].unit_price_cents == 1200

    def test_dish_from_another_chef_is_refused(self, cart_id, register_chef, list_dish):
        other_dish = list_dish(register_chef("chef-002", name="Nonna Lucia"), name="Lasagna")

        with pytest.raises(DifferentSellerError):
            current_domain.process(AddToCart(cart_id=cart_id, dish_id=other_dish, quantity=1), asynchronous=False)

        cart = _cart(cart_id)
        assert cart.seller_id == "chef-001"
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_unavailable_dish_is_refused(self, buyer_id, dish_id, chef_id):
        current_domain.process(
            SetDishAvailability(dish_id=dish_id, available=False, actor_id=chef_id),
            asynchronous=False,
        )
        cart_id = current_domain.process(CreateCart(buyer_id=buyer_id), asynchronous=False)

        with pytest.raises(UnavailableDishError):
            current_domain.process(AddToCart(cart_id=cart_id, dish_id=dish_id, quantity=1), asynchronous=False)

    def test_unknown_dish(self, buyer_id):
        cart_id = current_domain.process(CreateCart(buyer_id=buyer_id), asynchronous=False)
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(AddToCart(cart_id=cart_id, dish_id="missing", quantity=1), asynchronous=False)

    def test_quantity_must_be_positive(self, buyer_id, dish_id):
        with pytest.raises(ValidationError):
            AddToCart(cart_id="any", dish_id=dish_id, quantity=0)


class TestChangingLines:
    def test_set_quantity(self, cart_id, dish_id):
        current_domain.process(SetCartQuantity(cart_id=cart_id, dish_id=dish_id, quantity=4), asynchronous=False)
        assert _cart(cart_id).items[0].quantity == 4

    def test_zero_quantity_removes_the_line_and_releases_the_chef(self, cart_id, dish_id):
        current_domain.process(SetCartQuantity(cart_id=cart_id, dish_id=dish_id, quantity=0), asynchronous=False)

        cart = _cart(cart_id)
        assert cart.is_empty
        assert cart.seller_id is None

    def test_remove_last_line_releases_the_chef(self, cart_id, dish_id, register_chef, list_dish):
        current_domain.process(RemoveFromCart(cart_id=cart_id, dish_id=dish_id), asynchronous=False)
        other_dish = list_dish(register_chef("chef-002"), name="Lasagna")

        current_domain.process(AddToCart(cart_id=cart_id, dish_id=other_dish, quantity=1), asynchronous=False)

        assert _cart(cart_id).seller_id == "chef-002"

    def test_removing_a_dish_not_in_the_cart(self, cart_id):
        with pytest.raises(ValidationError) as exc:
            current_domain.process(RemoveFromCart(cart_id=cart_id, dish_id="missing"), asynchronous=False)
        assert "dish_id" in exc.value.messages

    def test_clear_then_switch_chef(self, cart_id, register_chef, list_dish):
        current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
        other_dish = list_dish(register_chef("chef-002"), name="Lasagna", price_cents=1800)

        current_domain.process(AddToCart(cart_id=cart_id, dish_id=other_dish, quantity=1), asynchronous=False)

        cart = _cart(cart_id)
        assert cart.seller_id == "chef-002"
        assert cart.total() == 1800
