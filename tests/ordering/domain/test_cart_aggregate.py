"""Tests for the ShoppingCart aggregate: single-chef rule, quantities and totals."""

import pytest
from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.cart.events import CartCheckedOut, CartCleared, CartItemAdded, CartItemRemoved, CartQuantitySet
from ordering.errors import DifferentSellerError
from protean.exceptions import ValidationError


def _cart():
    cart = ShoppingCart.create(buyer_id="buyer-001")
    cart._events.clear()
    return cart


def _cart_with_seller_5():
    cart = _cart()
    cart.add_item(dish_id="dish-a", unit_price_cents=1000, quantity=1, seller_id="5")
    cart.add_item(dish_id="dish-b", unit_price_cents=450, quantity=2, seller_id="5")
    cart._events.clear()
    return cart


class TestCartCreation:
    def test_new_cart_is_empty_and_unbound(self):
        cart = ShoppingCart.create(buyer_id="buyer-001")
        assert cart.is_empty
        assert cart.seller_id is None
        assert cart.status == CartStatus.ACTIVE.value
        assert cart.total() == 0


class TestAddItem:
    def test_first_item_binds_the_seller(self):
        cart = _cart()
        cart.add_item(dish_id="dish-a", unit_price_cents=1000, quantity=1, seller_id="5")
        assert cart.seller_id == "5"
        assert len(cart.items) == 1

    def test_same_dish_merges_quantity(self):
        cart = _cart_with_seller_5()
        cart.add_item(dish_id="dish-a", unit_price_cents=1000, quantity=3, seller_id="5")
        assert len(cart.items) == 2
        line = next(i for i in cart.items if i.dish_id == "dish-a")
        assert line.quantity == 4

    def test_new_dish_from_same_seller_is_appended(self):
        cart = _cart_with_seller_5()
        cart.add_item(dish_id="dish-c", unit_price_cents=300, quantity=1, seller_id="5")
        assert len(cart.items) == 3

    def test_item_from_another_seller_is_refused(self):
        cart = _cart_with_seller_5()
        with pytest.raises(DifferentSellerError) as exc:
            cart.add_item(dish_id="dish-x", unit_price_cents=999, quantity=1, seller_id="7")
        assert "seller_id" in exc.value.messages

    def test_refused_item_leaves_cart_unchanged(self):
        cart = _cart_with_seller_5()
        before = [(i.dish_id, i.quantity) for i in cart.items]
        with pytest.raises(DifferentSellerError):
            cart.add_item(dish_id="dish-x", unit_price_cents=999, quantity=1, seller_id="7")
        assert [(i.dish_id, i.quantity) for i in cart.items] == before
        assert cart.seller_id == "5"
        assert cart.seller_ids() == {"5"}
        assert cart._events == []

    def test_zero_quantity_rejected(self):
        cart = _cart()
        with pytest.raises(ValidationError):
            cart.add_item(dish_id="dish-a", unit_price_cents=1000, quantity=0, seller_id="5")

    def test_raises_item_added_event(self):
        cart = _cart()
        cart.add_item(dish_id="dish-a", unit_price_cents=1000, quantity=2, seller_id="5")
        assert len(cart._events) == 1
        event = cart._events[0]
        assert isinstance(event, CartItemAdded)
        assert event.quantity == 2
        assert event.seller_id == "5"


class TestSetQuantity:
    def test_updates_in_place(self):
        cart = _cart_with_seller_5()
        cart.set_quantity("dish-b", 5)
        line = next(i for i in cart.items if i.dish_id == "dish-b")
        assert line.quantity == 5
        assert isinstance(cart._events[-1], CartQuantitySet)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_zero_or_less_removes_the_line(self, quantity):
        cart = _cart_with_seller_5()
        cart.set_quantity("dish-b", quantity)
        assert [i.dish_id for i in cart.items] == ["dish-a"]
        assert isinstance(cart._events[-1], CartItemRemoved)

    def test_unknown_dish(self):
        cart = _cart_with_seller_5()
        with pytest.raises(ValidationError):
            cart.set_quantity("dish-zzz", 1)


class TestRemoveAndClear:
    def test_remove_item(self):
        cart = _cart_with_seller_5()
        cart.remove_item("dish-a")
        assert [i.dish_id for i in cart.items] == ["dish-b"]
        assert cart.seller_id == "5"

    def test_removing_last_item_releases_seller(self):
        cart = _cart()
        cart.add_item(dish_id="dish-a", unit_price_cents=1000, quantity=1, seller_id="5")
        cart.remove_item("dish-a")
        assert cart.is_empty
        assert cart.seller_id is None

    def test_clear_releases_seller_binding(self):
        cart = _cart_with_seller_5()
        cart.clear()
        assert cart.is_empty
        assert cart.seller_id is None
        event = cart._events[-1]
        assert isinstance(event, CartCleared)
        assert event.released_seller_id == "5"

    def test_other_seller_accepted_after_clear(self):
        cart = _cart_with_seller_5()
        cart.clear()
        cart.add_item(dish_id="dish-x", unit_price_cents=999, quantity=1, seller_id="7")
        assert cart.seller_id == "7"


class TestTotal:
    def test_sum_of_price_times_quantity(self):
        cart = _cart_with_seller_5()
        assert cart.total() == 1000 * 1 + 450 * 2

    def test_total_is_deterministic(self):
        cart = _cart_with_seller_5()
        assert cart.total() == cart.total()


class TestCheckedOut:
    def test_mark_checked_out(self):
        cart = _cart_with_seller_5()
        cart.mark_checked_out("ord-001")
        assert cart.status == CartStatus.CHECKED_OUT.value
        assert cart.order_id == "ord-001"
        assert isinstance(cart._events[-1], CartCheckedOut)

    def test_checked_out_cart_is_frozen(self):
        cart = _cart_with_seller_5()
        cart.mark_checked_out("ord-001")
        with pytest.raises(ValidationError):
            cart.add_item(dish_id="dish-c", unit_price_cents=300, quantity=1, seller_id="5")
        with pytest.raises(ValidationError):
            cart.clear()
