"""Shopping Cart aggregate (CQRS): dishes a buyer intends to order from one chef.

A cart is tied to at most one seller. The first dish added decides the
seller; a dish from any other seller is refused and the cart is left
exactly as it was. Clearing the cart releases the seller. Checkout turns
the cart into an Order and closes it.
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantitySet,
)
from ordering.domain import ordering
from ordering.errors import DifferentSellerError
from ordering.utils.clock import utcnow


class CartStatus(Enum):
    ACTIVE = "Active"
    CHECKED_OUT = "CheckedOut"


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    dish_id = Identifier(required=True)
    dish_name = String(max_length=200)
    seller_id = Identifier(required=True)
    unit_price_cents = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@ordering.aggregate
class ShoppingCart:
    buyer_id = Identifier(required=True)
    seller_id = Identifier()  # Unset while the cart is empty
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_hold_a_single_seller(self):
        sellers = {str(item.seller_id) for item in self.items}
        if len(sellers) > 1:
            raise ValidationError({"seller_id": ["A cart can only hold dishes from one chef"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, buyer_id):
        now = utcnow()
        return cls(
            buyer_id=buyer_id,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def _line(self, dish_id):
        return next((i for i in self.items if str(i.dish_id) == str(dish_id)), None)

    def total(self) -> int:
        """Sum of unit price times quantity over all lines, in cents."""
        return sum(item.unit_price_cents * item.quantity for item in self.items)

    def seller_ids(self) -> set[str]:
        return {str(item.seller_id) for item in self.items}

    @property
    def is_empty(self) -> bool:
        return not self.items

    def _assert_active(self):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": ["Cart has already been checked out"]})

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, dish_id, unit_price_cents, quantity, seller_id, dish_name=None):
        """Add a dish, merging quantities for a dish already in the cart.

        Raises DifferentSellerError, without touching the cart, when the
        cart already holds dishes from another seller.
        """
        self._assert_active()
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        if self.items and self.seller_id and str(self.seller_id) != str(seller_id):
            raise DifferentSellerError(
                f"Cart already holds dishes from chef {self.seller_id}; clear it to order from another chef"
            )

        now = utcnow()
        if not self.items or not self.seller_id:
            self.seller_id = seller_id

        existing = self._line(dish_id)
        if existing:
            existing.quantity += quantity
        else:
            self.add_items(
                CartItem(
                    dish_id=dish_id,
                    dish_name=dish_name,
                    seller_id=seller_id,
                    unit_price_cents=unit_price_cents,
                    quantity=quantity,
                    added_at=now,
                )
            )

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                dish_id=str(dish_id),
                seller_id=str(seller_id),
                quantity=quantity,
                unit_price_cents=unit_price_cents,
            )
        )

    def set_quantity(self, dish_id, quantity):
        """Set a line's quantity; zero or less removes the line."""
        self._assert_active()

        item = self._line(dish_id)
        if item is None:
            raise ValidationError({"dish_id": ["Dish not found in cart"]})

        if quantity <= 0:
            self.remove_item(dish_id)
            return

        previous_quantity = item.quantity
        item.quantity = quantity
        self.updated_at = utcnow()

        self.raise_(
            CartQuantitySet(
                cart_id=str(self.id),
                dish_id=str(dish_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, dish_id):
        self._assert_active()

        item = self._line(dish_id)
        if item is None:
            raise ValidationError({"dish_id": ["Dish not found in cart"]})

        self.remove_items(item)
        if not self.items:
            self.seller_id = None
        self.updated_at = utcnow()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                dish_id=str(dish_id),
            )
        )

    def clear(self):
        """Remove every line and release the seller binding."""
        self._assert_active()

        released = self.seller_id
        for item in list(self.items):
            self.remove_items(item)
        self.seller_id = None
        self.updated_at = utcnow()

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                released_seller_id=str(released) if released else None,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_checked_out(self, order_id):
        self._assert_active()

        self.status = CartStatus.CHECKED_OUT.value
        self.order_id = order_id
        self.updated_at = utcnow()

        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                order_id=str(order_id),
            )
        )
