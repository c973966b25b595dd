"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A dish was added to the cart (or its quantity increased)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    dish_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price_cents = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantitySet:
    """The quantity of a cart line was set to a new value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    dish_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A dish was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    dish_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """All lines were removed and the cart is no longer tied to a chef."""

    __version__ = 1

    cart_id = Identifier(required=True)
    released_seller_id = Identifier()


@ordering.event(part_of="ShoppingCart")
class CartCheckedOut:
    """The cart was turned into an order."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
