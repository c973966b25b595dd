"""Cart item management: commands and handler.

Prices and sellers come from the Dish record, never from the client.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.errors import UnavailableDishError
from ordering.kitchen.dish import Dish


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    cart_id = Identifier(required=True)
    dish_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class SetCartQuantity:
    cart_id = Identifier(required=True)
    dish_id = Identifier(required=True)
    quantity = Integer(required=True)  # Zero or less removes the line


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    dish_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    cart_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        dish = current_domain.repository_for(Dish).get(command.dish_id)
        if not dish.available:
            raise UnavailableDishError(f"{dish.name} is no longer available")

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.add_item(
            dish_id=str(dish.id),
            unit_price_cents=dish.price_cents,
            quantity=command.quantity,
            seller_id=str(dish.chef_id),
            dish_name=dish.name,
        )
        repo.add(cart)

    @handle(SetCartQuantity)
    def set_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.set_quantity(dish_id=command.dish_id, quantity=command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.remove_item(dish_id=command.dish_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.clear()
        repo.add(cart)
