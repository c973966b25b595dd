"""Cart management: creating a cart for a buyer."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class CreateCart:
    """Open an empty cart for a buyer."""

    buyer_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = ShoppingCart.create(buyer_id=command.buyer_id)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)
