"""Menu management: listing, repricing and withdrawing dishes."""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.access import Principal, get_policy
from ordering.domain import ordering
from ordering.kitchen.chef import Chef
from ordering.kitchen.dish import Dish


@ordering.command(part_of="Dish")
class ListDish:
    chef_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    price_cents = Integer(required=True, min_value=1)
    description = String(max_length=2000)
    image_url = String(max_length=1024)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


@ordering.command(part_of="Dish")
class ChangeDishPrice:
    dish_id = Identifier(required=True)
    price_cents = Integer(required=True, min_value=1)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


@ordering.command(part_of="Dish")
class SetDishAvailability:
    dish_id = Identifier(required=True)
    available = Boolean(required=True)
    actor_id = Identifier(required=True)
    actor_email = String(max_length=254)
    actor_is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Dish)
class MenuHandler:
    @handle(ListDish)
    def list_dish(self, command):
        get_policy().require_party(Principal.from_command(command), command.chef_id, "chef")
        # Raises ObjectNotFoundError for unknown chefs
        current_domain.repository_for(Chef).get(command.chef_id)

        dish = Dish.create(
            chef_id=command.chef_id,
            name=command.name,
            price_cents=command.price_cents,
            description=command.description,
            image_url=command.image_url,
        )
        current_domain.repository_for(Dish).add(dish)
        return str(dish.id)

    @handle(ChangeDishPrice)
    def change_price(self, command):
        repo = current_domain.repository_for(Dish)
        dish = repo.get(command.dish_id)
        get_policy().require_party(Principal.from_command(command), dish.chef_id, "dish's chef")
        dish.change_price(command.price_cents)
        repo.add(dish)

    @handle(SetDishAvailability)
    def set_availability(self, command):
        repo = current_domain.repository_for(Dish)
        dish = repo.get(command.dish_id)
        get_policy().require_party(Principal.from_command(command), dish.chef_id, "dish's chef")
        dish.set_available(command.available)
        repo.add(dish)
