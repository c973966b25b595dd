"""Dish aggregate: a menu entry owned by one chef.

Prices are integer cents. Carts and orders copy the price at the moment
they use it, so editing a dish never changes an order already placed.
"""

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from ordering.domain import ordering
from ordering.kitchen.events import DishAvailabilityChanged, DishListed, DishPriceChanged
from ordering.utils.clock import utcnow


@ordering.aggregate
class Dish:
    chef_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    description = String(max_length=2000)
    price_cents = Integer(required=True, min_value=1)
    image_url = String(max_length=1024)
    available = Boolean(default=True)
    listed_at = DateTime()

    @classmethod
    def create(cls, chef_id, name, price_cents, description=None, image_url=None):
        dish = cls(
            chef_id=str(chef_id),
            name=name,
            description=description,
            price_cents=price_cents,
            image_url=image_url,
            available=True,
            listed_at=utcnow(),
        )
        dish.raise_(
            DishListed(
                dish_id=str(dish.id),
                chef_id=str(chef_id),
                name=name,
                price_cents=price_cents,
            )
        )
        return dish

    def change_price(self, new_price_cents):
        if new_price_cents is None or new_price_cents < 1:
            raise ValidationError({"price_cents": ["Price must be a positive amount"]})

        previous = self.price_cents
        if previous == new_price_cents:
            return

        self.price_cents = new_price_cents
        self.raise_(
            DishPriceChanged(
                dish_id=str(self.id),
                previous_price_cents=previous,
                new_price_cents=new_price_cents,
            )
        )

    def set_available(self, available):
        if bool(self.available) == bool(available):
            return

        self.available = bool(available)
        self.raise_(
            DishAvailabilityChanged(
                dish_id=str(self.id),
                available=self.available,
            )
        )
