"""Domain events for the Chef and Dish aggregates."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Chef")
class ChefRegistered:
    """A seller profile was created for a chef."""

    __version__ = 1

    chef_id = Identifier(required=True)
    name = String(required=True)
    email = String()
    registered_at = DateTime(required=True)


@ordering.event(part_of="Chef")
class ChefContactUpdated:
    """The chef's pickup contact details changed."""

    __version__ = 1

    chef_id = Identifier(required=True)
    name = String()
    email = String()
    phone = String()


@ordering.event(part_of="Chef")
class PayoutAccountLinked:
    """The chef connected a payout (destination) account."""

    __version__ = 1

    chef_id = Identifier(required=True)
    payout_account_id = String(required=True)


@ordering.event(part_of="Chef")
class PayoutStatusChanged:
    """The payout account started or stopped accepting funds."""

    __version__ = 1

    chef_id = Identifier(required=True)
    payout_account_id = String()
    charges_enabled = Boolean(required=True)


@ordering.event(part_of="Chef")
class ChefActivityChanged:
    """An administrator suspended or reinstated the chef's kitchen."""

    __version__ = 1

    chef_id = Identifier(required=True)
    active = Boolean(required=True)
    changed_by = Identifier(required=True)
    note = String(max_length=500)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Dish")
class DishListed:
    """A chef put a new dish on their menu."""

    __version__ = 1

    dish_id = Identifier(required=True)
    chef_id = Identifier(required=True)
    name = String(required=True)
    price_cents = Integer(required=True)


@ordering.event(part_of="Dish")
class DishPriceChanged:
    """A dish price was edited. Existing orders keep their snapshot."""

    __version__ = 1

    dish_id = Identifier(required=True)
    previous_price_cents = Integer(required=True)
    new_price_cents = Integer(required=True)


@ordering.event(part_of="Dish")
class DishAvailabilityChanged:
    """A dish was withdrawn from or restored to the menu."""

    __version__ = 1

    dish_id = Identifier(required=True)
    available = Boolean(required=True)
