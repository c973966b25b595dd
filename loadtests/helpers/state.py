"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state, no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class KitchenState:
    """The chef a simulated buyer orders from, and their menu."""

    chef_id: str | None = None
    dish_ids: list[str] = field(default_factory=list)


@dataclass
class OrderState:
    """Tracks state for a single cart-to-pickup journey."""

    buyer_id: str | None = None
    cart_id: str | None = None
    order_id: str | None = None
    current_status: str = "requested"
