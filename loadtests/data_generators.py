"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the domain's validation rules
(pickup window, positive prices, quantities) and match the exact field
names expected by the API's Pydantic request schemas.
"""

import random
import uuid
from datetime import UTC, datetime, timedelta

from faker import Faker

fake = Faker()

DISHES = [
    "Pork dumplings",
    "Chicken biryani",
    "Mushroom risotto",
    "Beef rendang",
    "Lentil dal",
    "Pierogi",
    "Jollof rice",
    "Shakshuka",
]


def principal_id(prefix: str) -> str:
    """Unique ids like 'chef-lt-a1b2c3d4', used as the X-User-Id header."""
    return f"{prefix}-lt-{uuid.uuid4().hex[:8]}"


def chef_headers(chef_id: str) -> dict:
    return {"X-User-Id": chef_id, "X-User-Seller": "true"}


def buyer_headers(buyer_id: str) -> dict:
    return {"X-User-Id": buyer_id}


def admin_headers() -> dict:
    return {"X-User-Id": "loadtest-admin", "X-User-Admin": "true"}


def chef_data() -> dict:
    """Generate RegisterChefRequest payload."""
    return {
        "name": fake.name()[:150],
        "email": f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}",
        "phone": fake.numerify("+1 ### ### ####"),
    }


def payout_account_data() -> dict:
    return {"payout_account_id": f"acct_lt_{uuid.uuid4().hex[:12]}"}


def dish_data() -> dict:
    """Generate ListDishRequest payload with a price between $6 and $25."""
    return {
        "name": random.choice(DISHES),
        "price_cents": random.randrange(600, 2500, 50),
        "description": fake.sentence(nb_words=10),
    }


def cart_item_data(dish_id: str) -> dict:
    return {"dish_id": dish_id, "quantity": random.randint(1, 4)}


def pickup_time() -> str:
    """A pickup slot 1-6 days ahead, on the hour between 09:00 and 19:00 UTC."""
    day = datetime.now(UTC) + timedelta(days=random.randint(1, 6))
    return day.replace(hour=random.randint(9, 19), minute=0, second=0, microsecond=0).isoformat()


def checkout_data() -> dict:
    """Generate CheckoutRequest payload."""
    return {"pickup_at": pickup_time()}


def rejection_data() -> dict:
    return {"reason": random.choice(["Sold out today", "Kitchen closed early", "Too many orders"])}
