"""Business settings for the ordering context.

Values come from environment variables so the same build runs in every
environment; Protean's own infrastructure settings live in ``domain.toml``.
"""

import os
from dataclasses import dataclass, field
from datetime import time
from functools import lru_cache


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _clock(name: str, default: str) -> time:
    raw = os.getenv(name) or default
    hours, _, minutes = raw.partition(":")
    return time(int(hours), int(minutes or 0))


@dataclass(frozen=True)
class OrderingSettings:
    platform_fee_percent: float = 0.10
    platform_fee_min_cents: int = 50
    platform_fee_max_cents: int = 1500
    acceptance_timeout_minutes: int = 60
    pickup_timezone: str = "UTC"
    pickup_horizon_days: int = 7
    pickup_day_start: time = time(8, 0)
    pickup_day_end: time = time(20, 0)
    currency: str = "USD"
    admin_emails: frozenset[str] = field(default_factory=frozenset)
    payment_gateway: str = "fake"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    checkout_success_url: str = "http://localhost:8081/checkout/success"
    checkout_cancel_url: str = "http://localhost:8081/checkout/cancel"
    connect_country: str = "CA"
    onboarding_refresh_url: str = "http://localhost:8081/chef/payouts?onboarding=refresh"
    onboarding_return_url: str = "http://localhost:8081/chef/payouts?onboarding=return"

    @property
    def fee_rate(self) -> float:
        """Fee as a fraction; configured values above 1 are percentages."""
        rate = self.platform_fee_percent
        return rate / 100 if rate > 1 else rate


def load_settings() -> OrderingSettings:
    """Build settings from the current environment."""
    admin_emails = frozenset(
        email.strip().lower() for email in os.getenv("ADMIN_EMAILS", "").split(",") if email.strip()
    )
    return OrderingSettings(
        platform_fee_percent=_float("PLATFORM_FEE_PERCENT", 0.10),
        platform_fee_min_cents=_int("PLATFORM_FEE_MIN", 50),
        platform_fee_max_cents=_int("PLATFORM_FEE_MAX", 1500),
        acceptance_timeout_minutes=_int("ORDER_ACCEPTANCE_TIMEOUT_MINUTES", 60),
        pickup_timezone=os.getenv("PICKUP_TIMEZONE", "UTC"),
        pickup_horizon_days=_int("PICKUP_HORIZON_DAYS", 7),
        pickup_day_start=_clock("PICKUP_DAY_START", "08:00"),
        pickup_day_end=_clock("PICKUP_DAY_END", "20:00"),
        currency=os.getenv("CURRENCY", "USD").upper(),
        admin_emails=admin_emails,
        payment_gateway=os.getenv("PAYMENT_GATEWAY", "fake").lower(),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
        checkout_success_url=os.getenv("CHECKOUT_SUCCESS_URL", OrderingSettings.checkout_success_url),
        checkout_cancel_url=os.getenv("CHECKOUT_CANCEL_URL", OrderingSettings.checkout_cancel_url),
        connect_country=os.getenv("DEFAULT_CONNECT_COUNTRY", "CA").upper(),
        onboarding_refresh_url=os.getenv("ONBOARDING_REFRESH_URL", OrderingSettings.onboarding_refresh_url),
        onboarding_return_url=os.getenv("ONBOARDING_RETURN_URL", OrderingSettings.onboarding_return_url),
    )


@lru_cache(maxsize=1)
def get_settings() -> OrderingSettings:
    return load_settings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
