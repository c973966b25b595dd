"""Platform fee arithmetic. All amounts are integer cents."""

from decimal import ROUND_HALF_UP, Decimal

from ordering.settings import OrderingSettings, get_settings


def platform_fee_cents(total_cents: int, settings: OrderingSettings | None = None) -> int:
    """Percentage fee clamped to the configured floor and ceiling, never above the total."""
    settings = settings or get_settings()
    if total_cents <= 0:
        return 0

    raw = int((Decimal(total_cents) * Decimal(str(settings.fee_rate))).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    fee = min(settings.platform_fee_max_cents, max(settings.platform_fee_min_cents, raw))
    return max(0, min(fee, total_cents))


def seller_net_cents(total_cents: int, fee_cents: int) -> int:
    return total_cents - fee_cents


def format_money(amount_cents: int | None, currency: str = "USD") -> str:
    """Human-readable amount, e.g. ``$12.50 USD``."""
    cents = amount_cents or 0
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(cents), 100)
    return f"{sign}${dollars:,}.{remainder:02d} {currency.upper()}"
