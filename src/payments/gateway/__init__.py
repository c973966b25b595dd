"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (the default)
- StripeGateway when PAYMENT_GATEWAY=stripe
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def build_gateway() -> PaymentGateway:
    """Build the gateway named by the PAYMENT_GATEWAY setting."""
    from ordering.settings import get_settings

    settings = get_settings()
    if settings.payment_gateway == "stripe":
        if not settings.stripe_secret_key:
            raise RuntimeError("PAYMENT_GATEWAY=stripe requires STRIPE_SECRET_KEY")

        from payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            connect_country=settings.connect_country,
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
