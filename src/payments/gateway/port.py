"""Payment gateway port (abstract interface).

The ordering context only ever needs deferred-capture payments: authorize
the buyer's card at checkout, then capture (or void) once the chef has
decided. Captured funds go to the chef's connected account minus the
platform fee. Sellers onboard through a hosted page the gateway opens,
and the gateway calls back (webhooks) when accounts or payments change.
Adapters must never raise for a declined or failed call; they return a
result with ``success=False`` and a reason instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class AuthorizationResult:
    """Result of a deferred-capture authorization request."""

    success: bool
    authorization_id: str | None = None
    redirect_url: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class CaptureResult:
    """Result of capturing a previously authorized payment."""

    success: bool
    capture_id: str | None = None
    transfer_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class CancellationResult:
    """Result of voiding an uncaptured authorization."""

    success: bool
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    refund_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class OnboardingLinkResult:
    """Result of opening (or resuming) payouts onboarding for a seller."""

    success: bool
    account_id: str | None = None
    url: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class WebhookEvent:
    """A verified gateway callback. ``data`` is the object the event is about."""

    id: str
    type: str
    data: dict = field(default_factory=dict)


class WebhookNotConfiguredError(RuntimeError):
    """The gateway has no secret to verify callbacks with."""


class InvalidWebhookError(ValueError):
    """The callback signature or body could not be verified."""


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def authorize(
        self,
        amount_cents: int,
        currency: str,
        order_ref: str,
        destination_account: str,
        application_fee_cents: int,
        idempotency_key: str,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> AuthorizationResult:
        """Hold ``amount_cents`` on the buyer's card without capturing it."""
        ...

    @abstractmethod
    def capture(self, authorization_id: str, idempotency_key: str) -> CaptureResult:
        """Capture an authorization. Capturing the same authorization twice returns the first capture."""
        ...

    @abstractmethod
    def cancel(self, authorization_id: str, idempotency_key: str) -> CancellationResult:
        """Void an uncaptured authorization. No funds move."""
        ...

    @abstractmethod
    def refund(
        self,
        capture_id: str,
        amount_cents: int,
        idempotency_key: str,
        reason: str | None = None,
    ) -> RefundResult:
        """Refund a captured payment."""
        ...

    @abstractmethod
    def is_destination_enabled(self, account_id: str) -> bool:
        """Whether the connected account can currently receive funds."""
        ...

    @abstractmethod
    def create_onboarding_link(
        self,
        owner_ref: str,
        refresh_url: str,
        return_url: str,
        account_id: str | None = None,
        email: str | None = None,
    ) -> OnboardingLinkResult:
        """Open a hosted onboarding page, creating the connected account when ``account_id`` is None."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """Verify a callback and return its event.

        Raises InvalidWebhookError for a bad signature or body and
        WebhookNotConfiguredError when there is nothing to verify against.
        """
        ...
