"""Configurable fake payment gateway for development and testing.

Simulates deferred-capture payments in memory. It can be told to fail a
single operation (``configure(False, operation="capture")``) or every
operation, and to treat particular destination accounts as not yet able
to receive funds. Every call is recorded in ``calls``.

Like the real processor it is idempotent: repeating an authorization with
the same idempotency key returns the original authorization, and capturing
an already-captured authorization returns the original capture id.
Webhooks are accepted when signed with ``WEBHOOK_SIGNATURE``.
"""

import json
from uuid import uuid4

from payments.gateway.port import (
    AuthorizationResult,
    CancellationResult,
    CaptureResult,
    InvalidWebhookError,
    OnboardingLinkResult,
    PaymentGateway,
    RefundResult,
    WebhookEvent,
)

OPERATIONS = ("authorize", "capture", "cancel", "refund", "onboard")
WEBHOOK_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self.disabled_destinations: set[str] = set()
        self._overrides: dict[str, tuple[bool, str]] = {}
        self._authorizations: dict[str, dict] = {}
        self._by_idempotency_key: dict[str, AuthorizationResult] = {}
        self.accounts: dict[str, str] = {}

    # -------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------
    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        operation: str | None = None,
    ) -> None:
        """Configure gateway behavior at runtime, for one operation or all of them."""
        if operation is None:
            self.should_succeed = should_succeed
            self.failure_reason = failure_reason
            self._overrides.clear()
            return
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown gateway operation: {operation}")
        self._overrides[operation] = (should_succeed, failure_reason)

    def set_destination_enabled(self, account_id: str, enabled: bool) -> None:
        if enabled:
            self.disabled_destinations.discard(account_id)
        else:
            self.disabled_destinations.add(account_id)

    @property
    def overrides(self) -> dict[str, bool]:
        """Per-operation outcomes that differ from the default."""
        return {operation: succeed for operation, (succeed, _) in self._overrides.items()}

    def calls_for(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    def status_of(self, authorization_id: str) -> str | None:
        record = self._authorizations.get(authorization_id)
        return record["status"] if record else None

    def _outcome(self, operation: str) -> tuple[bool, str]:
        return self._overrides.get(operation, (self.should_succeed, self.failure_reason))

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
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
        self.calls.append(
            {
                "method": "authorize",
                "amount_cents": amount_cents,
                "currency": currency,
                "order_ref": order_ref,
                "destination_account": destination_account,
                "application_fee_cents": application_fee_cents,
                "idempotency_key": idempotency_key,
            }
        )

        if idempotency_key in self._by_idempotency_key:
            return self._by_idempotency_key[idempotency_key]

        succeed, reason = self._outcome("authorize")
        if not succeed:
            return AuthorizationResult(success=False, gateway_status="failed", failure_reason=reason)

        authorization_id = f"fake_auth_{uuid4().hex[:12]}"
        self._authorizations[authorization_id] = {
            "status": "requires_capture",
            "amount_cents": amount_cents,
            "capture_id": None,
        }
        result = AuthorizationResult(
            success=True,
            authorization_id=authorization_id,
            redirect_url=f"https://fake-gateway.local/checkout/{authorization_id}",
            gateway_status="requires_capture",
        )
        self._by_idempotency_key[idempotency_key] = result
        return result

    def capture(self, authorization_id: str, idempotency_key: str) -> CaptureResult:
        self.calls.append(
            {
                "method": "capture",
                "authorization_id": authorization_id,
                "idempotency_key": idempotency_key,
            }
        )

        record = self._authorizations.get(authorization_id)
        if record is None:
            return CaptureResult(success=False, gateway_status="failed", failure_reason="Unknown authorization")
        if record["status"] == "succeeded":
            return CaptureResult(
                success=True,
                capture_id=record["capture_id"],
                transfer_id=record["capture_id"],
                gateway_status="succeeded",
            )
        if record["status"] == "canceled":
            return CaptureResult(success=False, gateway_status="canceled", failure_reason="Authorization was canceled")

        succeed, reason = self._outcome("capture")
        if not succeed:
            return CaptureResult(success=False, gateway_status="failed", failure_reason=reason)

        capture_id = f"fake_cap_{uuid4().hex[:12]}"
        record["status"] = "succeeded"
        record["capture_id"] = capture_id
        return CaptureResult(
            success=True,
            capture_id=capture_id,
            transfer_id=capture_id,
            gateway_status="succeeded",
        )

    def cancel(self, authorization_id: str, idempotency_key: str) -> CancellationResult:
        self.calls.append(
            {
                "method": "cancel",
                "authorization_id": authorization_id,
                "idempotency_key": idempotency_key,
            }
        )

        record = self._authorizations.get(authorization_id)
        if record is not None and record["status"] == "canceled":
            return CancellationResult(success=True, gateway_status="canceled")
        if record is not None and record["status"] == "succeeded":
            return CancellationResult(
                success=False,
                gateway_status="succeeded",
                failure_reason="Captured payments must be refunded",
            )

        succeed, reason = self._outcome("cancel")
        if not succeed:
            return CancellationResult(success=False, gateway_status="failed", failure_reason=reason)

        if record is not None:
            record["status"] = "canceled"
        return CancellationResult(success=True, gateway_status="canceled")

    def refund(
        self,
        capture_id: str,
        amount_cents: int,
        idempotency_key: str,
        reason: str | None = None,
    ) -> RefundResult:
        self.calls.append(
            {
                "method": "refund",
                "capture_id": capture_id,
                "amount_cents": amount_cents,
                "idempotency_key": idempotency_key,
                "reason": reason,
            }
        )

        succeed, failure_reason = self._outcome("refund")
        if not succeed:
            return RefundResult(success=False, gateway_status="failed", failure_reason=failure_reason)
        return RefundResult(
            success=True,
            refund_id=f"fake_ref_{uuid4().hex[:12]}",
            gateway_status="succeeded",
        )

    def is_destination_enabled(self, account_id: str) -> bool:
        self.calls.append({"method": "is_destination_enabled", "account_id": account_id})
        return bool(account_id) and account_id not in self.disabled_destinations

    def create_onboarding_link(
        self,
        owner_ref: str,
        refresh_url: str,
        return_url: str,
        account_id: str | None = None,
        email: str | None = None,
    ) -> OnboardingLinkResult:
        self.calls.append(
            {
                "method": "create_onboarding_link",
                "owner_ref": owner_ref,
                "account_id": account_id,
                "email": email,
                "refresh_url": refresh_url,
                "return_url": return_url,
            }
        )

        succeed, reason = self._outcome("onboard")
        if not succeed:
            return OnboardingLinkResult(success=False, failure_reason=reason)

        # One account per seller, like an idempotent account creation
        account_id = account_id or self.accounts.get(owner_ref) or f"acct_fake_{uuid4().hex[:12]}"
        self.accounts[owner_ref] = account_id
        return OnboardingLinkResult(
            success=True,
            account_id=account_id,
            url=f"https://fake-gateway.local/onboarding/{account_id}",
        )

    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if signature != WEBHOOK_SIGNATURE:
            raise InvalidWebhookError("Invalid webhook signature")
        try:
            body = json.loads(payload)
        except ValueError as exc:
            raise InvalidWebhookError("Webhook body is not JSON") from exc
        if not isinstance(body, dict) or not body.get("type"):
            raise InvalidWebhookError("Webhook body has no event type")
        return WebhookEvent(
            id=body.get("id") or f"evt_fake_{uuid4().hex[:12]}",
            type=body["type"],
            data=(body.get("data") or {}).get("object") or {},
        )
