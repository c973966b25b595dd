"""Stripe payment gateway adapter.

Deferred capture with destination charges: checkout opens a Stripe
Checkout Session whose PaymentIntent uses ``capture_method="manual"``,
collects the platform fee as ``application_fee_amount`` and routes the
rest to the chef's connected account through ``transfer_data``. Capturing
the PaymentIntent moves the funds; cancelling it releases the hold.

The authorization id handed back to the domain is the Checkout Session id.
The PaymentIntent only exists once the buyer has completed the session, so
capture and cancel resolve it lazily. SDK errors never escape this module.

Chefs are Express connected accounts. Onboarding reuses the chef's account
when there is one and otherwise creates it, keyed by the chef id so a
retried request never opens a second account.
"""

import stripe
import structlog

from payments.gateway.port import (
    AuthorizationResult,
    CancellationResult,
    CaptureResult,
    InvalidWebhookError,
    OnboardingLinkResult,
    PaymentGateway,
    RefundResult,
    WebhookEvent,
    WebhookNotConfiguredError,
)

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str | None = None,
        connect_country: str = "CA",
        product_name: str = "Home chef order",
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.connect_country = connect_country
        self.product_name = product_name

    def _payment_intent_id(self, authorization_id: str) -> str | None:
        if not authorization_id.startswith("cs_"):
            return authorization_id
        session = stripe.checkout.Session.retrieve(authorization_id, api_key=self.api_key)
        payment_intent = getattr(session, "payment_intent", None)
        if payment_intent is None or isinstance(payment_intent, str):
            return payment_intent
        return payment_intent.id

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
        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                client_reference_id=order_ref,
                success_url=success_url,
                cancel_url=cancel_url,
                line_items=[
                    {
                        "quantity": 1,
                        "price_data": {
                            "currency": currency.lower(),
                            "unit_amount": amount_cents,
                            "product_data": {"name": f"{self.product_name} {order_ref}"},
                        },
                    }
                ],
                payment_intent_data={
                    "capture_method": "manual",
                    "application_fee_amount": application_fee_cents,
                    "transfer_data": {"destination": destination_account},
                    "transfer_group": f"order_{order_ref}",
                    "metadata": {"order_id": order_ref},
                },
                metadata={"order_id": order_ref},
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe authorization failed", order_ref=order_ref, error=str(exc))
            return AuthorizationResult(success=False, gateway_status="failed", failure_reason=str(exc))

        return AuthorizationResult(
            success=True,
            authorization_id=session.id,
            redirect_url=session.url,
            gateway_status=getattr(session, "status", None),
        )

    def capture(self, authorization_id: str, idempotency_key: str) -> CaptureResult:
        try:
            payment_intent_id = self._payment_intent_id(authorization_id)
            if payment_intent_id is None:
                return CaptureResult(
                    success=False,
                    gateway_status="requires_payment_method",
                    failure_reason="Buyer has not completed payment",
                )

            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
            if intent.status != "succeeded":
                intent = stripe.PaymentIntent.capture(
                    payment_intent_id,
                    api_key=self.api_key,
                    idempotency_key=idempotency_key,
                )
        except stripe.StripeError as exc:
            logger.warning("Stripe capture failed", authorization_id=authorization_id, error=str(exc))
            return CaptureResult(success=False, gateway_status="failed", failure_reason=str(exc))

        if intent.status != "succeeded":
            return CaptureResult(
                success=False,
                gateway_status=intent.status,
                failure_reason=f"Payment is {intent.status}",
            )
        return CaptureResult(
            success=True,
            capture_id=intent.id,
            transfer_id=getattr(intent, "latest_charge", None),
            gateway_status=intent.status,
        )

    def cancel(self, authorization_id: str, idempotency_key: str) -> CancellationResult:
        try:
            payment_intent_id = self._payment_intent_id(authorization_id)
            if payment_intent_id is None:
                # Buyer never paid: expiring the session releases nothing but closes it
                stripe.checkout.Session.expire(authorization_id, api_key=self.api_key)
                return CancellationResult(success=True, gateway_status="expired")

            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
            if intent.status == "canceled":
                return CancellationResult(success=True, gateway_status="canceled")
            if intent.status == "succeeded":
                return CancellationResult(
                    success=False,
                    gateway_status="succeeded",
                    failure_reason="Captured payments must be refunded",
                )
            intent = stripe.PaymentIntent.cancel(
                payment_intent_id,
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe cancellation failed", authorization_id=authorization_id, error=str(exc))
            return CancellationResult(success=False, gateway_status="failed", failure_reason=str(exc))

        return CancellationResult(success=True, gateway_status=intent.status)

    def refund(
        self,
        capture_id: str,
        amount_cents: int,
        idempotency_key: str,
        reason: str | None = None,
    ) -> RefundResult:
        try:
            refund = stripe.Refund.create(
                payment_intent=capture_id,
                amount=amount_cents,
                reverse_transfer=True,
                refund_application_fee=True,
                metadata={"reason": reason or ""},
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe refund failed", capture_id=capture_id, error=str(exc))
            return RefundResult(success=False, gateway_status="failed", failure_reason=str(exc))

        return RefundResult(success=True, refund_id=refund.id, gateway_status=refund.status)

    def is_destination_enabled(self, account_id: str) -> bool:
        if not account_id:
            return False
        try:
            account = stripe.Account.retrieve(account_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.warning("Stripe account lookup failed", account_id=account_id, error=str(exc))
            return False
        return bool(getattr(account, "charges_enabled", False))

    def create_onboarding_link(
        self,
        owner_ref: str,
        refresh_url: str,
        return_url: str,
        account_id: str | None = None,
        email: str | None = None,
    ) -> OnboardingLinkResult:
        capabilities = {"card_payments": {"requested": True}, "transfers": {"requested": True}}
        try:
            if account_id:
                stripe.Account.modify(account_id, capabilities=capabilities, api_key=self.api_key)
            else:
                account = stripe.Account.create(
                    type="express",
                    country=self.connect_country,
                    email=email,
                    business_type="individual",
                    capabilities=capabilities,
                    metadata={"app_user_id": owner_ref},
                    api_key=self.api_key,
                    idempotency_key=f"connect-account-{owner_ref}",
                )
                account_id = account.id

            link = stripe.AccountLink.create(
                account=account_id,
                type="account_onboarding",
                refresh_url=refresh_url,
                return_url=return_url,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe onboarding link failed", owner_ref=owner_ref, error=str(exc))
            return OnboardingLinkResult(success=False, account_id=account_id, failure_reason=str(exc))

        return OnboardingLinkResult(success=True, account_id=account_id, url=link.url)

    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if not self.webhook_secret:
            raise WebhookNotConfiguredError("STRIPE_WEBHOOK_SECRET is not configured")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise InvalidWebhookError(f"Signature verification failed: {exc}") from exc
        except ValueError as exc:
            raise InvalidWebhookError(f"Invalid webhook body: {exc}") from exc

        body = event.to_dict()
        return WebhookEvent(
            id=body.get("id", ""),
            type=body.get("type", ""),
            data=(body.get("data") or {}).get("object") or {},
        )
