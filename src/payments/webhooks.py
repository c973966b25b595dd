"""Translate verified processor callbacks into ordering commands.

Connected-account updates keep the chef's payout readiness current.
Checkout and payment-intent events are recorded on the order they name.
Anything else is acknowledged and logged so the processor stops retrying.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.kitchen.onboarding import SyncPayoutAccount
from ordering.order.gateway_report import RecordGatewayPaymentStatus
from payments.gateway.port import WebhookEvent

logger = structlog.get_logger(__name__)

ACCOUNT_EVENTS = ("account.created", "account.updated")

# event type -> payment status the processor is reporting
PAYMENT_EVENTS = {
    "checkout.session.completed": "requires_capture",
    "payment_intent.amount_capturable_updated": "requires_capture",
    "payment_intent.succeeded": "succeeded",
    "payment_intent.canceled": "canceled",
    "payment_intent.payment_failed": "failed",
}


def _order_id(data: dict) -> str | None:
    return data.get("client_reference_id") or (data.get("metadata") or {}).get("order_id")


def _payment_intent_id(event: WebhookEvent) -> str | None:
    if event.type.startswith("payment_intent."):
        return event.data.get("id")
    payment_intent = event.data.get("payment_intent")
    if isinstance(payment_intent, dict):
        return payment_intent.get("id")
    return payment_intent


def _sync_account(event: WebhookEvent) -> bool:
    account_id = event.data.get("id")
    if not account_id:
        logger.warning("Account event without an account id", event_id=event.id)
        return False

    command = SyncPayoutAccount(
        payout_account_id=account_id,
        charges_enabled=bool(event.data.get("charges_enabled")),
        chef_id=(event.data.get("metadata") or {}).get("app_user_id"),
    )
    return current_domain.process(command, asynchronous=False) is not None


def _record_payment(event: WebhookEvent) -> bool:
    order_id = _order_id(event.data)
    if not order_id:
        logger.warning("Payment event without an order reference", event_id=event.id, event_type=event.type)
        return False

    command = RecordGatewayPaymentStatus(
        order_id=order_id,
        gateway_status=PAYMENT_EVENTS[event.type],
        payment_intent_id=_payment_intent_id(event),
    )
    try:
        current_domain.process(command, asynchronous=False)
    except ObjectNotFoundError:
        logger.warning("Payment event for an unknown order", event_id=event.id, order_id=order_id)
        return False
    return True


def dispatch(event: WebhookEvent) -> bool:
    """Apply one callback. Returns whether it changed or confirmed anything of ours."""
    logger.info("Webhook received", event_id=event.id, event_type=event.type)
    if event.type in ACCOUNT_EVENTS:
        return _sync_account(event)
    if event.type in PAYMENT_EVENTS:
        return _record_payment(event)

    logger.info("Unhandled webhook event", event_id=event.id, event_type=event.type)
    return False
