"""FastAPI routes for payment processor callbacks and the fake gateway controls.

The webhook endpoint verifies the processor's signature against the raw
request body before anything is dispatched. The gateway controls are only
available outside production; they are used for manual API testing and
demos (declined cards, failed captures, chefs whose payout account is not
yet enabled).
"""

import os

import structlog
from fastapi import APIRouter, Header, HTTPException, Request

from payments.api.schemas import (
    ConfigureGatewayRequest,
    DestinationRequest,
    GatewayConfigResponse,
    WebhookResponse,
)
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import InvalidWebhookError, WebhookNotConfiguredError
from payments.webhooks import dispatch

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhooks/stripe", response_model=WebhookResponse)
async def stripe_webhook(request: Request, stripe_signature: str = Header(default="")) -> WebhookResponse:
    """Receive a payment processor callback."""
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    payload = await request.body()
    try:
        event = get_gateway().parse_webhook(payload, stripe_signature)
    except WebhookNotConfiguredError as exc:
        logger.error("Webhook received but not configured", error=str(exc))
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except InvalidWebhookError as exc:
        logger.warning("Webhook rejected", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return WebhookResponse(event_type=event.type, handled=dispatch(event))


def _fake_gateway() -> FakeGateway:
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")
    return gateway


def _config(gateway: FakeGateway) -> GatewayConfigResponse:
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        overrides=gateway.overrides,
        disabled_destinations=sorted(gateway.disabled_destinations),
    )


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Make the fake gateway succeed or fail, for one operation or all of them."""
    gateway = _fake_gateway()
    try:
        gateway.configure(
            should_succeed=body.should_succeed,
            failure_reason=body.failure_reason,
            operation=body.operation,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _config(gateway)


@payment_router.post("/gateway/destinations", response_model=GatewayConfigResponse)
async def set_destination(body: DestinationRequest) -> GatewayConfigResponse:
    """Enable or disable a payout account for receiving funds."""
    gateway = _fake_gateway()
    gateway.set_destination_enabled(body.account_id, body.enabled)
    return _config(gateway)
