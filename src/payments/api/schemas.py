"""Pydantic schemas for payment webhooks and the gateway test controls."""

from pydantic import BaseModel


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    operation: str | None = None  # authorize, capture, cancel, refund or onboard; all when omitted


class DestinationRequest(BaseModel):
    account_id: str
    enabled: bool = True


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    overrides: dict[str, bool] = {}
    disabled_destinations: list[str] = []


class WebhookResponse(BaseModel):
    received: bool = True
    event_type: str
    handled: bool
