"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
Events are persisted to the event store and used for:
- Rebuilding aggregate state via @apply (event sourcing)
- Updating the tracking projections via projectors
- Pushing live status updates to buyers
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A buyer checked out a cart; the order waits for the chef's decision."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    cart_id = Identifier()
    items = Text(required=True)  # JSON: list of line item dicts
    total_cents = Integer(required=True)
    platform_fee_cents = Integer(required=True)
    currency = String(default="USD")
    pickup_at = DateTime(required=True)
    created_at = DateTime(required=True)
    expires_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentAuthorized:
    """The buyer's payment is on hold, to be captured when the chef accepts."""

    __version__ = 1

    order_id = Identifier(required=True)
    authorization_id = String(required=True)
    redirect_url = String(max_length=2048)
    amount_cents = Integer(required=True)
    authorized_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderAccepted:
    """The chef accepted; the payment was captured and sent to the chef's account."""

    __version__ = 1

    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    capture_id = String(required=True)
    transfer_id = String()
    transfer_destination = String()
    total_cents = Integer(required=True)
    platform_fee_cents = Integer(required=True)
    seller_net_cents = Integer(required=True)
    accepted_by = Identifier(required=True)
    accepted_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRejected:
    """The chef declined, or nobody answered in time. The hold was voided, or a capture refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(max_length=500)
    rejected_by = Identifier(required=True)
    expired = Boolean(default=False)
    refund_id = String()
    refund_amount_cents = Integer()
    rejected_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was called off. Before acceptance the hold is voided; after it, the capture is refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(max_length=500)
    cancelled_by = Identifier(required=True)
    refund_id = String()
    refund_amount_cents = Integer()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderMarkedReady:
    """The food is ready for pickup."""

    __version__ = 1

    order_id = Identifier(required=True)
    marked_by = Identifier(required=True)
    ready_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCompleted:
    """The buyer confirmed pickup."""

    __version__ = 1

    order_id = Identifier(required=True)
    completed_by = Identifier(required=True)
    completed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusOverridden:
    """An administrator set the status directly, without payment side effects."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    overridden_by = Identifier(required=True)
    note = String(max_length=500)
    payment_in_sync = Boolean(required=True)
    overridden_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentStatusReported:
    """The payment processor reported a change to the order's payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    gateway_status = String(required=True)
    payment_intent_id = String()
    payment_in_sync = Boolean(required=True)
    reported_at = DateTime(required=True)
