"""Order aggregate (Event Sourced): the core of the ordering domain.

The Order uses event sourcing: every state change is captured as a domain
event and the current state is rebuilt by replaying events via @apply.
Appending against the loaded version means two racing writers cannot both
move an order out of the same state.

State Machine:
    requested → pending → ready → completed
    requested → rejected (chef declines or acceptance deadline passes)
    requested → cancelled (buyer or chef calls it off before acceptance)
    pending   → cancelled (chef calls it off after acceptance; payment refunded)

Payment follows the status: the buyer's card is authorized at checkout,
captured exactly once on acceptance, voided on rejection or early
cancellation and refunded on late cancellation. Admin overrides move the
status without touching payment and record whether the two still agree;
rejecting or cancelling such an order refunds any capture it kept.
Reports from the payment processor are recorded the same way: no money
moves, and a report that disagrees with the order clears the flag.
"""

import json
from datetime import datetime, timedelta
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.errors import AlreadyCapturedError, InvalidTransitionError
from ordering.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCompleted,
    OrderMarkedReady,
    OrderPlaced,
    OrderRejected,
    OrderStatusOverridden,
    PaymentAuthorized,
    PaymentStatusReported,
)
from ordering.order.pricing import seller_net_cents
from ordering.utils.clock import as_utc, utcnow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    REQUESTED = "requested"
    PENDING = "pending"
    READY = "ready"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    REQUIRES_CAPTURE = "requires_capture"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"
    REFUNDED = "refunded"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.REQUESTED: {OrderStatus.PENDING, OrderStatus.REJECTED, OrderStatus.CANCELLED},
    OrderStatus.PENDING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.REJECTED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATUSES = frozenset(status for status, targets in _VALID_TRANSITIONS.items() if not targets)
ACTIVE_STATUSES = frozenset({OrderStatus.REQUESTED, OrderStatus.PENDING, OrderStatus.READY})

# How far along each processor-reported status is; older reports are ignored
GATEWAY_PROGRESS = {"requires_capture": 0, "succeeded": 1, "canceled": 1, "failed": 1}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLineItem:
    """A dish and quantity, with the price copied from the menu at checkout.

    Later menu price edits never change a placed order.
    """

    dish_id = Identifier(required=True)
    dish_name = String(max_length=200)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@ordering.aggregate(is_event_sourced=True)
class Order:
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    cart_id = Identifier()
    status = String(
        choices=OrderStatus,
        default=OrderStatus.REQUESTED.value,
    )
    items = HasMany(OrderLineItem)
    total_cents = Integer(default=0)
    platform_fee_cents = Integer(default=0)
    seller_net_cents = Integer()
    currency = String(max_length=3, default="USD")
    pickup_at = DateTime()
    created_at = DateTime()
    expires_at = DateTime()
    updated_at = DateTime()
    payment_authorization_id = String(max_length=255)
    payment_redirect = String(max_length=2048)
    payment_capture_id = String(max_length=255)
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.REQUIRES_PAYMENT_METHOD.value,
    )
    transfer_destination = String(max_length=255)
    transfer_id = String(max_length=255)
    refund_id = String(max_length=255)
    reason = String(max_length=500)
    last_changed_by = Identifier()
    payment_in_sync = Boolean(default=True)
    gateway_payment_status = String(max_length=50)
    payment_intent_id = String(max_length=255)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        buyer_id,
        seller_id,
        lines,
        total_cents,
        platform_fee_cents,
        pickup_at,
        acceptance_timeout_minutes,
        currency="USD",
        cart_id=None,
    ):
        """Create a new order in ``requested`` from checkout data.

        Uses _create_new() to get a blank aggregate with auto-generated
        identity. All state is established by the OrderPlaced event's
        @apply handler.

        Args:
            lines: List of dicts with dish_id, dish_name, quantity, unit_price_cents.
        """
        now = utcnow()

        # Pre-generate line ids for deterministic replay
        lines_with_ids = [{**line, "id": str(uuid4())} for line in lines]

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id),
                seller_id=str(seller_id),
                cart_id=str(cart_id) if cart_id else None,
                items=json.dumps(lines_with_ids),
                total_cents=total_cents,
                platform_fee_cents=platform_fee_cents,
                currency=currency,
                pickup_at=pickup_at,
                created_at=now,
                expires_at=now + timedelta(minutes=acceptance_timeout_minutes),
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATUSES

    @property
    def has_live_authorization(self) -> bool:
        return (
            bool(self.payment_authorization_id)
            and not self.payment_capture_id
            and self.payment_status == PaymentStatus.REQUIRES_CAPTURE.value
        )

    def is_overdue(self, as_of: datetime) -> bool:
        return self.expires_at is not None and as_utc(self.expires_at) <= as_utc(as_of)

    def can_transition_to(self, target_status: OrderStatus) -> bool:
        return target_status in _VALID_TRANSITIONS.get(self.current_status, set())

    # -------------------------------------------------------------------
    # State transition guards
    # -------------------------------------------------------------------
    def assert_can_transition(self, target_status: OrderStatus):
        """Validate that the current state allows transition to target."""
        if not self.can_transition_to(target_status):
            raise InvalidTransitionError(
                f"Cannot transition from {self.current_status.value} to {target_status.value}"
            )

    def assert_can_accept(self):
        """Acceptance guard, checked before the payment is captured."""
        if self.payment_capture_id:
            raise AlreadyCapturedError()
        self.assert_can_transition(OrderStatus.PENDING)
        if not self.payment_authorization_id:
            raise InvalidTransitionError("Order has no payment authorization to capture", field="payment")

    def _payment_agrees_with(self, status: OrderStatus) -> bool:
        payment_status = self.payment_status
        if status in (OrderStatus.PENDING, OrderStatus.READY, OrderStatus.COMPLETED):
            return bool(self.payment_capture_id) and payment_status == PaymentStatus.SUCCEEDED.value
        if status in (OrderStatus.REJECTED, OrderStatus.CANCELLED):
            return payment_status in (PaymentStatus.CANCELED.value, PaymentStatus.REFUNDED.value)
        return self.has_live_authorization

    def _gateway_agrees_with(self, gateway_status: str) -> bool:
        if gateway_status == "succeeded":
            return self.payment_status in (PaymentStatus.SUCCEEDED.value, PaymentStatus.REFUNDED.value)
        if gateway_status in ("canceled", "failed"):
            return self.payment_status == PaymentStatus.CANCELED.value
        return True

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def record_authorization(self, authorization_id, redirect_url=None):
        """Record the deferred-capture hold granted by the payment gateway."""
        if self.payment_authorization_id:
            raise InvalidTransitionError("Payment is already authorized", field="payment")
        self.assert_can_transition(OrderStatus.PENDING)

        self.raise_(
            PaymentAuthorized(
                order_id=str(self.id),
                authorization_id=authorization_id,
                redirect_url=redirect_url,
                amount_cents=self.total_cents,
                authorized_at=utcnow(),
            )
        )

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def accept(self, capture_id, accepted_by, transfer_destination=None, transfer_id=None):
        """Record the chef's acceptance once the payment has been captured."""
        self.assert_can_accept()
        self.raise_(
            OrderAccepted(
                order_id=str(self.id),
                seller_id=str(self.seller_id),
                capture_id=capture_id,
                transfer_id=transfer_id,
                transfer_destination=transfer_destination,
                total_cents=self.total_cents,
                platform_fee_cents=self.platform_fee_cents,
                seller_net_cents=seller_net_cents(self.total_cents, self.platform_fee_cents),
                accepted_by=str(accepted_by),
                accepted_at=utcnow(),
            )
        )

    def reject(self, reason, rejected_by, expired=False, refund_id=None):
        """Record a rejection once the hold is voided or the capture refunded."""
        self.assert_can_transition(OrderStatus.REJECTED)
        self.raise_(
            OrderRejected(
                order_id=str(self.id),
                reason=reason,
                rejected_by=str(rejected_by),
                expired=expired,
                refund_id=refund_id,
                refund_amount_cents=self.total_cents if refund_id else None,
                rejected_at=utcnow(),
            )
        )

    def cancel(self, reason, cancelled_by, refund_id=None):
        """Record a cancellation once the hold is voided or the capture refunded."""
        self.assert_can_transition(OrderStatus.CANCELLED)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=self.status,
                reason=reason,
                cancelled_by=str(cancelled_by),
                refund_id=refund_id,
                refund_amount_cents=self.total_cents if refund_id else None,
                cancelled_at=utcnow(),
            )
        )

    def mark_ready(self, marked_by):
        self.assert_can_transition(OrderStatus.READY)
        self.raise_(
            OrderMarkedReady(
                order_id=str(self.id),
                marked_by=str(marked_by),
                ready_at=utcnow(),
            )
        )

    def complete(self, completed_by):
        """The buyer picked the order up."""
        self.assert_can_transition(OrderStatus.COMPLETED)
        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                completed_by=str(completed_by),
                completed_at=utcnow(),
            )
        )

    def override_status(self, new_status: OrderStatus, overridden_by, note=None) -> bool:
        """Set the status directly. No capture, void or refund is performed.

        Returns whether payment state still agrees with the new status.
        """
        if self.is_terminal:
            raise InvalidTransitionError(f"Cannot override a {self.status} order")
        if new_status == self.current_status:
            raise InvalidTransitionError(f"Order is already {self.status}")

        in_sync = self._payment_agrees_with(new_status)
        self.raise_(
            OrderStatusOverridden(
                order_id=str(self.id),
                previous_status=self.status,
                new_status=new_status.value,
                overridden_by=str(overridden_by),
                note=note,
                payment_in_sync=in_sync,
                overridden_at=utcnow(),
            )
        )
        return in_sync

    def record_gateway_status(self, gateway_status: str, payment_intent_id=None) -> bool:
        """Record what the processor says about the payment. No money moves.

        Repeated or out-of-order reports are ignored. A report that contradicts
        the order's own payment status clears ``payment_in_sync``.
        Returns whether the report was recorded.
        """
        if gateway_status not in GATEWAY_PROGRESS:
            raise InvalidTransitionError(f"Unknown gateway status {gateway_status!r}", field="payment")
        current = self.gateway_payment_status
        if current == gateway_status:
            return False
        if current in GATEWAY_PROGRESS and GATEWAY_PROGRESS[current] > GATEWAY_PROGRESS[gateway_status]:
            return False

        self.raise_(
            PaymentStatusReported(
                order_id=str(self.id),
                gateway_status=gateway_status,
                payment_intent_id=payment_intent_id or self.payment_intent_id,
                payment_in_sync=bool(self.payment_in_sync) and self._gateway_agrees_with(gateway_status),
                reported_at=utcnow(),
            )
        )
        return True

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.buyer_id = event.buyer_id
        self.seller_id = event.seller_id
        self.cart_id = event.cart_id
        self.status = OrderStatus.REQUESTED.value
        self.total_cents = event.total_cents
        self.platform_fee_cents = event.platform_fee_cents
        self.currency = event.currency or "USD"
        self.pickup_at = event.pickup_at
        self.created_at = event.created_at
        self.expires_at = event.expires_at
        self.updated_at = event.created_at
        self.payment_status = PaymentStatus.REQUIRES_PAYMENT_METHOD.value
        self.payment_in_sync = True

        # Reconstruct line items from JSON (includes IDs for deterministic replay)
        lines = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [OrderLineItem(**line) for line in lines]

    @apply
    def _on_payment_authorized(self, event: PaymentAuthorized):
        self.payment_authorization_id = event.authorization_id
        self.payment_redirect = event.redirect_url
        self.payment_status = PaymentStatus.REQUIRES_CAPTURE.value
        self.updated_at = event.authorized_at

    @apply
    def _on_order_accepted(self, event: OrderAccepted):
        self.status = OrderStatus.PENDING.value
        self.payment_capture_id = event.capture_id
        self.payment_status = PaymentStatus.SUCCEEDED.value
        self.transfer_destination = event.transfer_destination
        self.transfer_id = event.transfer_id
        self.seller_net_cents = event.seller_net_cents
        self.last_changed_by = event.accepted_by
        self.payment_in_sync = True
        self.updated_at = event.accepted_at

    @apply
    def _on_order_rejected(self, event: OrderRejected):
        self.status = OrderStatus.REJECTED.value
        if event.refund_id:
            self.refund_id = event.refund_id
            self.payment_status = PaymentStatus.REFUNDED.value
        else:
            self.payment_status = PaymentStatus.CANCELED.value
        self.reason = event.reason
        self.last_changed_by = event.rejected_by
        self.payment_in_sync = True
        self.updated_at = event.rejected_at

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.status = OrderStatus.CANCELLED.value
        if event.refund_id:
            self.refund_id = event.refund_id
            self.payment_status = PaymentStatus.REFUNDED.value
        else:
            self.payment_status = PaymentStatus.CANCELED.value
        self.reason = event.reason
        self.last_changed_by = event.cancelled_by
        self.payment_in_sync = True
        self.updated_at = event.cancelled_at

    @apply
    def _on_order_marked_ready(self, event: OrderMarkedReady):
        self.status = OrderStatus.READY.value
        self.last_changed_by = event.marked_by
        self.updated_at = event.ready_at

    @apply
    def _on_order_completed(self, event: OrderCompleted):
        self.status = OrderStatus.COMPLETED.value
        self.last_changed_by = event.completed_by
        self.updated_at = event.completed_at

    @apply
    def _on_status_overridden(self, event: OrderStatusOverridden):
        self.status = event.new_status
        self.reason = event.note
        self.last_changed_by = event.overridden_by
        self.payment_in_sync = event.payment_in_sync
        self.updated_at = event.overridden_at

    @apply
    def _on_payment_status_reported(self, event: PaymentStatusReported):
        self.gateway_payment_status = event.gateway_status
        self.payment_intent_id = event.payment_intent_id
        self.payment_in_sync = event.payment_in_sync
