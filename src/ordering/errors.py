"""Business errors raised by the ordering context.

Every error is a Protean ``ValidationError`` carrying the usual
``{field: [messages]}`` payload, so command handlers and the unit of work
treat them like any other validation failure. ``status_code`` tells the
HTTP layer how to surface each one.
"""

from protean.exceptions import ValidationError


class OrderingError(ValidationError):
    status_code = 400
    field = "order"
    default_message = "The request could not be completed"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        super().__init__({field or self.field: [message or self.default_message]})

    @property
    def code(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# Cart and checkout validation
# ---------------------------------------------------------------------------
class EmptyCartError(OrderingError):
    field = "cart"
    default_message = "Cart is empty"


class DifferentSellerError(OrderingError):
    status_code = 409
    field = "seller_id"
    default_message = "Cart already holds dishes from another chef"


class MultiSellerCartError(OrderingError):
    status_code = 422
    field = "cart"
    default_message = "All items must belong to the selected chef"


class InvalidPickupError(OrderingError):
    status_code = 422
    field = "pickup_at"
    default_message = "Pickup must be within the next 7 days between 08:00 and 20:00"


class UnavailableDishError(OrderingError):
    status_code = 422
    field = "dish_id"
    default_message = "Dish is not available"


class SellerNotOnboardedError(OrderingError):
    status_code = 409
    field = "seller_id"
    default_message = "Chef has not completed payouts onboarding"


class ChefSuspendedError(OrderingError):
    status_code = 409
    field = "seller_id"
    default_message = "This kitchen is not taking orders right now"


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------
class InvalidTransitionError(OrderingError):
    status_code = 409
    field = "status"
    default_message = "Transition is not allowed"


class ForbiddenActorError(InvalidTransitionError):
    status_code = 403
    field = "actor_id"
    default_message = "You are not allowed to perform this action on the order"


class AlreadyCapturedError(InvalidTransitionError):
    field = "payment"
    default_message = "Order already accepted"


# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------
class PaymentAuthorizationError(OrderingError):
    status_code = 402
    field = "payment"
    default_message = "Payment authorization failed"


class PaymentCaptureError(OrderingError):
    status_code = 502
    field = "payment"
    default_message = "Payment capture failed"


class PaymentCancellationError(OrderingError):
    status_code = 502
    field = "payment"
    default_message = "Payment cancellation failed"


class PayoutOnboardingError(OrderingError):
    status_code = 502
    field = "payout_account_id"
    default_message = "Could not start payouts onboarding"
