"""Checkout: turn a buyer's cart into a requested order with a payment hold.

The order only becomes durable once the payment gateway has granted a
deferred-capture authorization. If authorization fails nothing is
persisted and the cart stays open, so there is never a ``requested``
order without a hold for the chef's acceptance to capture.

Validation runs in a fixed order: cart ownership and state, emptiness,
pickup time, single seller, dish availability, the chef being active
and onboarded, then quantities and total.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.domain import ordering
from ordering.errors import (
    ChefSuspendedError,
    EmptyCartError,
    ForbiddenActorError,
    InvalidPickupError,
    MultiSellerCartError,
    PaymentAuthorizationError,
    SellerNotOnboardedError,
    UnavailableDishError,
)
from ordering.kitchen.chef import Chef
from ordering.kitchen.dish import Dish
from ordering.order.order import Order
from ordering.order.pricing import platform_fee_cents
from ordering.pickup.window import PickupScheduler
from ordering.settings import get_settings
from payments.gateway import get_gateway

logger = structlog.get_logger(__name__)

MAX_LINE_QUANTITY = 99


@ordering.command(part_of="Order")
class CheckoutCart:
    cart_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    pickup_at = String(required=True, max_length=64)  # ISO-8601; validated by the pickup window
    success_url = String(max_length=2048)
    cancel_url = String(max_length=2048)


def _single_seller(cart) -> str:
    sellers = cart.seller_ids()
    if len(sellers) != 1:
        raise MultiSellerCartError()
    seller_id = next(iter(sellers))
    if cart.seller_id and str(cart.seller_id) != seller_id:
        raise MultiSellerCartError()
    return seller_id


def _price_lines(cart, seller_id) -> list[dict]:
    """Snapshot every line at the dish's current menu price."""
    dish_repo = current_domain.repository_for(Dish)
    lines = []
    for item in cart.items:
        try:
            dish = dish_repo.get(str(item.dish_id))
        except ObjectNotFoundError as exc:
            raise UnavailableDishError(f"Dish {item.dish_id} no longer exists") from exc

        if str(dish.chef_id) != seller_id:
            raise MultiSellerCartError()
        if not dish.available:
            raise UnavailableDishError(f"{dish.name} is no longer available")
        if not 1 <= item.quantity <= MAX_LINE_QUANTITY:
            raise ValidationError({"quantity": [f"Quantity must be between 1 and {MAX_LINE_QUANTITY}"]})

        lines.append(
            {
                "dish_id": str(dish.id),
                "dish_name": dish.name,
                "quantity": item.quantity,
                "unit_price_cents": dish.price_cents,
            }
        )
    return lines


def _payout_account(seller_id) -> str:
    try:
        chef = current_domain.repository_for(Chef).get(seller_id)
    except ObjectNotFoundError as exc:
        raise SellerNotOnboardedError("Chef profile not found") from exc
    if not chef.active:
        raise ChefSuspendedError()
    if not chef.is_onboarded:
        raise SellerNotOnboardedError()
    return chef.payout_account_id


@ordering.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(CheckoutCart)
    def checkout(self, command):
        settings = get_settings()

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.get(command.cart_id)
        if str(cart.buyer_id) != str(command.buyer_id):
            raise ForbiddenActorError("Only the cart's buyer may check it out")
        if CartStatus(cart.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": ["Cart has already been checked out"]})
        if cart.is_empty:
            raise EmptyCartError()

        scheduler = PickupScheduler(settings=settings)
        if not scheduler.validate(command.pickup_at):
            raise InvalidPickupError()
        pickup_at = scheduler.normalize(command.pickup_at)

        seller_id = _single_seller(cart)
        lines = _price_lines(cart, seller_id)
        destination = _payout_account(seller_id)

        total = sum(line["unit_price_cents"] * line["quantity"] for line in lines)
        if total <= 0:
            raise ValidationError({"total": ["Order total must be greater than zero"]})
        fee = platform_fee_cents(total, settings)

        order = Order.place(
            buyer_id=command.buyer_id,
            seller_id=seller_id,
            lines=lines,
            total_cents=total,
            platform_fee_cents=fee,
            pickup_at=pickup_at,
            acceptance_timeout_minutes=settings.acceptance_timeout_minutes,
            currency=settings.currency,
            cart_id=command.cart_id,
        )

        result = get_gateway().authorize(
            amount_cents=total,
            currency=settings.currency,
            order_ref=str(order.id),
            destination_account=destination,
            application_fee_cents=fee,
            idempotency_key=f"order-session-{order.id}",
            success_url=command.success_url or settings.checkout_success_url,
            cancel_url=command.cancel_url or settings.checkout_cancel_url,
        )
        if not result.success:
            logger.warning(
                "Payment authorization failed, order discarded",
                order_id=str(order.id),
                cart_id=str(command.cart_id),
                reason=result.failure_reason,
            )
            raise PaymentAuthorizationError(result.failure_reason)

        order.record_authorization(result.authorization_id, result.redirect_url)
        current_domain.repository_for(Order).add(order)

        cart.mark_checked_out(order.id)
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            buyer_id=str(command.buyer_id),
            seller_id=seller_id,
            total_cents=total,
            platform_fee_cents=fee,
        )
        return {"order_id": str(order.id), "payment_redirect": result.redirect_url}
