"""FastAPI routes for the ordering domain: chefs, dishes, carts and orders."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from ordering.access import Principal, Role, get_policy
from ordering.api.dependencies import current_principal
from ordering.api.schemas import (
    AcceptOrderResponse,
    ActiveOrderResponse,
    AddToCartRequest,
    CartIdResponse,
    CartItemResponse,
    CartResponse,
    ChangeDishPriceRequest,
    CheckoutRequest,
    CheckoutResponse,
    ChefActiveResponse,
    ChefIdResponse,
    ChefResponse,
    DishIdResponse,
    DishResponse,
    ExpireOrdersRequest,
    ExpireOrdersResponse,
    HistoryEntryResponse,
    LinkPayoutAccountRequest,
    ListDishRequest,
    OrderResponse,
    OrderStatusResponse,
    OverrideStatusRequest,
    OverrideStatusResponse,
    PayoutOnboardingResponse,
    PayoutStatusResponse,
    ReasonRequest,
    RegisterChefRequest,
    SetCartQuantityRequest,
    SetChefActiveRequest,
    SetDishAvailabilityRequest,
    StatusResponse,
    UpdateChefContactRequest,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, SetCartQuantity
from ordering.cart.management import CreateCart
from ordering.checkout.initiation import CheckoutCart
from ordering.errors import ForbiddenActorError
from ordering.kitchen.chef import Chef
from ordering.kitchen.dish import Dish
from ordering.kitchen.menu import ChangeDishPrice, ListDish, SetDishAvailability
from ordering.kitchen.moderation import SetChefActive
from ordering.kitchen.onboarding import (
    LinkPayoutAccount,
    RefreshPayoutStatus,
    RegisterChef,
    StartPayoutOnboarding,
    UpdateChefContact,
)
from ordering.order.acceptance import AcceptOrder
from ordering.order.cancellation import CancelOrder
from ordering.order.completion import ConfirmPickup
from ordering.order.expiry import ExpireStaleOrders
from ordering.order.override import OverrideOrderStatus
from ordering.order.preparation import MarkOrderReady
from ordering.order.rejection import RejectOrder
from ordering.tracking import tracker
from ordering.tracking.channel import get_channel


def _actor(principal: Principal) -> dict:
    return {
        "actor_id": principal.id,
        "actor_email": principal.email,
        "actor_is_admin": principal.is_admin,
    }


def _order_response(snapshot) -> OrderResponse:
    return OrderResponse.model_validate(snapshot.to_dict())


def _visible_order(order_id: str, principal: Principal):
    snapshot = tracker.get_order(order_id)
    if principal.id not in (snapshot.buyer_id, snapshot.seller_id) and not get_policy().is_admin(principal):
        raise ForbiddenActorError("Only the order's buyer or seller may view it")
    return snapshot


# ---------------------------------------------------------------------------
# Chef Router
# ---------------------------------------------------------------------------
chef_router = APIRouter(prefix="/chefs", tags=["chefs"])


@chef_router.post("", status_code=201, response_model=ChefIdResponse)
async def register_chef(
    body: RegisterChefRequest, principal: Principal = Depends(current_principal)
) -> ChefIdResponse:
    chef_id = body.chef_id or principal.id
    get_policy().require_role(principal, Role.SELLER)
    get_policy().require_party(principal, chef_id, "chef")
    command = RegisterChef(chef_id=chef_id, name=body.name, email=body.email, phone=body.phone)
    result = current_domain.process(command, asynchronous=False)
    return ChefIdResponse(chef_id=result)


@chef_router.get("/{chef_id}", response_model=ChefResponse)
async def get_chef(chef_id: str) -> ChefResponse:
    chef = current_domain.repository_for(Chef).get(chef_id)
    return ChefResponse(
        chef_id=str(chef.id),
        name=chef.name,
        email=chef.email,
        phone=chef.phone,
        payout_account_id=chef.payout_account_id,
        charges_enabled=bool(chef.charges_enabled),
        active=bool(chef.active),
    )


@chef_router.put("/{chef_id}/contact", response_model=StatusResponse)
async def update_chef_contact(
    chef_id: str, body: UpdateChefContactRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    get_policy().require_party(principal, chef_id, "chef")
    command = UpdateChefContact(chef_id=chef_id, name=body.name, email=body.email, phone=body.phone)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@chef_router.put("/{chef_id}/payout-account", response_model=PayoutStatusResponse)
async def link_payout_account(
    chef_id: str, body: LinkPayoutAccountRequest, principal: Principal = Depends(current_principal)
) -> PayoutStatusResponse:
    get_policy().require_party(principal, chef_id, "chef")
    command = LinkPayoutAccount(chef_id=chef_id, payout_account_id=body.payout_account_id)
    enabled = current_domain.process(command, asynchronous=False)
    return PayoutStatusResponse(chef_id=chef_id, charges_enabled=enabled)


@chef_router.post("/{chef_id}/payout-status/refresh", response_model=PayoutStatusResponse)
async def refresh_payout_status(
    chef_id: str, principal: Principal = Depends(current_principal)
) -> PayoutStatusResponse:
    get_policy().require_party(principal, chef_id, "chef")
    enabled = current_domain.process(RefreshPayoutStatus(chef_id=chef_id), asynchronous=False)
    return PayoutStatusResponse(chef_id=chef_id, charges_enabled=enabled)


@chef_router.post("/{chef_id}/payout-onboarding", response_model=PayoutOnboardingResponse)
async def start_payout_onboarding(
    chef_id: str, principal: Principal = Depends(current_principal)
) -> PayoutOnboardingResponse:
    """Hand back the processor's onboarding page for the chef's payout account."""
    get_policy().require_party(principal, chef_id, "chef")
    result = current_domain.process(StartPayoutOnboarding(chef_id=chef_id), asynchronous=False)
    return PayoutOnboardingResponse(chef_id=chef_id, payout_account_id=result["account_id"], url=result["url"])


@chef_router.put("/{chef_id}/active", response_model=ChefActiveResponse)
async def set_chef_active(
    chef_id: str, body: SetChefActiveRequest, principal: Principal = Depends(current_principal)
) -> ChefActiveResponse:
    """Suspend or reinstate a kitchen (administrators only)."""
    command = SetChefActive(chef_id=chef_id, active=body.active, note=body.note, **_actor(principal))
    active = current_domain.process(command, asynchronous=False)
    return ChefActiveResponse(chef_id=chef_id, active=active)


# ---------------------------------------------------------------------------
# Dish Router
# ---------------------------------------------------------------------------
dish_router = APIRouter(prefix="/dishes", tags=["dishes"])


@dish_router.post("", status_code=201, response_model=DishIdResponse)
async def list_dish(body: ListDishRequest, principal: Principal = Depends(current_principal)) -> DishIdResponse:
    command = ListDish(
        chef_id=body.chef_id or principal.id,
        name=body.name,
        price_cents=body.price_cents,
        description=body.description,
        image_url=body.image_url,
        **_actor(principal),
    )
    result = current_domain.process(command, asynchronous=False)
    return DishIdResponse(dish_id=result)


@dish_router.get("/{dish_id}", response_model=DishResponse)
async def get_dish(dish_id: str) -> DishResponse:
    dish = current_domain.repository_for(Dish).get(dish_id)
    return DishResponse(
        dish_id=str(dish.id),
        chef_id=str(dish.chef_id),
        name=dish.name,
        description=dish.description,
        price_cents=dish.price_cents,
        image_url=dish.image_url,
        available=bool(dish.available),
    )


@dish_router.put("/{dish_id}/price", response_model=StatusResponse)
async def change_dish_price(
    dish_id: str, body: ChangeDishPriceRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = ChangeDishPrice(dish_id=dish_id, price_cents=body.price_cents, **_actor(principal))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@dish_router.put("/{dish_id}/availability", response_model=StatusResponse)
async def set_dish_availability(
    dish_id: str, body: SetDishAvailabilityRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = SetDishAvailability(dish_id=dish_id, available=body.available, **_actor(principal))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _owned_cart(cart_id: str, principal: Principal) -> ShoppingCart:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    get_policy().require_party(principal, cart.buyer_id, "cart's buyer")
    return cart


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(principal: Principal = Depends(current_principal)) -> CartIdResponse:
    result = current_domain.process(CreateCart(buyer_id=principal.id), asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    cart = _owned_cart(cart_id, principal)
    return CartResponse(
        cart_id=str(cart.id),
        buyer_id=str(cart.buyer_id),
        seller_id=str(cart.seller_id) if cart.seller_id else None,
        status=cart.status,
        items=[
            CartItemResponse(
                dish_id=str(item.dish_id),
                dish_name=item.dish_name,
                seller_id=str(item.seller_id),
                unit_price_cents=item.unit_price_cents,
                quantity=item.quantity,
            )
            for item in cart.items
        ],
        total_cents=cart.total(),
    )


@cart_router.post("/{cart_id}/items", response_model=StatusResponse)
async def add_cart_item(
    cart_id: str, body: AddToCartRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    _owned_cart(cart_id, principal)
    command = AddToCart(cart_id=cart_id, dish_id=body.dish_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/items/{dish_id}", response_model=StatusResponse)
async def set_cart_quantity(
    cart_id: str, dish_id: str, body: SetCartQuantityRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    _owned_cart(cart_id, principal)
    command = SetCartQuantity(cart_id=cart_id, dish_id=dish_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{dish_id}", response_model=StatusResponse)
async def remove_cart_item(
    cart_id: str, dish_id: str, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    _owned_cart(cart_id, principal)
    current_domain.process(RemoveFromCart(cart_id=cart_id, dish_id=dish_id), asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items", response_model=StatusResponse)
async def clear_cart(cart_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    _owned_cart(cart_id, principal)
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/checkout", status_code=201, response_model=CheckoutResponse)
async def checkout_cart(
    cart_id: str, body: CheckoutRequest, principal: Principal = Depends(current_principal)
) -> CheckoutResponse:
    """Place an order for the cart and authorize the buyer's payment.

    The response carries the gateway page where the buyer confirms the
    payment hold.
    """
    command = CheckoutCart(
        cart_id=cart_id,
        buyer_id=principal.id,
        pickup_at=body.pickup_at,
        success_url=body.success_url,
        cancel_url=body.cancel_url,
    )
    result = current_domain.process(command, asynchronous=False)
    return CheckoutResponse(**result)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return _order_response(_visible_order(order_id, principal))


@order_router.get("/{order_id}/history", response_model=list[HistoryEntryResponse])
async def get_order_history(
    order_id: str, principal: Principal = Depends(current_principal)
) -> list[HistoryEntryResponse]:
    snapshot = _visible_order(order_id, principal)
    return [HistoryEntryResponse.model_validate(asdict(entry)) for entry in snapshot.history]


@order_router.get("/{order_id}/status", response_model=OrderStatusResponse)
async def get_order_status(order_id: str, principal: Principal = Depends(current_principal)) -> OrderStatusResponse:
    """Latest status for clients that poll instead of subscribing."""
    snapshot = _visible_order(order_id, principal)
    update = get_channel().latest(order_id)
    if update is not None and update.status == snapshot.status:
        return OrderStatusResponse(**update.to_dict())
    return OrderStatusResponse(
        order_id=snapshot.order_id,
        status=snapshot.status,
        message=snapshot.status_description,
        payment_status=snapshot.payment_status,
        occurred_at=snapshot.updated_at,
    )


@order_router.post("/{order_id}/accept", response_model=AcceptOrderResponse)
async def accept_order(order_id: str, principal: Principal = Depends(current_principal)) -> AcceptOrderResponse:
    capture_id = current_domain.process(AcceptOrder(order_id=order_id, **_actor(principal)), asynchronous=False)
    return AcceptOrderResponse(capture_id=capture_id)


@order_router.post("/{order_id}/reject", response_model=StatusResponse)
async def reject_order(
    order_id: str, body: ReasonRequest | None = None, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = RejectOrder(order_id=order_id, reason=body.reason if body else None, **_actor(principal))
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="rejected")


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(
    order_id: str, body: ReasonRequest | None = None, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason if body else None, **_actor(principal))
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


@order_router.post("/{order_id}/ready", response_model=StatusResponse)
async def mark_order_ready(order_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    current_domain.process(MarkOrderReady(order_id=order_id, **_actor(principal)), asynchronous=False)
    return StatusResponse(status="ready")


@order_router.post("/{order_id}/complete", response_model=StatusResponse)
async def confirm_pickup(order_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    current_domain.process(ConfirmPickup(order_id=order_id, **_actor(principal)), asynchronous=False)
    return StatusResponse(status="completed")


@order_router.post("/{order_id}/override", response_model=OverrideStatusResponse)
async def override_order_status(
    order_id: str, body: OverrideStatusRequest, principal: Principal = Depends(current_principal)
) -> OverrideStatusResponse:
    command = OverrideOrderStatus(order_id=order_id, status=body.status, note=body.note, **_actor(principal))
    in_sync = current_domain.process(command, asynchronous=False)
    return OverrideStatusResponse(status=body.status, payment_in_sync=in_sync)


# ---------------------------------------------------------------------------
# Buyer / Seller views
# ---------------------------------------------------------------------------
buyer_router = APIRouter(prefix="/buyers", tags=["buyers"])


@buyer_router.get("/{buyer_id}/active-order", response_model=ActiveOrderResponse)
async def get_active_order(buyer_id: str, principal: Principal = Depends(current_principal)) -> ActiveOrderResponse:
    get_policy().require_party(principal, buyer_id, "buyer")
    snapshot = tracker.get_active_order(buyer_id)
    return ActiveOrderResponse(order=_order_response(snapshot) if snapshot else None)


seller_router = APIRouter(prefix="/sellers", tags=["sellers"])


@seller_router.get("/{seller_id}/orders", response_model=list[OrderResponse])
async def list_seller_orders(
    seller_id: str,
    status: list[str] | None = Query(default=None),
    principal: Principal = Depends(current_principal),
) -> list[OrderResponse]:
    """The chef's dashboard queue, newest first."""
    get_policy().require_party(principal, seller_id, "chef")
    return [_order_response(snapshot) for snapshot in tracker.orders_for_seller(seller_id, statuses=status)]


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/expire-orders", response_model=ExpireOrdersResponse)
async def expire_orders(
    body: ExpireOrdersRequest | None = None, principal: Principal = Depends(current_principal)
) -> ExpireOrdersResponse:
    """Reject orders the chef never answered.

    Designed to be called periodically by an external scheduler. Safe to
    re-run: orders that already left ``requested`` are skipped.
    """
    get_policy().require_admin(principal)
    command = ExpireStaleOrders(
        as_of=body.as_of if body else None,
        older_than_minutes=body.older_than_minutes if body else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return ExpireOrdersResponse(**result)
