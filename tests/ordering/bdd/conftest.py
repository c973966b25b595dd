"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json
from datetime import timedelta

import pytest
from ordering.order.acceptance import AcceptOrder
from ordering.order.cancellation import CancelOrder
from ordering.order.completion import ConfirmPickup
from ordering.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCompleted,
    OrderMarkedReady,
    OrderPlaced,
    OrderRejected,
    OrderStatusOverridden,
    PaymentAuthorized,
)
from ordering.order.order import Order
from ordering.order.preparation import MarkOrderReady
from ordering.utils.clock import utcnow
from protean.exceptions import ValidationError
from protean.testing import given as given_
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "PaymentAuthorized": PaymentAuthorized,
    "OrderAccepted": OrderAccepted,
    "OrderRejected": OrderRejected,
    "OrderCancelled": OrderCancelled,
    "OrderMarkedReady": OrderMarkedReady,
    "OrderCompleted": OrderCompleted,
    "OrderStatusOverridden": OrderStatusOverridden,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_id():
    return "ord-001"


@pytest.fixture()
def error():
    """Container for captured validation errors (used by checkout tests)."""
    return {"exc": None}


@pytest.fixture()
def authorization_id(gateway, order_id, chef_id):
    """A live hold at the fake gateway, so capture and void behave as in production."""
    result = gateway.authorize(
        amount_cents=2400,
        currency="USD",
        order_ref=order_id,
        destination_account=f"acct_{chef_id}",
        application_fee_cents=240,
        idempotency_key=f"order-authorize-{order_id}",
    )
    return result.authorization_id


# ---------------------------------------------------------------------------
# Event fixtures (past tense, what happened)
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_placed(order_id, buyer_id, chef_id):
    now = utcnow()
    return OrderPlaced(
        order_id=order_id,
        buyer_id=buyer_id,
        seller_id=chef_id,
        items=json.dumps(
            [
                {
                    "id": "line-1",
                    "dish_id": "dish-001",
                    "dish_name": "Pork dumplings",
                    "quantity": 2,
                    "unit_price_cents": 1200,
                }
            ]
        ),
        total_cents=2400,
        platform_fee_cents=240,
        currency="USD",
        pickup_at=(now + timedelta(days=1)).replace(hour=12, minute=0, second=0, microsecond=0),
        created_at=now,
        expires_at=now + timedelta(minutes=60),
    )


@pytest.fixture()
def payment_authorized(order_id, authorization_id):
    return PaymentAuthorized(
        order_id=order_id,
        authorization_id=authorization_id,
        redirect_url=f"https://fake-gateway.local/checkout/{authorization_id}",
        amount_cents=2400,
        authorized_at=utcnow(),
    )


@pytest.fixture()
def order_accepted(order_id, chef_id, gateway, authorization_id):
    capture = gateway.capture(authorization_id, idempotency_key=f"order-capture-{order_id}")
    return OrderAccepted(
        order_id=order_id,
        seller_id=chef_id,
        capture_id=capture.capture_id,
        transfer_id=capture.transfer_id,
        transfer_destination=f"acct_{chef_id}",
        total_cents=2400,
        platform_fee_cents=240,
        seller_net_cents=2160,
        accepted_by=chef_id,
        accepted_at=utcnow(),
    )


@pytest.fixture()
def order_marked_ready(order_id, chef_id):
    return OrderMarkedReady(order_id=order_id, marked_by=chef_id, ready_at=utcnow())


@pytest.fixture()
def order_rejected(order_id, chef_id):
    return OrderRejected(
        order_id=order_id,
        reason="Sold out today",
        rejected_by=chef_id,
        expired=False,
        rejected_at=utcnow(),
    )


# ---------------------------------------------------------------------------
# Command fixtures (imperative, what to do)
# ---------------------------------------------------------------------------
@pytest.fixture()
def accept_order(order_id, chef_id):
    return AcceptOrder(order_id=order_id, actor_id=chef_id)


@pytest.fixture()
def mark_ready(order_id, chef_id):
    return MarkOrderReady(order_id=order_id, actor_id=chef_id)


@pytest.fixture()
def confirm_pickup(order_id, buyer_id):
    return ConfirmPickup(order_id=order_id, actor_id=buyer_id)


@pytest.fixture()
def buyer_cancels(order_id, buyer_id):
    return CancelOrder(order_id=order_id, reason="Plans changed", actor_id=buyer_id)


@pytest.fixture()
def chef_cancels(order_id, chef_id):
    return CancelOrder(order_id=order_id, reason="Kitchen closed", actor_id=chef_id)


# ---------------------------------------------------------------------------
# Given steps: Order (event sourcing via protean.testing)
# ---------------------------------------------------------------------------
@given("an onboarded chef")
def _(onboarded_chef):
    return onboarded_chef


@given("an order was placed and authorized", target_fixture="order")
def _(order_placed, payment_authorized):
    return given_(Order, order_placed, payment_authorized)


@given("the chef accepted the order", target_fixture="order")
def _(order, order_accepted):
    return order.after(order_accepted)


@given("the order was marked ready", target_fixture="order")
def _(order, order_marked_ready):
    return order.after(order_marked_ready)


@given("the chef rejected the order", target_fixture="order")
def _(order, order_rejected):
    return order.after(order_rejected)


# ---------------------------------------------------------------------------
# Then steps: Order (shared, plain assertions)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert order.status == status


@then(parsers.cfparse('the payment status is "{payment_status}"'))
def _(order, payment_status):
    assert order.payment_status == payment_status


@then("the order action fails with a validation error")
def _(order):
    assert order.rejected
    assert isinstance(order.rejection, ValidationError)


@then(parsers.cfparse('the order action fails with "{error_name}"'))
def _(order, error_name):
    assert order.rejected
    assert type(order.rejection).__name__ == error_name


@then(parsers.cfparse("an {event_type} order event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert event_cls in order.events


@then(parsers.cfparse("a {event_type} order event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert event_cls in order.events


@then(parsers.cfparse("the gateway recorded {count:d} {method} call"))
@then(parsers.cfparse("the gateway recorded {count:d} {method} calls"))
def _(gateway, count, method):
    assert len(gateway.calls_for(method)) == count
