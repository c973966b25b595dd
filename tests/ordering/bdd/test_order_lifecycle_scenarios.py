"""BDD tests for the order lifecycle."""

from ordering.order.override import OverrideOrderStatus
from ordering.order.rejection import RejectOrder
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/order_lifecycle.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the chef accepts the order", target_fixture="order")
def _(order, accept_order):
    return order.process(accept_order)


@when("the chef accepts the order again", target_fixture="order")
def _(order, accept_order):
    return order.process(accept_order)


@when(parsers.cfparse('the chef rejects the order because "{reason}"'), target_fixture="order")
def _(order, order_id, chef_id, reason):
    return order.process(RejectOrder(order_id=order_id, reason=reason, actor_id=chef_id))


@when("the buyer cancels the order", target_fixture="order")
def _(order, buyer_cancels):
    return order.process(buyer_cancels)


@when("the chef cancels the order", target_fixture="order")
def _(order, chef_cancels):
    return order.process(chef_cancels)


@when("the chef marks the order ready", target_fixture="order")
def _(order, mark_ready):
    return order.process(mark_ready)


@when("the buyer confirms pickup", target_fixture="order")
def _(order, confirm_pickup):
    return order.process(confirm_pickup)


@when(parsers.cfparse('an administrator sets the status to "{status}"'), target_fixture="order")
def _(order, order_id, status):
    return order.process(
        OverrideOrderStatus(
            order_id=order_id,
            status=status,
            note="Support ticket 42",
            actor_id="ops-1",
            actor_is_admin=True,
        )
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the payment is flagged as out of sync")
def _(order):
    assert order.payment_in_sync is False
