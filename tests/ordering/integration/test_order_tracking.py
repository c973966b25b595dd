"""Integration tests for order tracking: read-side queries and live updates."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.order.acceptance import AcceptOrder
from ordering.order.cancellation import CancelOrder
from ordering.order.preparation import MarkOrderReady
from ordering.order.rejection import RejectOrder
from ordering.projections.order_detail import OrderDetail
from ordering.tracking import tracker
from ordering.tracking.channel import OrderUpdateChannel, StatusUpdate, get_channel
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


class TestGetOrder:
    def test_snapshot_carries_items_contact_and_history(self, order_id, chef_id):
        snapshot = tracker.get_order(order_id)

        assert snapshot.status == "requested"
        assert snapshot.status_description == "Waiting for chef approval"
        assert snapshot.items == [
            {
                "dish_id": snapshot.items[0]["dish_id"],
                "dish_name": "Pork dumplings",
                "quantity": 2,
                "unit_price_cents": 1200,
                "line_total_cents": 2400,
            }
        ]
        assert snapshot.seller.seller_id == chef_id
        assert snapshot.seller.phone == "+1 555 0100"
        assert [entry.event_type for entry in snapshot.history] == ["OrderPlaced", "PaymentAuthorized"]
        assert snapshot.is_active

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            tracker.get_order("missing")

    def test_rejected_order_is_not_active(self, order_id, chef_id):
        current_domain.process(RejectOrder(order_id=order_id, actor_id=chef_id), asynchronous=False)

        snapshot = tracker.get_order(order_id)
        assert not snapshot.is_active
        assert snapshot.status_description == "The chef could not take this order"

    def test_unknown_status_is_described_by_its_value(self):
        assert tracker.describe_status("teleported") == "teleported"


class TestActiveOrder:
    def test_no_orders(self, buyer_id):
        assert tracker.get_active_order(buyer_id) is None

    def test_in_progress_order(self, order_id, buyer_id):
        assert tracker.get_active_order(buyer_id).order_id == order_id

    def test_finished_orders_are_ignored(self, order_id, buyer_id):
        current_domain.process(CancelOrder(order_id=order_id, actor_id=buyer_id), asynchronous=False)
        assert tracker.get_active_order(buyer_id) is None

    def test_newest_active_order_wins(self, order_id, buyer_id, dish_id, fill_cart, place_order):
        newer = place_order(fill_cart(buyer_id, dish_id, quantity=1), buyer_id)
        assert tracker.get_active_order(buyer_id).order_id == newer

    def test_active_order_found_among_many_finished_ones(self):
        _seed_details(120, buyer_id="buyer-busy", seller_id="chef-busy", status="rejected")
        current_domain.repository_for(OrderDetail).add(
            OrderDetail(
                order_id="ord-latest",
                buyer_id="buyer-busy",
                seller_id="chef-busy",
                status="requested",
                items="[]",
                created_at=datetime(2026, 1, 2, 12, 0, tzinfo=UTC),
            )
        )

        assert tracker.get_active_order("buyer-busy").order_id == "ord-latest"


class TestOrdersForSeller:
    def test_newest_first(self, order_id, chef_id, dish_id, fill_cart, place_order):
        newer = place_order(fill_cart("buyer-002", dish_id), "buyer-002")

        orders = tracker.orders_for_seller(chef_id)

        assert [snapshot.order_id for snapshot in orders] == [newer, order_id]
        assert all(snapshot.history == [] for snapshot in orders)

    def test_filter_by_status(self, order_id, chef_id, dish_id, fill_cart, place_order):
        place_order(fill_cart("buyer-002", dish_id), "buyer-002")
        current_domain.process(AcceptOrder(order_id=order_id, actor_id=chef_id), asynchronous=False)

        pending = tracker.orders_for_seller(chef_id, statuses=["pending"])

        assert [snapshot.order_id for snapshot in pending] == [order_id]

    def test_other_sellers_orders_are_hidden(self, order_id):
        assert tracker.orders_for_seller("chef-999") == []

    def test_long_history_is_not_truncated(self):
        _seed_details(150, buyer_id="buyer-busy", seller_id="chef-busy", status="completed")

        orders = tracker.orders_for_seller("chef-busy")

        assert len(orders) == 150
        assert orders[0].order_id == "ord-149"
        assert orders[-1].order_id == "ord-000"


def _seed_details(count, buyer_id, seller_id, status):
    repo = current_domain.repository_for(OrderDetail)
    start = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    for index in range(count):
        repo.add(
            OrderDetail(
                order_id=f"ord-{index:03d}",
                buyer_id=buyer_id,
                seller_id=seller_id,
                status=status,
                items="[]",
                created_at=start + timedelta(minutes=index),
            )
        )


def _update(status, event_type, order_id="ord-1"):
    message = tracker.describe_status(status)
    return StatusUpdate(order_id=order_id, status=status, event_type=event_type, message=message)


class TestOrderUpdateChannel:
    def test_publish_reaches_only_that_orders_subscribers(self):
        channel = OrderUpdateChannel()
        seen = []
        channel.subscribe("ord-1", seen.append)
        channel.subscribe("ord-2", lambda update: pytest.fail("wrong order"))

        delivered = channel.publish(_update("ready", "OrderMarkedReady"))

        assert delivered == 1
        assert [update.status for update in seen] == ["ready"]

    def test_cancelled_subscription_stops_receiving(self):
        channel = OrderUpdateChannel()
        seen = []
        subscription = channel.subscribe("ord-1", seen.append)

        subscription.cancel()
        subscription.cancel()
        channel.publish(_update("ready", "OrderMarkedReady"))

        assert seen == []
        assert channel.subscriber_count("ord-1") == 0

    def test_failing_subscriber_does_not_block_others(self):
        channel = OrderUpdateChannel()
        seen = []

        def broken(update):
            raise RuntimeError("socket closed")

        channel.subscribe("ord-1", broken)
        channel.subscribe("ord-1", seen.append)

        delivered = channel.publish(_update("pending", "OrderAccepted"))

        assert delivered == 1
        assert len(seen) == 1

    def test_latest_update_is_kept(self):
        channel = OrderUpdateChannel()
        channel.publish(_update("requested", "OrderPlaced"))
        channel.publish(_update("pending", "OrderAccepted"))

        assert channel.latest("ord-1").status == "pending"
        assert channel.latest("ord-2") is None
        assert channel.latest("ord-1").to_dict()["occurred_at"].endswith("+00:00")


class TestBroadcaster:
    def test_transitions_are_pushed_to_subscribers(self, order_id, chef_id):
        seen = []
        get_channel().subscribe(order_id, seen.append)

        current_domain.process(AcceptOrder(order_id=order_id, actor_id=chef_id), asynchronous=False)
        current_domain.process(MarkOrderReady(order_id=order_id, actor_id=chef_id), asynchronous=False)

        assert [(update.event_type, update.status) for update in seen] == [
            ("OrderAccepted", "pending"),
            ("OrderMarkedReady", "ready"),
        ]
        assert seen[-1].message == "Your order is ready for pickup"
        assert seen[0].payment_status == "succeeded"

    def test_checkout_publishes_the_latest_status(self, order_id):
        latest = get_channel().latest(order_id)

        assert latest.event_type == "PaymentAuthorized"
        assert latest.status == "requested"
        assert latest.payment_status == "requires_capture"
