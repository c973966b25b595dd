"""Ordering load test scenarios.

Each simulated MarketplaceUser onboards its own chef with a small menu,
then runs buyer journeys against it: the full pickup path, a chef
rejection and a buyer cancellation. ExpirySweepUser plays the external
scheduler that rejects orders the chef never answered.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    admin_headers,
    buyer_headers,
    cart_item_data,
    chef_data,
    chef_headers,
    checkout_data,
    dish_data,
    payout_account_data,
    principal_id,
    rejection_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import KitchenState, OrderState


class _BuyerJourney(SequentialTaskSet):
    """Cart -> items -> checkout. Subclasses add what happens next."""

    def on_start(self):
        self.state = OrderState(buyer_id=principal_id("buyer"))

    @property
    def kitchen(self) -> KitchenState:
        return self.user.kitchen

    @property
    def buyer(self) -> dict:
        return buyer_headers(self.state.buyer_id)

    @property
    def chef(self) -> dict:
        return chef_headers(self.kitchen.chef_id)

    @task
    def create_cart(self):
        with self.client.post("/carts", headers=self.buyer, catch_response=True, name="POST /carts") as resp:
            if resp.status_code == 201:
                self.state.cart_id = resp.json()["cart_id"]
            else:
                resp.failure(f"Create cart failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def add_items(self):
        for dish_id in self.kitchen.dish_ids[:2]:
            with self.client.post(
                f"/carts/{self.state.cart_id}/items",
                json=cart_item_data(dish_id),
                headers=self.buyer,
                catch_response=True,
                name="POST /carts/{id}/items",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Add cart item failed: {resp.status_code} - {extract_error_detail(resp)}")
                    self.interrupt()

    @task
    def checkout(self):
        with self.client.post(
            f"/carts/{self.state.cart_id}/checkout",
            json=checkout_data(),
            headers=self.buyer,
            catch_response=True,
            name="POST /carts/{id}/checkout",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    def _transition(self, action, headers, status, json=None):
        with self.client.post(
            f"/orders/{self.state.order_id}/{action}",
            json=json,
            headers=headers,
            catch_response=True,
            name=f"POST /orders/{{id}}/{action}",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = status
            else:
                resp.failure(f"{action} failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    def _poll_status(self):
        with self.client.get(
            f"/orders/{self.state.order_id}/status",
            headers=self.buyer,
            catch_response=True,
            name="GET /orders/{id}/status",
        ) as resp:
            if resp.status_code != 200 or resp.json()["status"] != self.state.current_status:
                resp.failure(f"Unexpected status: {resp.status_code} - {resp.text[:200]}")


class OrderPickupJourney(_BuyerJourney):
    """Checkout -> Accept -> Ready -> Picked up, polling the status in between.

    Generates events: OrderPlaced, PaymentAuthorized, OrderAccepted,
    OrderMarkedReady, OrderCompleted.
    """

    @task
    def accept(self):
        self._transition("accept", self.chef, "pending")
        self._poll_status()

    @task
    def ready(self):
        self._transition("ready", self.chef, "ready")
        self._poll_status()

    @task
    def complete(self):
        self._transition("complete", self.buyer, "completed")

    @task
    def history(self):
        self.client.get(f"/orders/{self.state.order_id}/history", headers=self.buyer, name="GET /orders/{id}/history")

    @task
    def done(self):
        self.interrupt()


class OrderRejectedJourney(_BuyerJourney):
    """Checkout -> chef rejects. The payment hold is voided."""

    @task
    def reject(self):
        self._transition("reject", self.chef, "rejected", json=rejection_data())
        self._poll_status()

    @task
    def done(self):
        self.interrupt()


class BuyerCancelsJourney(_BuyerJourney):
    """Checkout -> buyer cancels before the chef answers."""

    @task
    def cancel(self):
        self._transition("cancel", self.buyer, "cancelled", json={"reason": "Plans changed"})

    @task
    def done(self):
        self.interrupt()


class MarketplaceUser(HttpUser):
    """A chef with a menu, and buyers ordering from it."""

    wait_time = between(1, 3)
    tasks = {
        OrderPickupJourney: 6,
        OrderRejectedJourney: 2,
        BuyerCancelsJourney: 1,
    }

    def on_start(self):
        self.kitchen = KitchenState(chef_id=principal_id("chef"))
        headers = chef_headers(self.kitchen.chef_id)

        self.client.post("/chefs", json=chef_data(), headers=headers, name="POST /chefs")
        self.client.put(
            f"/chefs/{self.kitchen.chef_id}/payout-account",
            json=payout_account_data(),
            headers=headers,
            name="PUT /chefs/{id}/payout-account",
        )
        for _ in range(3):
            resp = self.client.post("/dishes", json=dish_data(), headers=headers, name="POST /dishes")
            if resp.status_code == 201:
                self.kitchen.dish_ids.append(resp.json()["dish_id"])


class ExpirySweepUser(HttpUser):
    """The external scheduler: runs the expiry sweep every half minute or so."""

    wait_time = between(20, 40)
    fixed_count = 1

    @task
    def sweep(self):
        with self.client.post(
            "/maintenance/expire-orders",
            headers=admin_headers(),
            catch_response=True,
            name="POST /maintenance/expire-orders",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Sweep failed: {resp.status_code} - {extract_error_detail(resp)}")
            elif resp.json()["failed"]:
                resp.failure(f"Sweep had failures: {resp.json()}")
