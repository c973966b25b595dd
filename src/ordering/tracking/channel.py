"""In-process live update channel keyed by order id.

Publishers push a ``StatusUpdate`` every time an order changes; subscribers
(websocket/SSE adapters, tests) receive them through callbacks. Delivery is
best effort and at least once: subscribers must tolerate repeated updates
for the same status. ``latest`` keeps the last update per order so clients
that poll instead of subscribing see the same data.
"""

import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime

import structlog

from ordering.utils.clock import utcnow

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StatusUpdate:
    order_id: str
    status: str
    event_type: str
    message: str
    payment_status: str | None = None
    occurred_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat()
        return data


Callback = Callable[[StatusUpdate], None]


class Subscription:
    def __init__(self, channel: "OrderUpdateChannel", order_id: str, callback: Callback) -> None:
        self.channel = channel
        self.order_id = order_id
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.channel._unsubscribe(self)
            self.active = False


class OrderUpdateChannel:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)
        self._latest: dict[str, StatusUpdate] = {}

    def subscribe(self, order_id: str, callback: Callback) -> Subscription:
        subscription = Subscription(self, str(order_id), callback)
        with self._lock:
            self._subscribers[subscription.order_id].append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.order_id, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.order_id, None)

    def publish(self, update: StatusUpdate) -> int:
        """Deliver an update to every subscriber of its order. Returns the delivery count."""
        with self._lock:
            self._latest[update.order_id] = update
            subscribers = list(self._subscribers.get(update.order_id, []))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.callback(update)
                delivered += 1
            except Exception:
                logger.exception(
                    "Order update subscriber failed",
                    order_id=update.order_id,
                    event_type=update.event_type,
                )
        return delivered

    def latest(self, order_id: str) -> StatusUpdate | None:
        with self._lock:
            return self._latest.get(str(order_id))

    def subscriber_count(self, order_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(str(order_id), []))


_channel: OrderUpdateChannel | None = None


def get_channel() -> OrderUpdateChannel:
    global _channel
    if _channel is None:
        _channel = OrderUpdateChannel()
    return _channel


def reset_channel() -> None:
    global _channel
    _channel = None
