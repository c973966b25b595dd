"""Ordering bounded context: kitchens, carts, checkout and the order lifecycle.

Holds the seller and dish reference data, the single-chef shopping cart,
the checkout flow that authorizes payment, the event-sourced Order state
machine, the expiry sweep and the read models behind order tracking.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
