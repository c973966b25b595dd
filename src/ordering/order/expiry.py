"""Order expiry: reject orders the chef never answered.

Triggered by an external scheduler (cron, K8s CronJob) through the
maintenance endpoint or ``manage.py sweep-expired``. The sweep reads the
AwaitingAcceptance projection for overdue rows and dispatches one
ExpireOrder command per row, so each order is loaded, checked and written
on its own. An order that already left ``requested`` (accepted or rejected
in the meantime) is skipped without error, which makes the sweep safe to
re-run.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.access import SYSTEM
from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.rejection import release_payment
from ordering.projections.awaiting_acceptance import AwaitingAcceptance
from ordering.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)

EXPIRY_REASON = "Chef did not respond in time"


@ordering.command(part_of="Order")
class ExpireOrder:
    order_id = Identifier(required=True)
    as_of = DateTime()
    older_than_minutes = Integer(min_value=0)
    reason = String(max_length=500, default=EXPIRY_REASON)


@ordering.command(part_of="Order")
class ExpireStaleOrders:
    """Reject every ``requested`` order past its acceptance deadline."""

    as_of = DateTime()  # Optional: defaults to now
    older_than_minutes = Integer(min_value=0)  # Optional: overrides the per-order deadline


def _is_overdue(created_at, expires_at, as_of, older_than_minutes) -> bool:
    if older_than_minutes is not None:
        return created_at is not None and as_utc(created_at) <= as_of - timedelta(minutes=older_than_minutes)
    return expires_at is not None and as_utc(expires_at) <= as_of


@ordering.command_handler(part_of=Order)
class ExpireOrderHandler:
    @handle(ExpireOrder)
    def expire_order(self, command) -> bool:
        as_of = as_utc(command.as_of) if command.as_of else utcnow()
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if order.current_status != OrderStatus.REQUESTED:
            logger.info("Order no longer awaiting acceptance", order_id=str(order.id), status=order.status)
            return False
        if not _is_overdue(order.created_at, order.expires_at, as_of, command.older_than_minutes):
            return False

        reason = command.reason or EXPIRY_REASON
        refund_id = release_payment(order, reason)
        order.reject(reason=reason, rejected_by=SYSTEM.id, expired=True, refund_id=refund_id)
        repo.add(order)

        logger.info("Order expired", order_id=str(order.id), expires_at=str(order.expires_at))
        return True


@ordering.command_handler(part_of=Order)
class ExpireStaleOrdersHandler:
    @handle(ExpireStaleOrders)
    def expire_stale_orders(self, command) -> dict:
        as_of = as_utc(command.as_of) if command.as_of else utcnow()
        older_than = command.older_than_minutes

        logger.info("Checking for stale orders", as_of=as_of.isoformat(), older_than_minutes=older_than)

        waiting = (
            current_domain.repository_for(AwaitingAcceptance)._dao.query.order_by("expires_at").limit(None).all().items
        )
        overdue = [row for row in waiting if _is_overdue(row.created_at, row.expires_at, as_of, older_than)]

        if not overdue:
            logger.info("No stale orders found")
            return {"checked": 0, "rejected": 0, "failed": 0}

        rejected = 0
        failed = 0
        for row in overdue:
            try:
                expired = current_domain.process(
                    ExpireOrder(order_id=str(row.order_id), as_of=as_of, older_than_minutes=older_than),
                    asynchronous=False,
                )
                if expired:
                    rejected += 1
            except (ValidationError, InvalidOperationError, ObjectNotFoundError, ExpectedVersionError) as exc:
                failed += 1
                logger.warning("Failed to expire order", order_id=str(row.order_id), error=str(exc))
            except Exception:
                failed += 1
                logger.exception("Unexpected error expiring order", order_id=str(row.order_id))

        logger.info("Stale order cleanup complete", checked=len(overdue), rejected=rejected, failed=failed)
        return {"checked": len(overdue), "rejected": rejected, "failed": failed}
