"""HomeChef management CLI.

Database schema commands, plus a manual trigger for the order expiry sweep
(the same operation the scheduler runs through ``POST /maintenance/expire-orders``).

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py sweep-expired                  # Reject overdue orders now
    python src/manage.py sweep-expired --older-than 90  # ...older than 90 minutes
"""

import argparse
import json
import sys

import structlog

logger = structlog.get_logger(__name__)


def setup_databases():
    """Create database schemas for the ordering domain."""
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    providers = setup_db(ordering)
    if not providers:
        print("  No relational database configured (is PROTEAN_ENV set?).")
    else:
        print(f"  Schema ready on: {', '.join(providers)}.")
    print("Done.")


def drop_databases():
    """Drop database schemas for the ordering domain."""
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    providers = drop_db(ordering)
    print(f"  Dropped schema on: {', '.join(providers) or 'nothing'}.")
    print("Done.")


def sweep_expired(as_of=None, older_than=None) -> dict:
    """Run the expiry sweep once and return its counts."""
    from ordering.domain import ordering
    from ordering.order.expiry import ExpireStaleOrders
    from ordering.utils.clock import parse_timestamp

    as_of_value = None
    if as_of:
        as_of_value = parse_timestamp(as_of)
        if as_of_value is None:
            raise SystemExit(f"Invalid --as-of timestamp: {as_of}")

    ordering.init()
    with ordering.domain_context():
        result = ordering.process(
            ExpireStaleOrders(as_of=as_of_value, older_than_minutes=older_than),
            asynchronous=False,
        )
    logger.info("Expiry sweep finished", **result)
    return result


def main(argv=None):
    from ordering.utils.logging import configure_logging

    parser = argparse.ArgumentParser(description="HomeChef management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    sweep_parser = subparsers.add_parser("sweep-expired", help="Reject orders past their acceptance deadline")
    sweep_parser.add_argument("--as-of", help="ISO-8601 reference time (default: now)")
    sweep_parser.add_argument(
        "--older-than",
        type=int,
        help="Reject orders created more than this many minutes ago instead of using each order's deadline",
    )

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "sweep-expired":
        result = sweep_expired(as_of=args.as_of, older_than=args.older_than)
        print(json.dumps(result))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
