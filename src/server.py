"""Protean Engine runner for the ordering domain.

With PROTEAN_ENV=production events are processed asynchronously: the
Engine publishes outbox records and runs the projectors and the live
update broadcaster.

Usage:
    python src/server.py
    python src/server.py --test-mode   # Process what is pending, then exit
"""

import argparse

from protean.server.engine import Engine

from ordering.domain import ordering
from ordering.utils.logging import configure_logging


def main():
    parser = argparse.ArgumentParser(description="HomeChef Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages and exit",
    )
    args = parser.parse_args()

    configure_logging()
    ordering.init()

    engine = Engine(ordering, test_mode=args.test_mode)
    engine.run()


if __name__ == "__main__":
    main()
