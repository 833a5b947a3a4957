#!/usr/bin/env python3
"""Dev entrypoint for running one of the blog event services.

Usage:
    # Event bus on its default port (4005)
    python scripts/run_service.py bus

    # Moderation and query services
    python scripts/run_service.py moderation
    python scripts/run_service.py query --port 4102

Environment variables:
    BUS_URL: Where the moderation service publishes (default: http://localhost:4005/events)
    SUBSCRIBER_URLS: Comma separated subscriber URLs for the bus
    DELIVERY_TIMEOUT_SECONDS: Per-delivery timeout (default: 5.0)
    DISALLOWED_WORDS: Comma separated words rejected by moderation (default: badword)
    PENDING_EVENT_TTL_SECONDS: How long the query service keeps out-of-order events (default: 30)
    QUERY_DATABASE_URL: SQL database for the query service (default: in memory)
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import sys
from pathlib import Path

import uvicorn

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.workers import configure_logging

SERVICES: dict[str, tuple[str, int]] = {
    "bus": ("app.main:create_bus_app", 4005),
    "moderation": ("app.main:create_moderation_app", 4003),
    "query": ("app.main:create_query_app", 4002),
}


def main() -> int:
    """Main entrypoint for the service launcher."""
    parser = argparse.ArgumentParser(
        description="Run a blog event service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "service",
        choices=sorted(SERVICES),
        help="Service to run",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind (default: the service's standard port)",
    )
    args = parser.parse_args()

    settings = get_settings()
    try:
        settings.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.LOG_LEVEL)

    factory, default_port = SERVICES[args.service]
    uvicorn.run(
        factory,
        factory=True,
        host=args.host,
        port=args.port or default_port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
