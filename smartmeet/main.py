"""Command-line entrypoint for store maintenance."""

import argparse
import json
import signal
import sys
from typing import List, Optional

from smartmeet.config import settings
from smartmeet.store import SessionStore, StoreError
from smartmeet.utils.logging_utils import StructuredLogger, configure_logging

logger = StructuredLogger("smartmeet.main")


def _args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="smartmeet", description=f"{settings.app_name} session store maintenance")
    p.add_argument("--database-url", default=settings.database_url, help="SQLite database URL")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables if they do not exist")
    sub.add_parser("stats", help="Print meeting statistics as JSON")

    cleanup = sub.add_parser("cleanup", help="Delete completed sessions past the retention window")
    cleanup.add_argument(
        "--days",
        type=int,
        default=settings.cleanup_days_to_keep,
        help="Keep completed sessions newer than this many days"
    )

    sub.add_parser("pending-emails", help="Print pending and failed email deliveries as JSON")
    return p.parse_args(argv)


def _terminate(signum, frame):
    # SystemExit unwinds the store context manager, which closes the engine.
    raise SystemExit(128 + signum)


def run(args: argparse.Namespace) -> int:
    store = SessionStore(
        args.database_url,
        echo=settings.database_echo,
        busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        stats_window_days=settings.stats_window_days
    )
    with store:
        if args.command == "init-db":
            print(json.dumps({"initialized": True, "database_url": args.database_url}))
        elif args.command == "stats":
            print(store.get_meeting_stats().model_dump_json(indent=2))
        elif args.command == "cleanup":
            removed = store.cleanup_old_data(args.days)
            print(json.dumps({"removed": removed, "days_to_keep": args.days}))
        elif args.command == "pending-emails":
            logs = store.list_pending_or_failed_emails()
            print(json.dumps([log.model_dump(mode="json") for log in logs], indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging(settings.log_level)
    args = _args(argv)
    signal.signal(signal.SIGTERM, _terminate)

    try:
        return run(args)
    except StoreError as e:
        logger.error("Command failed", command=args.command, error=str(e), error_type=type(e).__name__)
        return 1
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        logger.warning("Interrupted", command=args.command)
        return 130


if __name__ == "__main__":
    sys.exit(main())
