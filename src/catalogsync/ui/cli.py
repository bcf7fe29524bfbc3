from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import find_dotenv, load_dotenv

from catalogsync.adapters.feed import FileFeedProvider
from catalogsync.app import analyze_catalog, reconcile_catalog, run_sync
from catalogsync.config import configure_logging
from catalogsync.domain.errors import SafetyAbortError

if TYPE_CHECKING:
    from collections.abc import Sequence

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise the inventory feed with Shopify")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Publish, update and delete items from the feed")
    sync.add_argument(
        "--force-update",
        action="store_true",
        help="Treat every stored item as changed and push it to the platform again",
    )
    sync.add_argument(
        "--feed-dir",
        type=Path,
        help="Read previously downloaded feed XML files from this directory instead of HTTP",
    )

    subparsers.add_parser("analyze", help="Report drift between the store and the platform")

    reconcile = subparsers.add_parser("reconcile", help="Correct drift between store and platform")
    reconcile.add_argument(
        "--force",
        action="store_true",
        help="Apply corrections even when deletions exceed SYNC_MAX_TO_DELETE",
    )
    reconcile.add_argument(
        "--ignore-schedule",
        action="store_true",
        help="Run now instead of waiting for the daily reconciliation window",
    )

    return parser.parse_args(list(argv))


def _file_feed(directory: Path) -> FileFeedProvider:
    if not directory.is_dir():
        raise ValueError(f"Feed directory does not exist: {directory}")
    return FileFeedProvider.from_directory(directory)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv(find_dotenv(usecwd=True))
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        feed = None
        if parsed_args.command == "sync" and parsed_args.feed_dir is not None:
            feed = _file_feed(parsed_args.feed_dir)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    if parsed_args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        if parsed_args.command == "sync":
            result = run_sync(feed=feed, force_update=parsed_args.force_update)
            log.info("Sync result: %s", result.summary())
        elif parsed_args.command == "analyze":
            report = analyze_catalog()
            log.info("Analysis result: %s", report.message)
        elif parsed_args.command == "reconcile":
            outcome = reconcile_catalog(
                force=parsed_args.force,
                ignore_schedule=parsed_args.ignore_schedule,
            )
            if outcome is not None:
                log.info("Reconciliation result: %s", outcome.message)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except KeyboardInterrupt:
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    except SafetyAbortError:
        log.exception("Aborted by safety check")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


if __name__ == "__main__":
    main()
