"""Utility script to delete idle users once, outside the running service."""

from __future__ import annotations

import argparse
import logging

from teamgit.application.use_cases import RetentionSweeper, create_activity_store
from teamgit.config import get_settings
from teamgit.domain.exceptions import ActivityStoreError


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the retention sweep."""

    parser = argparse.ArgumentParser(
        description="Remove users idle for more than seven days from the configured storage.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the users that would be removed without deleting them.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every storage operation.",
    )
    return parser.parse_args()


def main() -> None:
    """Run a single retention sweep using the environment configuration."""

    args = parse_args()
    settings = get_settings()
    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level)

    store = create_activity_store(settings)
    sweeper = RetentionSweeper(store)

    try:
        if args.dry_run:
            expired = sweeper.find_expired()
            for record in expired:
                print(f"{record.tenant}\t{record.user_email}\t{record.last_activity.isoformat()}")
            print(f"{len(expired)} user(s) would be removed.")
            return
        deleted = sweeper.sweep_once()
    except ActivityStoreError as exc:
        raise SystemExit(f"Retention sweep failed: {exc}") from exc

    print(f"Removed {deleted} idle user(s) from {store.storage_type} storage.")


if __name__ == "__main__":
    main()
