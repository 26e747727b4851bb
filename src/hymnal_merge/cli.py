#!/usr/bin/env python3
"""
CLI for Hymnal Merge - Adds the Russian hymns to the hymnal database.

Usage:
    python -m hymnal_merge                              # Merge, audit and write
    python -m hymnal_merge --dry-run                    # Merge and audit only
    python -m hymnal_merge --hymnal-db hymnaldb.sqlite --russian-db hymns-russian.sqlite
"""

import argparse
import logging
import time
from typing import Optional

from .audit import audit
from .db import (
    check_user_version,
    get_conn,
    iter_russian_rows,
    load_hymns,
    set_user_version,
    verify_migration,
    write_hymns,
)
from .errors import HymnalMergeError
from .merge import FINER, combine_russian_hymns
from .russian import convert_russian_hymns

logger = logging.getLogger("hymnal_merge")


# =============================================================================
# Configuration
# =============================================================================

HYMNAL_DB = "hymnaldb-v18.sqlite"
HYMNAL_DB_VERSION = 18
MIGRATED_DB_VERSION = 19

RUSSIAN_DB = "hymns-russian.sqlite"
RUSSIAN_DB_VERSION = 23

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: int = 0) -> None:
    """INFO by default, DEBUG with -v, FINER with -vv."""
    level = {0: logging.INFO, 1: logging.DEBUG}.get(verbosity, FINER)
    logging.basicConfig(level=level, format=LOG_FORMAT)


# =============================================================================
# Migration
# =============================================================================

def migrate(
    hymnal_db: str = HYMNAL_DB,
    russian_db: str = RUSSIAN_DB,
    dry_run: bool = False,
) -> dict:
    """
    Merge the Russian hymns into the hymnal database.

    Args:
        hymnal_db: Path to the hymnal database (read, and rewritten)
        russian_db: Path to the Russian database (read only)
        dry_run: If True, stop after the audit without writing anything

    Returns:
        Counts of loaded, converted and written hymns
    """
    print("🎵 Hymnal Merge")
    print("=" * 60)
    print(f"Hymnal DB:  {hymnal_db}")
    print(f"Russian DB: {russian_db}")
    print(f"Dry run:    {dry_run}")
    print("=" * 60)

    start_time = time.time()

    with get_conn(hymnal_db, readonly=dry_run) as hymnal_conn, \
            get_conn(russian_db, readonly=True) as russian_conn:
        check_user_version(hymnal_conn, HYMNAL_DB_VERSION, hymnal_db)
        check_user_version(russian_conn, RUSSIAN_DB_VERSION, russian_db)

        print("Loading hymns...")
        hymns = load_hymns(hymnal_conn)
        russian_hymns = convert_russian_hymns(iter_russian_rows(russian_conn))

        print("Linking Russian hymns...")
        combined = combine_russian_hymns(hymns, russian_hymns)

        print("Auditing...")
        audit(combined)

        stats = {
            "hymns": len(hymns),
            "russian": len(russian_hymns),
            "combined": len(combined),
            "written": 0,
        }

        if dry_run:
            print("Dry run: skipping write")
        else:
            print("Writing...")
            write_hymns(hymnal_conn, combined)
            set_user_version(hymnal_conn, MIGRATED_DB_VERSION)
            verify_migration(hymnal_conn)
            stats["written"] = len(combined)

    elapsed = time.time() - start_time

    print("=" * 60)
    print("✅ Merge complete!")
    print(f"   Hymns loaded:   {stats['hymns']:,}")
    print(f"   Russian hymns:  {stats['russian']:,}")
    print(f"   Combined hymns: {stats['combined']:,}")
    print(f"   Written:        {stats['written']:,}")
    print(f"   Time: {time.strftime('%H:%M:%S', time.gmtime(elapsed))}")
    print("=" * 60)

    return stats


# =============================================================================
# CLI Entry Point
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Merge the Russian hymns into the hymnal database and audit its cross-references."
    )
    parser.add_argument(
        "--hymnal-db",
        type=str,
        default=HYMNAL_DB,
        help=f"Hymnal database to read and rewrite (default: {HYMNAL_DB})"
    )
    parser.add_argument(
        "--russian-db",
        type=str,
        default=RUSSIAN_DB,
        help=f"Russian hymn database (default: {RUSSIAN_DB})"
    )
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Merge and audit without writing to the hymnal database"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log detail (-v debug, -vv finer)"
    )

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        migrate(
            hymnal_db=args.hymnal_db,
            russian_db=args.russian_db,
            dry_run=args.dry_run,
        )
    except HymnalMergeError as e:
        logger.error("❌ %s: %s", type(e).__name__, e)
        return 1

    return 0


if __name__ == "__main__":
    exit(main())
