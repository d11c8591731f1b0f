"""
jobs/extract.py — Extract metrics from daily notes
=====================================================
Run by hand or from cron. By default it:
1. Extracts every daily note that has no stored metrics yet
2. Re-imports the procrastination record

USAGE:
  python -m jobs.extract                      # incremental + procrastination record
  python -m jobs.extract --full               # re-extract every note
  python -m jobs.extract --date 2024-03-05    # reprocess one date (repeatable)
  python -m jobs.extract --procrastination-only
  python -m jobs.extract --no-procrastination

CRON SETUP:
  # Every night at 23:30:
  30 23 * * * cd /path/to/journal-metrics && /path/to/venv/bin/python -m jobs.extract
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

from app.core.config import settings
from app.core.logging_config import configure_logging
from app.db.base import SessionLocal
from app.services.oracle import get_oracle
from app.services.sync import SyncMode, make_orchestrator

logger = logging.getLogger("jobs.extract")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract structured metrics from daily notes.")
    parser.add_argument("--full", action="store_true", help="Re-extract every note, not just missing ones.")
    parser.add_argument(
        "--date",
        dest="dates",
        action="append",
        type=date.fromisoformat,
        default=[],
        metavar="YYYY-MM-DD",
        help="Reprocess this date even if already parsed. Repeatable.",
    )
    parser.add_argument(
        "--procrastination-only",
        action="store_true",
        help="Only re-import the procrastination record.",
    )
    parser.add_argument(
        "--no-procrastination",
        action="store_true",
        help="Skip the procrastination record.",
    )
    args = parser.parse_args(argv)
    if args.procrastination_only and args.no_procrastination:
        parser.error("--procrastination-only and --no-procrastination are mutually exclusive")
    if args.full and args.dates:
        parser.error("--full and --date are mutually exclusive")
    return args


async def run(args: argparse.Namespace) -> int:
    """Returns the number of failed dates (0 = clean run)."""
    db = SessionLocal()
    try:
        orchestrator = make_orchestrator(db, get_oracle())
        failed = 0

        if not args.procrastination_only:
            if args.dates:
                outcomes = await orchestrator.run(SyncMode.selective, args.dates)
            else:
                mode = SyncMode.full if args.full else SyncMode.incremental
                outcomes = await orchestrator.run(mode)

            for o in outcomes:
                mark = "ok " if o.success else "ERR"
                print(f"[{mark}] {o.date}" + (f"  {o.error}" if o.error else ""))
            failed = sum(1 for o in outcomes if not o.success)
            print(f"{len(outcomes) - failed} of {len(outcomes)} notes extracted.")

        # --date is a targeted reprocess; leave the record alone
        if not args.no_procrastination and not args.dates:
            result = await orchestrator.import_procrastination_record()
            if result.replaced:
                print(f"Saved {result.extracted} events for {result.source!r}.")
            else:
                print(f"Procrastination record not imported: {result.error}")

        return failed
    finally:
        db.close()


def main(argv=None) -> None:
    configure_logging(settings.LOG_LEVEL)
    args = parse_args(argv)
    failed = asyncio.run(run(args))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
