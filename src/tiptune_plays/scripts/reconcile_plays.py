"""Rebuild track play totals from the counted play event log."""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from tiptune_plays.db.session import SessionLocal
from tiptune_plays.services.counter import AggregateCounter, ReconcileResult
from tiptune_plays.services.errors import TrackNotFoundError

logger = logging.getLogger(__name__)


def reconcile(track_ids: list[str] | None = None) -> list[ReconcileResult]:
    """Reconcile the given tracks, or every track when none are given."""
    with SessionLocal() as db:
        counter = AggregateCounter(db)
        if not track_ids:
            return counter.reconcile_all()
        return [counter.reconcile_track(track_id) for track_id in track_ids]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recompute tracks.plays from track_plays")
    parser.add_argument(
        "track_ids",
        nargs="*",
        help="Tracks to reconcile (defaults to every track).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only report tracks whose total changed.",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    try:
        results = reconcile(args.track_ids)
    except TrackNotFoundError as exc:
        print(f"[reconcile] ERROR: {exc}", file=sys.stderr)
        return 2
    except SQLAlchemyError as exc:
        print(f"[reconcile] ERROR: {exc}", file=sys.stderr)
        return 1

    changed = 0
    for result in results:
        if result.changed:
            changed += 1
        if result.changed or not args.quiet:
            print(f"[reconcile] {result.track_id}: {result.previous} -> {result.recomputed}")
    print(f"[reconcile] {len(results)} tracks checked, {changed} corrected")
    return 0


if __name__ == "__main__":
    sys.exit(main())
