"""Rewrite cached point totals and ranks from the points ledger."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from aeonwise.db.session import get_session_factory
from aeonwise.ledger_models import ReconciliationSummary
from aeonwise.points_ledger import PointsLedger
from aeonwise.repositories.profiles import ProfileNotFoundError

logger = logging.getLogger("aeonwise.reconcile")


def reconcile_users(ledger: PointsLedger, user_ids: Sequence[str]) -> ReconciliationSummary:
    repaired: list[str] = []
    failed = 0
    for user_id in user_ids:
        try:
            result = ledger.reconcile(user_id)
        except ProfileNotFoundError:
            logger.warning("Skipping %s; profile not found", user_id)
            failed += 1
            continue
        if result.repaired:
            repaired.append(user_id)
    return ReconciliationSummary(
        checked=len(user_ids),
        repaired=len(repaired),
        failed=failed,
        repaired_user_ids=repaired,
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile cached profile points against the ledger.")
    parser.add_argument(
        "--user",
        dest="users",
        action="append",
        default=[],
        help="Reconcile only this user id (repeatable). Defaults to every profile.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None, *, ledger: Optional[PointsLedger] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = parse_args(argv)
    ledger = ledger or PointsLedger(get_session_factory())
    summary = reconcile_users(ledger, args.users) if args.users else ledger.reconcile_all()
    logger.info(
        "Reconciliation completed: %d checked, %d repaired, %d failed",
        summary.checked,
        summary.repaired,
        summary.failed,
    )
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
