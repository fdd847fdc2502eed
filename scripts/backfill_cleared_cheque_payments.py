#!/usr/bin/env python3
"""
Create payments for CLEARED cheques that have none.

Fixes cheques whose payment side effect failed at clearance (or that were
cleared before payments were derived automatically).  Each payment is
auto-matched against the lease's rent schedule, oldest due date first.

Uses DATABASE_URL if set, otherwise the --database-url argument.

Usage:
    python3 scripts/backfill_cleared_cheque_payments.py --database-url URL
    python3 scripts/backfill_cleared_cheque_payments.py --database-url URL --dry-run
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Backfill payments for cleared cheques without a linked payment.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL"),
        help="Database URL (default: DATABASE_URL env).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List how many cheques would be processed; write nothing.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Engine settings YAML (default: RENT_ENGINE_CONFIG env or built-in).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if not args.database_url:
        print("ERROR: --database-url or DATABASE_URL is required", file=sys.stderr)
        return 2

    # Lazy imports so we fail fast on args first
    from rent_config import get_active_settings
    from rent_kernel.db.engine import init_engine_from_url, session_scope
    from rent_services import ChequePaymentBackfill, RentOrchestrator

    settings = get_active_settings(args.config)
    init_engine_from_url(args.database_url)

    print("Finding cleared cheques without linked payments...")
    with session_scope() as session:
        backfill = ChequePaymentBackfill(RentOrchestrator(session, settings=settings))
        report = backfill.run(dry_run=args.dry_run)

    print(f"Found {report.found} cleared cheque(s) without payments.")
    if args.dry_run:
        print("Dry run: no payments created.")
        return 0
    print(f"Done. Created: {report.created}, Errors: {report.failed}")
    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
