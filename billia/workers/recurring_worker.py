"""
Recurring invoice worker.

Intended for a daily cron job: ``python -m billia.workers.recurring_worker``.
Optionally pass ``--date YYYY-MM-DD`` to replay a specific day.
"""
import argparse
import json
import logging
import sys
from datetime import date

from billia.db.database import SessionLocal, ensure_sqlite_schema
from billia.services.recurring_expander import run_due_templates
from billia.utils.feature_flags import recurring_feature_enabled

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def run(today: date = None) -> dict:
    if not recurring_feature_enabled():
        logger.warning("Recurring invoices are disabled (FEATURE_RECURRING_ENABLED=false); nothing to do")
        return {"processed": 0, "results": []}
    ensure_sqlite_schema()
    db = SessionLocal()
    try:
        return run_due_templates(db, today=today)
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create invoices from due recurring templates")
    parser.add_argument("--date", help="Run as if today were this date (YYYY-MM-DD)")
    args = parser.parse_args(argv)
    today = date.fromisoformat(args.date) if args.date else None

    report = run(today)
    errors = [r for r in report["results"] if r["status"] == "error"]
    print(json.dumps(report, default=str, ensure_ascii=False, indent=2))
    if errors:
        logger.error("%d template(s) failed", len(errors))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
