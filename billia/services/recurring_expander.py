"""
Daily expansion of recurring templates into draft invoices.

Each due template produces at most one invoice per calendar month. A
template that already produced this month's invoice is reported as skipped
and left due, so the next run checks it again. A failure in one template is
rolled back and reported without stopping the rest of the batch.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from billia.db import models
from billia.db.models.base import now_utc
from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import profiles as profile_repo
from billia.db.repositories import recurring as recurring_repo
from billia.utils import calendar

logger = logging.getLogger(__name__)

DUE_AFTER_DAYS = 30

RESULT_CREATED = "created"
RESULT_SKIPPED = "skipped"
RESULT_ERROR = "error"


def _expand_template(db: Session, template: models.RecurringTemplate, today: date) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "template_id": template.id,
        "tenant_name": template.tenant_name,
        "status": RESULT_SKIPPED,
        "invoice_id": None,
        "message": "",
    }
    if recurring_repo.has_invoice_in_month(db, template_id=template.id, today=today):
        result["message"] = "Invoice already created this month"
        return result

    profile = profile_repo.get_profile(db, user_id=template.user_id)
    fallback_rate = template.items[0].tax_rate if template.items else None
    tax_rate, tax_rounding = profile_repo.tax_settings(profile, fallback_rate=fallback_rate)
    issue_date = calendar.clamp_day(today.year, today.month, template.creation_day)
    items = [
        {"name": item.name, "quantity": item.quantity, "unit": None, "unit_price": item.unit_price}
        for item in template.items
    ]
    db_invoice = invoice_repo.create_invoice_record(
        db,
        user_id=template.user_id,
        client_id=template.client_id,
        issue_date=issue_date,
        due_date=calendar.plus_days(issue_date, DUE_AFTER_DAYS),
        items=items,
        tax_rate=tax_rate,
        tax_rounding=tax_rounding,
        status=invoice_repo.STATUS_DRAFT,
        notes=template.note,
        recurring_template_id=template.id,
        profile=profile,
    )
    template.last_executed_at = now_utc()
    template.next_execution_date = recurring_repo.following_execution_date(
        template.interval, template.creation_day, today
    )
    db.commit()
    result["status"] = RESULT_CREATED
    result["invoice_id"] = db_invoice.id
    result["message"] = f"Created {db_invoice.invoice_number}"
    return result


def run_due_templates(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
    """Process every due template; returns ``{processed, results}``."""
    today = today or calendar.today()
    templates = recurring_repo.get_due_templates(db, today=today)
    logger.info("recurring_run_started: date=%s due=%d", today.isoformat(), len(templates))

    results: List[Dict[str, Any]] = []
    for template in templates:
        template_id = template.id
        tenant_name = template.tenant_name
        try:
            results.append(_expand_template(db, template, today))
        except Exception as exc:
            db.rollback()
            logger.exception("recurring_template_failed: template_id=%s", template_id)
            results.append({
                "template_id": template_id,
                "tenant_name": tenant_name,
                "status": RESULT_ERROR,
                "invoice_id": None,
                "message": str(exc),
            })

    created = sum(1 for r in results if r["status"] == RESULT_CREATED)
    logger.info("recurring_run_finished: processed=%d created=%d", len(results), created)
    return {"processed": len(results), "results": results}
