"""
Recurring invoice template repository functions and schedule arithmetic.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.db.repositories import clients as client_repo
from billia.db.repositories import tenants as tenant_repo
from billia.errors import NotFoundError, ValidationError
from billia.utils import calendar
from billia.utils.validation import MAX_LENGTHS, validate_day_of_month, validate_length, validate_required

INTERVAL_MONTHLY = "MONTHLY"
INTERVAL_WEEKLY = "WEEKLY"
INTERVAL_YEARLY = "YEARLY"
INTERVALS = (INTERVAL_MONTHLY, INTERVAL_WEEKLY, INTERVAL_YEARLY)


def initial_next_execution_date(start_date: date, creation_day: int, today: date) -> date:
    """First run: the start date if still ahead, else this or next month's creation day."""
    if start_date >= today:
        return start_date
    this_month = calendar.clamp_day(today.year, today.month, creation_day)
    if this_month >= today:
        return this_month
    year, month = calendar.add_months(today.year, today.month, 1)
    return calendar.clamp_day(year, month, creation_day)


def following_execution_date(interval: str, creation_day: int, today: date) -> date:
    """Next run after executing on `today`."""
    if interval == INTERVAL_WEEKLY:
        return calendar.plus_days(today, 7)
    if interval == INTERVAL_YEARLY:
        return calendar.clamp_day(today.year + 1, today.month, creation_day)
    year, month = calendar.add_months(today.year, today.month, 1)
    return calendar.clamp_day(year, month, creation_day)


def _validate_template(template: schemas.RecurringTemplateCreate) -> None:
    if template.interval not in INTERVALS:
        raise ValidationError("interval must be MONTHLY, WEEKLY or YEARLY")
    if template.creation_day is None:
        raise ValidationError("creation_day is required")
    validate_day_of_month(template.creation_day, "creation_day")
    validate_day_of_month(template.send_day, "send_day")
    if template.end_date is not None and template.end_date < template.start_date:
        raise ValidationError("end_date must not be before start_date")
    validate_length(template.note, MAX_LENGTHS["note"], "Note")
    if not template.items:
        raise ValidationError("At least one line item is required")
    for item in template.items:
        validate_required(item.name, "Item name")
        validate_length(item.name, MAX_LENGTHS["title"], "Item name")
        if item.quantity <= 0:
            raise ValidationError("Item quantity must be greater than 0")
        if item.unit_price < 0:
            raise ValidationError("Item unit price must not be negative")


def _build_items(template: schemas.RecurringTemplateCreate) -> list:
    return [
        models.RecurringTemplateItem(
            position=position,
            name=item.name.strip(),
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax_rate=item.tax_rate,
        )
        for position, item in enumerate(template.items)
    ]


def _apply_fields(db: Session, db_template: models.RecurringTemplate, user_id: uuid.UUID, template, today: date) -> None:
    tenant = tenant_repo.require_tenant(db, user_id=user_id, tenant_id=template.tenant_id)
    client = client_repo.find_or_create_client_by_name(db, user_id=user_id, name=tenant.name)
    db_template.tenant_id = tenant.id
    db_template.client_id = client.id
    db_template.interval = template.interval
    db_template.creation_day = template.creation_day
    db_template.send_day = template.send_day
    db_template.start_date = template.start_date
    db_template.end_date = template.end_date
    db_template.note = template.note
    db_template.next_execution_date = initial_next_execution_date(
        template.start_date, template.creation_day, today
    )
    db_template.items = _build_items(template)


def create_template(
    db: Session, *, user_id: uuid.UUID, template: schemas.RecurringTemplateCreate, today: Optional[date] = None
) -> models.RecurringTemplate:
    _validate_template(template)
    db_template = models.RecurringTemplate(user_id=user_id, is_active=True)
    _apply_fields(db, db_template, user_id, template, today or calendar.today())
    db.add(db_template)
    db.commit()
    db.refresh(db_template)
    return db_template


def get_template(db: Session, *, user_id: uuid.UUID, template_id: uuid.UUID) -> Optional[models.RecurringTemplate]:
    return (
        db.query(models.RecurringTemplate)
        .filter(models.RecurringTemplate.id == template_id, models.RecurringTemplate.user_id == user_id)
        .first()
    )


def require_template(db: Session, *, user_id: uuid.UUID, template_id: uuid.UUID) -> models.RecurringTemplate:
    db_template = get_template(db, user_id=user_id, template_id=template_id)
    if db_template is None:
        raise NotFoundError("Recurring template not found")
    return db_template


def list_templates(db: Session, *, user_id: uuid.UUID, tenant_id: Optional[uuid.UUID] = None):
    query = db.query(models.RecurringTemplate).filter(models.RecurringTemplate.user_id == user_id)
    if tenant_id:
        query = query.filter(models.RecurringTemplate.tenant_id == tenant_id)
    return query.order_by(models.RecurringTemplate.created_at.desc()).all()


def update_template(
    db: Session,
    *,
    user_id: uuid.UUID,
    template_id: uuid.UUID,
    template: schemas.RecurringTemplateUpdate,
    today: Optional[date] = None,
) -> models.RecurringTemplate:
    db_template = require_template(db, user_id=user_id, template_id=template_id)
    _validate_template(template)
    _apply_fields(db, db_template, user_id, template, today or calendar.today())
    db.commit()
    db.refresh(db_template)
    return db_template


def delete_template(db: Session, *, user_id: uuid.UUID, template_id: uuid.UUID) -> None:
    db_template = require_template(db, user_id=user_id, template_id=template_id)
    (
        db.query(models.Invoice)
        .filter(models.Invoice.recurring_template_id == db_template.id)
        .update({models.Invoice.recurring_template_id: None}, synchronize_session=False)
    )
    db.delete(db_template)
    db.commit()


def set_active(db: Session, *, user_id: uuid.UUID, template_id: uuid.UUID, is_active: bool) -> models.RecurringTemplate:
    db_template = require_template(db, user_id=user_id, template_id=template_id)
    db_template.is_active = is_active
    db.commit()
    db.refresh(db_template)
    return db_template


def get_due_templates(db: Session, *, today: date):
    """Active templates of every user whose next run is due."""
    return (
        db.query(models.RecurringTemplate)
        .filter(
            models.RecurringTemplate.is_active.is_(True),
            models.RecurringTemplate.next_execution_date <= today,
            models.RecurringTemplate.start_date <= today,
            or_(models.RecurringTemplate.end_date.is_(None), models.RecurringTemplate.end_date >= today),
        )
        .order_by(models.RecurringTemplate.next_execution_date.asc())
        .all()
    )


def has_invoice_in_month(db: Session, *, template_id: uuid.UUID, today: date) -> bool:
    start, end = calendar.month_bounds(calendar.month_key(today))
    return (
        db.query(models.Invoice.id)
        .filter(
            models.Invoice.recurring_template_id == template_id,
            models.Invoice.issue_date >= start,
            models.Invoice.issue_date < end,
        )
        .first()
        is not None
    )
