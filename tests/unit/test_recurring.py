from datetime import date
from unittest.mock import patch

import pytest

from billia.db import models, schemas
from billia.db.repositories import recurring as recurring_repo
from billia.errors import ValidationError
from billia.services import recurring_expander


@pytest.mark.parametrize(
    "start,day,today,expected",
    [
        (date(2024, 6, 1), 10, date(2024, 5, 15), date(2024, 6, 1)),
        (date(2024, 1, 1), 20, date(2024, 5, 15), date(2024, 5, 20)),
        (date(2024, 1, 1), 10, date(2024, 5, 15), date(2024, 6, 10)),
        (date(2024, 1, 1), 31, date(2024, 2, 10), date(2024, 2, 29)),
    ],
)
def test_initial_next_execution_date(start, day, today, expected):
    assert recurring_repo.initial_next_execution_date(start, day, today) == expected


@pytest.mark.parametrize(
    "interval,day,today,expected",
    [
        ("MONTHLY", 31, date(2024, 1, 31), date(2024, 2, 29)),
        ("MONTHLY", 5, date(2024, 12, 5), date(2025, 1, 5)),
        ("WEEKLY", 5, date(2024, 5, 15), date(2024, 5, 22)),
        ("YEARLY", 29, date(2024, 2, 29), date(2025, 2, 28)),
    ],
)
def test_following_execution_date(interval, day, today, expected):
    assert recurring_repo.following_execution_date(interval, day, today) == expected


def _template(tenant, **overrides):
    data = dict(
        tenant_id=tenant.id,
        creation_day=25,
        start_date=date(2024, 1, 1),
        note="毎月の家賃",
        items=[schemas.RecurringItemInput(name="家賃", unit_price=80000)],
    )
    data.update(overrides)
    return schemas.RecurringTemplateCreate(**data)


def test_create_template_links_client_named_after_tenant(db_session, user, tenant_factory):
    tenant = tenant_factory(user, name="山田太郎")
    template = recurring_repo.create_template(
        db_session, user_id=user.id, template=_template(tenant), today=date(2024, 5, 15)
    )
    assert template.client.name == "山田太郎"
    assert template.next_execution_date == date(2024, 5, 25)
    assert template.is_active is True
    assert [item.name for item in template.items] == ["家賃"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"creation_day": 0},
        {"creation_day": 32},
        {"send_day": 40},
        {"end_date": date(2023, 12, 31)},
        {"items": []},
        {"items": [schemas.RecurringItemInput(name="家賃", quantity=0, unit_price=1000)]},
    ],
)
def test_create_template_rejects_invalid_fields(db_session, user, tenant_factory, overrides):
    tenant = tenant_factory(user)
    with pytest.raises(ValidationError):
        recurring_repo.create_template(db_session, user_id=user.id, template=_template(tenant, **overrides))


def test_expander_creates_draft_invoice(db_session, user, tenant_factory):
    tenant = tenant_factory(user)
    template = recurring_repo.create_template(
        db_session, user_id=user.id, template=_template(tenant, creation_day=31), today=date(2024, 2, 1)
    )

    report = recurring_expander.run_due_templates(db_session, today=date(2024, 2, 29))

    assert report["processed"] == 1
    result = report["results"][0]
    assert result["status"] == "created"
    invoice = db_session.get(models.Invoice, result["invoice_id"])
    assert invoice.status == "draft"
    assert invoice.issue_date == date(2024, 2, 29)
    assert invoice.due_date == date(2024, 3, 30)
    assert invoice.total_amount == 88000
    assert invoice.notes == "毎月の家賃"
    assert invoice.recurring_template_id == template.id
    db_session.refresh(template)
    assert template.next_execution_date == date(2024, 3, 31)
    assert template.last_executed_at is not None


def test_expander_skips_second_run_in_same_month(db_session, user, tenant_factory):
    tenant = tenant_factory(user)
    template = recurring_repo.create_template(
        db_session, user_id=user.id, template=_template(tenant, interval="WEEKLY", creation_day=1),
        today=date(2024, 5, 1),
    )

    first = recurring_expander.run_due_templates(db_session, today=date(2024, 5, 1))
    second = recurring_expander.run_due_templates(db_session, today=date(2024, 5, 8))

    assert first["results"][0]["status"] == "created"
    assert second["results"][0]["status"] == "skipped"
    assert second["results"][0]["message"] == "Invoice already created this month"
    db_session.refresh(template)
    assert template.next_execution_date == date(2024, 5, 8)
    assert db_session.query(models.Invoice).count() == 1


def test_weekly_template_creates_next_invoice_on_first_day_of_month(db_session, user, tenant_factory):
    tenant = tenant_factory(user)
    template = recurring_repo.create_template(
        db_session, user_id=user.id, template=_template(tenant, interval="WEEKLY", creation_day=1),
        today=date(2024, 5, 1),
    )

    recurring_expander.run_due_templates(db_session, today=date(2024, 5, 1))
    for day in (8, 15, 29):
        report = recurring_expander.run_due_templates(db_session, today=date(2024, 5, day))
        assert [r["status"] for r in report["results"]] == ["skipped"]
    june = recurring_expander.run_due_templates(db_session, today=date(2024, 6, 1))

    assert [r["status"] for r in june["results"]] == ["created"]
    invoice = db_session.get(models.Invoice, june["results"][0]["invoice_id"])
    assert invoice.issue_date == date(2024, 6, 1)
    db_session.refresh(template)
    assert template.next_execution_date == date(2024, 6, 8)


def test_expander_ignores_inactive_and_finished_templates(db_session, user, tenant_factory):
    tenant = tenant_factory(user)
    paused = recurring_repo.create_template(
        db_session, user_id=user.id, template=_template(tenant, creation_day=1), today=date(2024, 5, 1)
    )
    recurring_repo.set_active(db_session, user_id=user.id, template_id=paused.id, is_active=False)
    recurring_repo.create_template(
        db_session,
        user_id=user.id,
        template=_template(tenant, creation_day=1, start_date=date(2024, 1, 1), end_date=date(2024, 4, 30)),
        today=date(2024, 4, 1),
    )

    report = recurring_expander.run_due_templates(db_session, today=date(2024, 5, 1))

    assert report == {"processed": 0, "results": []}


def test_expander_isolates_failures(db_session, user, tenant_factory):
    tenant = tenant_factory(user)
    recurring_repo.create_template(
        db_session, user_id=user.id, template=_template(tenant, creation_day=1), today=date(2024, 5, 1)
    )
    recurring_repo.create_template(
        db_session, user_id=user.id, template=_template(tenant, creation_day=1), today=date(2024, 5, 1)
    )
    real_create = recurring_expander.invoice_repo.create_invoice_record
    calls = {"n": 0}

    def flaky(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("numbering failed")
        return real_create(*args, **kwargs)

    with patch.object(recurring_expander.invoice_repo, "create_invoice_record", side_effect=flaky):
        report = recurring_expander.run_due_templates(db_session, today=date(2024, 5, 1))

    statuses = [r["status"] for r in report["results"]]
    assert statuses == ["error", "created"]
    assert report["results"][0]["message"] == "numbering failed"
    assert db_session.query(models.Invoice).count() == 1
