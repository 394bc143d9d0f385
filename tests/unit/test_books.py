from datetime import date
from unittest.mock import patch

import pytest

from billia import audit
from billia.audit import AuditAction, AuditStatus
from billia.db import models, schemas
from billia.db.repositories import audits as audit_repo
from billia.db.repositories import bills as bill_repo
from billia.db.repositories import expenses as expense_repo
from billia.db.repositories import finance as finance_repo
from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import profiles as profile_repo
from billia.db.repositories import sales as sales_repo
from billia.errors import ConflictError, ValidationError
from billia.services import export


def _invoice(db_session, user, client, issue, due, price):
    return invoice_repo.create_invoice(
        db_session,
        user_id=user.id,
        invoice=schemas.InvoiceCreate(
            client_id=client.id,
            issue_date=issue,
            due_date=due,
            items=[schemas.LineItemInput(name="作業", quantity=1, unit_price=price)],
        ),
    )


def _expense(db_session, user, on, amount, category):
    return expense_repo.create_expense(
        db_session,
        user_id=user.id,
        expense=schemas.ExpenseCreate(title="経費", amount=amount, date=on, category=category),
    )


@pytest.fixture
def books(db_session, user, client_factory):
    acme = client_factory(user, name="ACME")
    beta = client_factory(user, name="Beta")
    open_invoice = _invoice(db_session, user, acme, date(2024, 5, 10), date(2024, 5, 31), 100000)
    draft = _invoice(db_session, user, acme, date(2024, 5, 11), date(2024, 6, 30), 900000)
    invoice_repo.set_invoice_status(db_session, user_id=user.id, invoice_id=draft.id, status="draft")
    paid = _invoice(db_session, user, beta, date(2024, 4, 20), date(2024, 5, 20), 50000)
    invoice_repo.set_invoice_status(db_session, user_id=user.id, invoice_id=paid.id, status="paid", today=date(2024, 5, 1))
    _expense(db_session, user, date(2024, 5, 1), 30000, "交通費")
    _expense(db_session, user, date(2024, 4, 3), 10000, "通信費")
    _expense(db_session, user, date(2024, 3, 1), 99999, "通信費")
    return {"open": open_invoice, "acme": acme, "beta": beta}


def test_monthly_financials_exclude_drafts(db_session, user, books):
    rows = finance_repo.monthly_financials(db_session, user_id=user.id, months=2, today=date(2024, 5, 15))
    assert rows == [
        {"month": "2024-04", "income": 55000, "expense": 10000, "profit": 45000},
        {"month": "2024-05", "income": 110000, "expense": 30000, "profit": 80000},
    ]


def test_expenses_by_category_percentages(db_session, user, books):
    rows = finance_repo.expenses_by_category(db_session, user_id=user.id, months=2, today=date(2024, 5, 15))
    assert rows == [
        {"category": "交通費", "amount": 30000, "percentage": 75},
        {"category": "通信費", "amount": 10000, "percentage": 25},
    ]


def test_top_clients_and_upcoming(db_session, user, books):
    top = finance_repo.top_clients(db_session, user_id=user.id)
    assert [(row["client_name"], row["total"]) for row in top] == [("ACME", 110000), ("Beta", 55000)]

    upcoming = finance_repo.upcoming_payments(db_session, user_id=user.id, today=date(2024, 6, 1))
    assert len(upcoming) == 1
    assert upcoming[0]["invoice_id"] == books["open"].id
    assert upcoming[0]["is_overdue"] is True


def test_current_month_kpi(db_session, user, books):
    kpi = finance_repo.current_month_kpi(db_session, user_id=user.id, today=date(2024, 5, 15))
    assert kpi == {"month": "2024-05", "income": 110000, "expense": 30000, "profit": 80000, "unpaid_total": 110000}


def test_mark_bill_paid_books_an_expense(db_session, user):
    bill = bill_repo.create_bill(
        db_session,
        user_id=user.id,
        bill=schemas.BillCreate(
            vendor_name="東京電力",
            title="5月分電気代",
            amount=12000,
            issue_date=date(2024, 5, 1),
            due_date=date(2024, 5, 31),
            memo="口座振替",
        ),
    )
    assert bill.status == "UNPAID"

    paid = bill_repo.mark_bill_paid(
        db_session, user_id=user.id, bill_id=bill.id, paid_date=date(2024, 5, 30), category="水道光熱費"
    )
    expense = expense_repo.get_expense(db_session, user_id=user.id, expense_id=paid.expense_id)

    assert paid.status == "PAID"
    assert paid.paid_date == date(2024, 5, 30)
    assert expense.title == "東京電力 / 5月分電気代"
    assert expense.amount == 12000
    assert expense.category == "水道光熱費"
    assert expense.note == "口座振替"
    with pytest.raises(ConflictError):
        bill_repo.mark_bill_paid(db_session, user_id=user.id, bill_id=bill.id, paid_date=date(2024, 5, 30), category="x")


def test_bill_due_date_must_follow_issue_date(db_session, user):
    with pytest.raises(ValidationError):
        bill_repo.create_bill(
            db_session,
            user_id=user.id,
            bill=schemas.BillCreate(
                vendor_name="A", title="B", amount=1, issue_date=date(2024, 5, 2), due_date=date(2024, 5, 1)
            ),
        )


def test_deleting_expense_unlinks_bill(db_session, user):
    bill = bill_repo.create_bill(
        db_session,
        user_id=user.id,
        bill=schemas.BillCreate(
            vendor_name="A", title="B", amount=100, issue_date=date(2024, 5, 1), due_date=date(2024, 5, 1)
        ),
    )
    bill = bill_repo.mark_bill_paid(db_session, user_id=user.id, bill_id=bill.id, paid_date=date(2024, 5, 1), category="雑費")

    expense_repo.delete_expense(db_session, user_id=user.id, expense_id=bill.expense_id)
    db_session.expire_all()

    assert bill_repo.get_bill(db_session, user_id=user.id, bill_id=bill.id).expense_id is None


def test_sales_categories_and_entries(db_session, user):
    first = sales_repo.create_category(db_session, user_id=user.id, name="制作")
    second = sales_repo.create_category(db_session, user_id=user.id, name="保守")
    assert (first.display_order, second.display_order) == (0, 1)
    with pytest.raises(ConflictError):
        sales_repo.create_category(db_session, user_id=user.id, name="制作")

    sales_repo.upsert_entries(
        db_session,
        user_id=user.id,
        month="2024-05",
        entries=[schemas.SalesEntryInput(category_id=first.id, amount=1000)],
    )
    sales_repo.upsert_entries(
        db_session,
        user_id=user.id,
        month="2024-05",
        entries=[
            schemas.SalesEntryInput(category_id=first.id, amount=3000),
            schemas.SalesEntryInput(category_id=second.id, amount=500),
        ],
    )
    with pytest.raises(ValidationError):
        sales_repo.upsert_entries(
            db_session,
            user_id=user.id,
            month="2024-05",
            entries=[schemas.SalesEntryInput(category_id=first.id, amount=-1)],
        )

    counts = {row["name"]: row["entry_count"] for row in sales_repo.list_categories_with_counts(db_session, user_id=user.id)}
    assert counts == {"制作": 1, "保守": 1}

    summary = sales_repo.monthly_summary(db_session, user_id=user.id, months=2, today=date(2024, 5, 20))
    assert summary == [
        {"month": "2024-04", "total": 0, "by_category": {}},
        {"month": "2024-05", "total": 3500, "by_category": {"制作": 3000, "保守": 500}},
    ]


def test_invoice_csv_export(db_session, user, client_factory):
    _invoice(db_session, user, client_factory(user, name='ACME, "Japan"'), date(2024, 5, 10), date(2024, 5, 31), 1000)

    content = export.invoices_csv(db_session, user_id=user.id)

    assert content.startswith("\ufeff請求書番号,取引先,発行日,支払期限,合計金額,ステータス\r\n")
    assert content.endswith('INV-202405-001,"ACME, ""Japan""",2024-05-10,2024-05-31,1100,未払い\r\n')


def test_build_csv_quotes_line_breaks_and_blanks():
    content = export.build_csv(("a", "b", "c"), [("1行目\n2行目", None, 5)])
    assert content == '\ufeffa,b,c\r\n"1行目\n2行目",,5\r\n'


def test_quote_csv_export_header_only():
    assert export.build_csv(export.QUOTE_HEADER, []) == "\ufeff見積書番号,取引先,発行日,有効期限,合計金額,ステータス\r\n"
    assert export.export_filename("quotes", date(2024, 5, 1)) == "quotes-2024-05-01.csv"


def test_audit_log_persists_plain_values(db_session, user):
    entry = audit.log(
        db_session,
        action=AuditAction.INVOICE_CREATE,
        target_type="invoice",
        actor_user_id=user.id,
        metadata={"total_amount": 1100},
    )
    assert entry.action_type == "invoice_create"
    assert entry.status == "success"

    rows = audit_repo.get_audit_logs(db_session, user_id=user.id, action_type="invoice_create")
    payload = schemas.AuditLog.model_validate(rows[0])
    assert payload.metadata == {"total_amount": 1100}


def test_audit_record_swallows_failures(db_session, user):
    with patch.object(audit_repo, "create_audit_log", side_effect=RuntimeError("db down")):
        result = audit.record(
            db_session,
            action=AuditAction.RECURRING_RUN,
            status=AuditStatus.FAILURE,
            target_type="recurring",
            actor_user_id=None,
        )
    assert result is None


def test_update_profile_defaults_and_bank_account(db_session, user):
    profile, account = profile_repo.update_profile(
        db_session,
        user_id=user.id,
        update=schemas.ProfileUpdate(company_name="テスト商事", default_payment_term="days_after_issue"),
    )
    assert profile.default_payment_terms == 14
    assert account is None

    with pytest.raises(ValidationError):
        profile_repo.update_profile(db_session, user_id=user.id, update=schemas.ProfileUpdate(bank_name="みずほ銀行"))

    _, account = profile_repo.update_profile(
        db_session,
        user_id=user.id,
        update=schemas.ProfileUpdate(
            bank_name="みずほ銀行", branch_name="渋谷支店", account_number="1234567", account_holder="ﾃｽﾄｼｮｳｼﾞ"
        ),
    )
    assert account.account_type == "普通"
    assert account.is_default is True


def test_update_profile_rejects_bad_tax_rate(db_session, user):
    with pytest.raises(ValidationError):
        profile_repo.update_profile(db_session, user_id=user.id, update=schemas.ProfileUpdate(tax_rate=120))


def test_image_kind_is_checked(db_session, user):
    profile = profile_repo.set_image_url(db_session, user_id=user.id, kind="logo", url="https://cdn.example/logo.png")
    assert profile.logo_url == "https://cdn.example/logo.png"
    with pytest.raises(ValidationError):
        profile_repo.set_image_url(db_session, user_id=user.id, kind="banner", url="x")


def test_expense_update_keeps_unsent_fields(db_session, user):
    expense = _expense(db_session, user, date(2024, 5, 1), 3000, "交通費")
    updated = expense_repo.update_expense(
        db_session, user_id=user.id, expense_id=expense.id, update=schemas.ExpenseUpdate(amount=3500)
    )
    assert updated.amount == 3500
    assert updated.category == "交通費"
    assert db_session.query(models.Expense).count() == 1
