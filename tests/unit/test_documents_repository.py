import uuid
from datetime import date

import pytest

from billia.db import schemas
from billia.db.repositories import clients as client_repo
from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import quotes as quote_repo
from billia.db.repositories.line_items import filter_line_items
from billia.db.repositories.numbering import next_invoice_number, next_quote_number
from billia.errors import ConflictError, NotFoundError, ValidationError


def _items(*rows):
    return [schemas.LineItemInput(name=n, quantity=q, unit_price=p) for n, q, p in rows]


def _invoice(client, issue=date(2024, 5, 10), items=None, withholding=0):
    return schemas.InvoiceCreate(
        client_id=client.id,
        issue_date=issue,
        due_date=date(2024, 6, 30),
        items=items or _items(("Web制作", 1, 100000)),
        withholding_tax=withholding,
    )


def test_filter_line_items_drops_blank_rows():
    kept = filter_line_items([
        {"name": "  保守  ", "quantity": 2, "unit_price": 5000},
        {"name": "", "quantity": 1, "unit_price": 100},
        {"name": "値引き前", "quantity": 0, "unit_price": 100},
        {"name": "負", "quantity": 1, "unit_price": -1},
        {"name": "無料", "quantity": 1, "unit_price": 0},
    ])
    assert [k["name"] for k in kept] == ["保守", "無料"]


def test_filter_line_items_requires_one_row():
    with pytest.raises(ValidationError):
        filter_line_items([{"name": "", "quantity": 1, "unit_price": 1}])


def test_invoice_numbers_follow_profile_and_restart_monthly(db_session, user, client_factory, profile_factory):
    profile_factory(user, invoice_number_prefix="B-", invoice_number_start=5)
    client = client_factory(user)

    first = invoice_repo.create_invoice(db_session, user_id=user.id, invoice=_invoice(client))
    second = invoice_repo.create_invoice(db_session, user_id=user.id, invoice=_invoice(client))
    june = invoice_repo.create_invoice(db_session, user_id=user.id, invoice=_invoice(client, issue=date(2024, 6, 1)))

    assert first.invoice_number == "B-202405-005"
    assert second.invoice_number == "B-202405-006"
    assert june.invoice_number == "B-202406-005"


def test_numbering_is_per_user(db_session, user_factory, client_factory):
    alice = user_factory("alice@example.com")
    bob = user_factory("bob@example.com")
    invoice_repo.create_invoice(db_session, user_id=alice.id, invoice=_invoice(client_factory(alice)))

    assert next_invoice_number(db_session, user_id=bob.id, issue_date=date(2024, 5, 1)) == "INV-202405-001"
    assert next_invoice_number(db_session, user_id=alice.id, issue_date=date(2024, 5, 1)) == "INV-202405-002"
    assert next_quote_number(db_session, user_id=alice.id, issue_date=date(2024, 5, 1)) == "QTE-202405-001"


def test_create_invoice_totals_with_withholding(db_session, user, client_factory, profile_factory):
    profile_factory(user, tax_rate=10, tax_rounding="ceil")
    client = client_factory(user)
    invoice = invoice_repo.create_invoice(
        db_session,
        user_id=user.id,
        invoice=_invoice(client, items=_items(("デザイン", 1, 10005), ("", 1, 999)), withholding=1021),
    )
    assert invoice.subtotal == 10005
    assert invoice.tax_amount == 1001
    assert invoice.total_amount == 10005 + 1001 - 1021
    assert invoice.status == invoice_repo.STATUS_UNPAID
    assert [item.name for item in invoice.items] == ["デザイン"]
    assert invoice.items[0].tax_rate == 10


def test_create_invoice_with_new_client_name(db_session, user):
    invoice = invoice_repo.create_invoice(
        db_session,
        user_id=user.id,
        invoice=schemas.InvoiceCreate(
            new_client_name="新規商店",
            issue_date=date(2024, 5, 1),
            due_date=date(2024, 5, 31),
            items=_items(("作業", 1, 1000)),
        ),
    )
    assert invoice.client_name == "新規商店"


def test_create_invoice_needs_a_client(db_session, user):
    with pytest.raises(ValidationError):
        invoice_repo.create_invoice(
            db_session,
            user_id=user.id,
            invoice=schemas.InvoiceCreate(
                issue_date=date(2024, 5, 1),
                due_date=date(2024, 5, 31),
                items=_items(("作業", 1, 1000)),
            ),
        )


def test_other_users_invoice_is_not_found(db_session, user_factory, client_factory):
    owner = user_factory("owner2@example.com")
    stranger = user_factory("stranger@example.com")
    invoice = invoice_repo.create_invoice(db_session, user_id=owner.id, invoice=_invoice(client_factory(owner)))

    assert invoice_repo.get_invoice(db_session, user_id=stranger.id, invoice_id=invoice.id) is None
    with pytest.raises(NotFoundError):
        invoice_repo.delete_invoice(db_session, user_id=stranger.id, invoice_id=invoice.id)


def test_update_invoice_recomputes_with_stored_rate(db_session, user, client_factory, profile_factory):
    profile = profile_factory(user, tax_rate=10)
    invoice = invoice_repo.create_invoice(db_session, user_id=user.id, invoice=_invoice(client_factory(user)))

    profile.tax_rate = 8
    db_session.commit()

    updated = invoice_repo.update_invoice(
        db_session,
        user_id=user.id,
        invoice_id=invoice.id,
        update=schemas.InvoiceUpdate(items=_items(("追加作業", 2, 3000)), notes="修正"),
    )
    assert updated.subtotal == 6000
    assert updated.tax_amount == 600
    assert updated.total_amount == 6600
    assert updated.notes == "修正"


def test_status_changes_and_receipt(db_session, user, client_factory, profile_factory):
    profile_factory(user, invoice_reg_number="T1234567890123")
    invoice = invoice_repo.create_invoice(db_session, user_id=user.id, invoice=_invoice(client_factory(user)))

    with pytest.raises(ConflictError):
        invoice_repo.build_receipt(db_session, user_id=user.id, invoice_id=invoice.id)
    with pytest.raises(ValidationError):
        invoice_repo.set_invoice_status(db_session, user_id=user.id, invoice_id=invoice.id, status="void")

    paid = invoice_repo.set_invoice_status(
        db_session, user_id=user.id, invoice_id=invoice.id, status="paid", today=date(2024, 6, 5)
    )
    assert paid.paid_date == date(2024, 6, 5)
    receipt = invoice_repo.build_receipt(db_session, user_id=user.id, invoice_id=invoice.id)
    assert receipt["total_amount"] == paid.total_amount
    assert receipt["issuer_invoice_reg_number"] == "T1234567890123"

    reopened = invoice_repo.set_invoice_status(db_session, user_id=user.id, invoice_id=invoice.id, status="unpaid")
    assert reopened.paid_date is None


def test_bulk_set_status_counts_only_owned_rows(db_session, user_factory, client_factory):
    owner = user_factory("bulk@example.com")
    other = user_factory("other@example.com")
    mine = [
        invoice_repo.create_invoice(db_session, user_id=owner.id, invoice=_invoice(client_factory(owner))).id
        for _ in range(2)
    ]
    theirs = invoice_repo.create_invoice(db_session, user_id=other.id, invoice=_invoice(client_factory(other))).id

    updated = invoice_repo.bulk_set_status(
        db_session, user_id=owner.id, invoice_ids=mine + [theirs], status="paid", today=date(2024, 6, 1)
    )
    assert updated == 2
    db_session.expire_all()
    assert invoice_repo.get_invoice(db_session, user_id=other.id, invoice_id=theirs).status == "unpaid"


def test_aging_report_buckets(db_session, user, client_factory):
    client = client_factory(user)
    for due in (date(2024, 5, 20), date(2024, 4, 1), date(2024, 1, 1)):
        invoice_repo.create_invoice(
            db_session,
            user_id=user.id,
            invoice=schemas.InvoiceCreate(
                client_id=client.id,
                issue_date=date(2023, 12, 1),
                due_date=due,
                items=_items(("月額", 1, 1000)),
            ),
        )
    report = invoice_repo.aging_report(db_session, user_id=user.id, today=date(2024, 5, 15))

    by_due = {row["due_date"]: row for row in report["rows"]}
    assert by_due[date(2024, 5, 20)]["days_overdue"] == 0
    assert by_due[date(2024, 5, 20)]["bucket"] == "0-30"
    assert by_due[date(2024, 4, 1)]["bucket"] == "31-60"
    assert by_due[date(2024, 1, 1)]["bucket"] == "90+"
    assert report["bucket_totals"] == {"0-30": 1100, "31-60": 1100, "61-90": 0, "90+": 1100}
    assert report["grand_total"] == 3300


@pytest.mark.parametrize("days,bucket", [(0, "0-30"), (30, "0-30"), (31, "31-60"), (60, "31-60"), (61, "61-90"), (90, "61-90"), (91, "90+")])
def test_aging_bucket_edges(days, bucket):
    assert invoice_repo.aging_bucket(days) == bucket


def test_delete_client_in_use_conflicts(db_session, user, client_factory):
    client = client_factory(user)
    invoice_repo.create_invoice(db_session, user_id=user.id, invoice=_invoice(client))
    with pytest.raises(ConflictError):
        client_repo.delete_client(db_session, user_id=user.id, client_id=client.id)


def _quote(client, valid_until=date(2024, 6, 30)):
    return schemas.QuoteCreate(
        client_id=client.id,
        issue_date=date(2024, 5, 1),
        valid_until=valid_until,
        items=_items(("LP制作", 1, 200000), ("撮影", 2, 15000)),
    )


def test_create_quote_totals_and_status(db_session, user, client_factory):
    quote = quote_repo.create_quote(db_session, user_id=user.id, quote=_quote(client_factory(user)))
    assert quote.quote_number == "QTE-202405-001"
    assert quote.subtotal == 230000
    assert quote.tax_amount == 23000
    assert quote.total_amount == 253000
    assert quote.status == "draft"


def test_accept_link_is_stable(db_session, user, client_factory, monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://app.billia.jp")
    quote = quote_repo.create_quote(db_session, user_id=user.id, quote=_quote(client_factory(user)))

    token, url = quote_repo.ensure_accept_token(db_session, user_id=user.id, quote_id=quote.id)
    again, _ = quote_repo.ensure_accept_token(db_session, user_id=user.id, quote_id=quote.id)

    assert token == again
    assert url == f"https://app.billia.jp/accept/{token}"


def test_accept_quote_by_token(db_session, user, client_factory):
    quote = quote_repo.create_quote(db_session, user_id=user.id, quote=_quote(client_factory(user)))
    token, _ = quote_repo.ensure_accept_token(db_session, user_id=user.id, quote_id=quote.id)

    accepted = quote_repo.accept_quote_by_token(db_session, token, today=date(2024, 6, 1))
    first_stamp = accepted.accepted_at
    assert accepted.status == "accepted"
    assert first_stamp is not None

    again = quote_repo.accept_quote_by_token(db_session, token, today=date(2024, 6, 2))
    assert again.accepted_at == first_stamp

    with pytest.raises(NotFoundError):
        quote_repo.accept_quote_by_token(db_session, "missing-token")


def test_expired_quote_cannot_be_accepted(db_session, user, client_factory):
    quote = quote_repo.create_quote(
        db_session, user_id=user.id, quote=_quote(client_factory(user), valid_until=date(2024, 5, 31))
    )
    token, _ = quote_repo.ensure_accept_token(db_session, user_id=user.id, quote_id=quote.id)
    with pytest.raises(ConflictError):
        quote_repo.accept_quote_by_token(db_session, token, today=date(2024, 6, 1))


def test_convert_quote_to_invoice(db_session, user, client_factory):
    quote = quote_repo.create_quote(db_session, user_id=user.id, quote=_quote(client_factory(user)))

    invoice = quote_repo.convert_quote_to_invoice(
        db_session, user_id=user.id, quote_id=quote.id, today=date(2024, 5, 20)
    )
    db_session.refresh(quote)

    assert invoice.issue_date == date(2024, 5, 20)
    assert invoice.due_date == date(2024, 6, 30)
    assert invoice.status == "unpaid"
    assert invoice.total_amount == quote.total_amount
    assert [i.name for i in invoice.items] == ["LP制作", "撮影"]
    assert quote.status == "accepted"
    assert quote.converted_invoice_id == invoice.id

    with pytest.raises(ConflictError):
        quote_repo.convert_quote_to_invoice(db_session, user_id=user.id, quote_id=quote.id)


def test_bulk_convert_allocates_sequential_numbers(db_session, user, client_factory):
    client = client_factory(user)
    quotes = [quote_repo.create_quote(db_session, user_id=user.id, quote=_quote(client)) for _ in range(2)]
    ids = [quotes[1].id, uuid.uuid4(), quotes[0].id]

    invoices = quote_repo.bulk_convert_quotes(db_session, user_id=user.id, quote_ids=ids, today=date(2024, 5, 20))

    assert [inv.invoice_number for inv in invoices] == ["INV-202405-001", "INV-202405-002"]
    assert invoices[0].id == quote_repo.get_quote(db_session, user_id=user.id, quote_id=quotes[1].id).converted_invoice_id


def test_delete_invoice_unlinks_quote(db_session, user, client_factory):
    quote = quote_repo.create_quote(db_session, user_id=user.id, quote=_quote(client_factory(user)))
    invoice = quote_repo.convert_quote_to_invoice(db_session, user_id=user.id, quote_id=quote.id)

    invoice_repo.delete_invoice(db_session, user_id=user.id, invoice_id=invoice.id)
    db_session.expire_all()

    assert quote_repo.get_quote(db_session, user_id=user.id, quote_id=quote.id).converted_invoice_id is None
