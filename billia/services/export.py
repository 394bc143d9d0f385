"""CSV exports of invoices and quotes, shaped for Excel in Japanese locales."""

from __future__ import annotations

import csv
import io
import uuid
from datetime import date
from typing import Iterable, Optional, Sequence
from sqlalchemy.orm import Session

from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import quotes as quote_repo
from billia.utils import calendar

BOM = "\ufeff"

INVOICE_HEADER = ("請求書番号", "取引先", "発行日", "支払期限", "合計金額", "ステータス")
QUOTE_HEADER = ("見積書番号", "取引先", "発行日", "有効期限", "合計金額", "ステータス")

STATUS_LABELS = {
    "draft": "下書き",
    "unpaid": "未払い",
    "partial": "部分払い",
    "paid": "支払済",
    "sent": "送付済",
    "accepted": "受注",
    "rejected": "失注",
}


def build_csv(header: Sequence[str], rows: Iterable[Sequence]) -> str:
    """CRLF rows behind a UTF-8 BOM so Excel opens the file as UTF-8."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(header)
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def export_filename(kind: str, today: Optional[date] = None) -> str:
    return f"{kind}-{(today or calendar.today()).isoformat()}.csv"


def invoices_csv(db: Session, *, user_id: uuid.UUID) -> str:
    rows = [
        (
            inv.invoice_number,
            inv.client_name or "",
            inv.issue_date.isoformat(),
            inv.due_date.isoformat(),
            inv.total_amount,
            STATUS_LABELS.get(inv.status, inv.status),
        )
        for inv in invoice_repo.list_invoices(db, user_id=user_id, limit=None)
    ]
    return build_csv(INVOICE_HEADER, rows)


def quotes_csv(db: Session, *, user_id: uuid.UUID) -> str:
    rows = [
        (
            q.quote_number,
            q.client_name or "",
            q.issue_date.isoformat(),
            q.valid_until.isoformat(),
            q.total_amount,
            STATUS_LABELS.get(q.status, q.status),
        )
        for q in quote_repo.list_quotes(db, user_id=user_id, limit=None)
    ]
    return build_csv(QUOTE_HEADER, rows)
