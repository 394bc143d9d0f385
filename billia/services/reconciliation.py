"""
Bank statement reconciliation.

Each deposit row of an uploaded CSV is matched against the caller's tenants
(payee mode) or open invoices (invoice mode) by amount first, then by
bigram (Sørensen-Dice) name similarity. Direct-debit agencies are recognized by a fixed
check string and a fixed expected amount.
"""
from __future__ import annotations

import csv
import io
import json
import logging
import os
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import textdistance
from sqlalchemy.orm import Session

from billia.db import models
from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import payments as payment_repo
from billia.db.repositories import tenants as tenant_repo
from billia.errors import ValidationError
from billia.utils.money import normalize_to_half_width_numeric

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_ROWS = 10000
MAX_NAME_LENGTH = 200
MATCH_THRESHOLD = 0.6
CSV_MIME_TYPES = frozenset({"text/csv", "application/vnd.ms-excel", "application/csv"})

MODE_PAYEE = "payee"
MODE_INVOICE = "invoice"
MODES = (MODE_PAYEE, MODE_INVOICE)

STATUS_MATCHED = "matched"
STATUS_ERROR = "error"
STATUS_REVIEW = "review"
STATUS_UNMATCHED = "unmatched"

# Corporate marker "カ）", any whitespace (incl. ideographic space), and parentheses
_NAME_NOISE_RE = re.compile(r"カ\）|[\s　]|[（）()]")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")
_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y%m%d", "%Y.%m.%d")
_WHITESPACE_RE = re.compile(r"\s+")
_bigram_dice = textdistance.Sorensen(qval=2, external=False)


@dataclass(frozen=True)
class Agency:
    """A direct-debit collector whose deposits carry a fixed label and amount."""

    name: str
    check_string: str
    expected_amount: int


DEFAULT_AGENCIES: Tuple[Agency, ...] = (
    Agency(name="リコーリース", check_string="ﾘｺ-ﾘ-ｽ", expected_amount=850000),
)


def load_agencies() -> Tuple[Agency, ...]:
    """Read agencies from RECONCILE_AGENCIES (JSON list) or use the default."""
    raw = os.getenv("RECONCILE_AGENCIES")
    if not raw:
        return DEFAULT_AGENCIES
    try:
        entries = json.loads(raw)
        return tuple(
            Agency(
                name=str(entry["name"]),
                check_string=str(entry["check_string"]),
                expected_amount=int(entry["expected_amount"]),
            )
            for entry in entries
        )
    except (ValueError, TypeError, KeyError) as exc:
        logger.warning("RECONCILE_AGENCIES is invalid (%s); using defaults", exc)
        return DEFAULT_AGENCIES


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    if size > MAX_FILE_SIZE:
        raise ValidationError("The file is too large (10MB max)")
    name = (filename or "").lower()
    ctype = (content_type or "").lower().split(";")[0].strip()
    if not (name.endswith(".csv") or ctype in CSV_MIME_TYPES):
        raise ValidationError("Only CSV files (.csv) can be uploaded")


def decode_csv_bytes(data: bytes) -> str:
    """UTF-8 with BOM, plain UTF-8, else Shift_JIS (cp932)."""
    if data.startswith(b"\xef\xbb\xbf"):
        return data.decode("utf-8-sig")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("cp932", errors="replace")


def parse_rows(text: str) -> List[List[str]]:
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if len(rows) > MAX_ROWS:
        raise ValidationError(f"The CSV has too many rows ({MAX_ROWS} max)")
    return rows


def parse_amount(value: str) -> int:
    """Leading integer of the cell; full-width digits and separators allowed."""
    cleaned = normalize_to_half_width_numeric(value or "").replace(",", "")
    match = _LEADING_INT_RE.match(cleaned)
    return int(match.group(0)) if match else 0


def parse_row_date(value: str) -> Optional[date]:
    raw = normalize_to_half_width_numeric(value or "")
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def clean_name(raw_name: str) -> str:
    return _NAME_NOISE_RE.sub("", raw_name)


def name_similarity(left: str, right: str) -> float:
    """Sørensen-Dice coefficient over character bigrams, whitespace ignored."""
    left = _WHITESPACE_RE.sub("", left or "")
    right = _WHITESPACE_RE.sub("", right or "")
    if left == right:
        return 1.0
    if len(left) < 2 or len(right) < 2:
        return 0.0
    return _bigram_dice(left, right)


def best_match(name: str, candidates: Sequence[Tuple[str, Any]]) -> Optional[Tuple[Any, float]]:
    """Return (candidate, score in 0..1) with the highest similarity, or None.

    Ties keep the earliest candidate.
    """
    best: Optional[Tuple[Any, float]] = None
    for label, record in candidates:
        score = name_similarity(name, label)
        if best is None or score > best[1]:
            best = (record, score)
    return best


def _row_result(row: List[str], amount: int, raw_name: str) -> Dict[str, Any]:
    return {
        "date": row[0].strip(),
        "amount": amount,
        "raw_name": raw_name,
        "status": STATUS_UNMATCHED,
        "message": "No match",
        "tenant_id": None,
        "tenant_name": None,
        "invoice_id": None,
        "score": None,
    }


def match_rows(
    rows: Sequence[List[str]],
    *,
    agencies: Sequence[Agency],
    candidates_for: Callable[[int], Sequence[Tuple[str, Any]]],
    mode: str = MODE_PAYEE,
) -> List[Dict[str, Any]]:
    """Classify each row. ``candidates_for(amount)`` yields (label, record) pairs."""
    results: List[Dict[str, Any]] = []
    for row in rows:
        if len(row) < 4:
            continue
        amount = parse_amount(row[2])
        raw_name = (row[3] or "").strip()
        if len(raw_name) > MAX_NAME_LENGTH:
            continue
        if not amount or not raw_name:
            continue

        result = _row_result(row, amount, raw_name)
        agency = next((a for a in agencies if a.check_string in raw_name), None)
        if agency is not None:
            if amount == agency.expected_amount:
                result["status"] = STATUS_MATCHED
                result["message"] = f"Direct debit OK ({agency.name})"
            else:
                result["status"] = STATUS_ERROR
                result["message"] = f"Amount mismatch (expected {agency.expected_amount})"
            results.append(result)
            continue

        candidates = candidates_for(amount)
        found = best_match(clean_name(raw_name), candidates)
        if found is not None:
            record, score = found
            result["score"] = round(score, 3)
            if score >= MATCH_THRESHOLD:
                result["status"] = STATUS_MATCHED
                if mode == MODE_INVOICE:
                    result["invoice_id"] = record.id
                    result["message"] = f"Matched invoice {record.invoice_number}"
                else:
                    result["tenant_id"] = record.id
                    result["tenant_name"] = record.name
                    result["message"] = f"Matched: {record.name}"
            else:
                result["status"] = STATUS_REVIEW
                result["message"] = "Candidate found, name mismatch"
        results.append(result)
    return results


def _payee_candidates(db: Session, user_id: uuid.UUID) -> Callable[[int], List[Tuple[str, models.Tenant]]]:
    cache: Dict[int, List[Tuple[str, models.Tenant]]] = {}

    def lookup(amount: int) -> List[Tuple[str, models.Tenant]]:
        if amount not in cache:
            tenants = tenant_repo.list_tenants_by_amount(db, user_id=user_id, amount=amount)
            cache[amount] = [(t.name_kana, t) for t in tenants]
        return cache[amount]

    return lookup


def _invoice_candidates(db: Session, user_id: uuid.UUID) -> Callable[[int], List[Tuple[str, models.Invoice]]]:
    open_invoices = invoice_repo.list_open_invoices(db, user_id=user_id)

    def lookup(amount: int) -> List[Tuple[str, models.Invoice]]:
        return [(inv.client_name or "", inv) for inv in open_invoices if inv.total_amount == amount]

    return lookup


def _apply_matches(db: Session, user_id: uuid.UUID, results: List[Dict[str, Any]], mode: str) -> int:
    applied = 0
    for result in results:
        if result["status"] != STATUS_MATCHED:
            continue
        if mode == MODE_INVOICE and result["invoice_id"]:
            db_invoice = invoice_repo.get_invoice(db, user_id=user_id, invoice_id=result["invoice_id"])
            if db_invoice is None or db_invoice.status == invoice_repo.STATUS_PAID:
                continue
            db_invoice.status = invoice_repo.STATUS_PAID
            db_invoice.paid_date = parse_row_date(result["date"]) or date.today()
            applied += 1
        elif mode == MODE_PAYEE and result["tenant_id"]:
            paid_on = parse_row_date(result["date"])
            if paid_on is None:
                result["message"] = f"{result['message']} (not recorded: unreadable date)"
                continue
            tenant = tenant_repo.get_tenant(db, user_id=user_id, tenant_id=result["tenant_id"])
            if tenant is None:
                continue
            payment_repo.create_payment_with_status(
                db, tenant=tenant, amount=result["amount"], payment_date=paid_on, commit=False
            )
            applied += 1
    db.commit()
    return applied


def reconcile_upload(
    db: Session,
    *,
    user_id: uuid.UUID,
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
    mode: str = MODE_PAYEE,
    apply: bool = False,
) -> Dict[str, Any]:
    if mode not in MODES:
        raise ValidationError("mode must be payee or invoice")
    validate_upload(filename, content_type, len(data))
    rows = parse_rows(decode_csv_bytes(data))
    candidates_for = _invoice_candidates(db, user_id) if mode == MODE_INVOICE else _payee_candidates(db, user_id)
    results = match_rows(rows, agencies=load_agencies(), candidates_for=candidates_for, mode=mode)
    applied = _apply_matches(db, user_id, results, mode) if apply else 0

    summary = {
        "matched": sum(1 for r in results if r["status"] == STATUS_MATCHED),
        "review": sum(1 for r in results if r["status"] == STATUS_REVIEW),
        "unmatched": sum(1 for r in results if r["status"] == STATUS_UNMATCHED),
        "errors": sum(1 for r in results if r["status"] == STATUS_ERROR),
    }
    logger.info(
        "reconcile_completed: user_id=%s mode=%s rows=%d matched=%d applied=%d",
        user_id, mode, len(results), summary["matched"], applied,
    )
    return {"mode": mode, "rows": results, "applied_count": applied, **summary}
