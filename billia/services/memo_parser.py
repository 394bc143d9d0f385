"""Turn free-form memo text into an invoice or quote draft via the LLM."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Optional

from billia.errors import ValidationError
from billia.services import llm
from billia.utils import calendar
from billia.utils.money import normalize_to_half_width_numeric

logger = logging.getLogger(__name__)

KIND_INVOICE = "invoice"
KIND_QUOTE = "quote"

_AMOUNT_NOISE_RE = re.compile(r"[,，円\s]")

_PROMPT_TEMPLATE = """Extract {document} details from the memo below. The memo may be casual or spoken language.
Respond with JSON only, without Markdown.

Memo:
{memo}

Return JSON in this shape:
{{
  "clientName": "client company or person name",
  "clientEmail": "email address, if any",
  "clientAddress": "postal address, if any",
  "issueDate": "issue date as YYYY-MM-DD, if stated",
  "{deadline_key}": "{deadline_label} as YYYY-MM-DD, if stated",
  "items": [
    {{"name": "item name", "quantity": 1, "unitPrice": 100000}}
  ],
  "note": "remarks, if any"
}}

Example memo: "ABC Inc., system development 100,000 yen, issued 2025-02-15, due end of March"
Example reply: {{"clientName": "ABC Inc.", "issueDate": "2025-02-15", "{deadline_key}": "2025-03-31",
"items": [{{"name": "system development", "quantity": 1, "unitPrice": 100000}}]}}

Amounts must be plain numbers (no commas or currency symbols).
"""


def build_prompt(memo: str, kind: str) -> str:
    if kind == KIND_QUOTE:
        return _PROMPT_TEMPLATE.format(document="quote", memo=memo, deadline_key="validUntil", deadline_label="valid-until date")
    return _PROMPT_TEMPLATE.format(document="invoice", memo=memo, deadline_key="dueDate", deadline_label="payment due date")


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _parse_unit_price(value: Any) -> int:
    cleaned = _AMOUNT_NOISE_RE.sub("", normalize_to_half_width_numeric(str(value or 0)))
    try:
        return int(float(cleaned))
    except ValueError:
        return 0


def _parse_quantity(value: Any) -> float:
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity > 0 else 1


def parse_memo(text: str, kind: str = KIND_INVOICE, today: Optional[date] = None) -> Dict[str, Any]:
    if not text or not text.strip():
        raise ValidationError("Memo text is required")
    if kind not in (KIND_INVOICE, KIND_QUOTE):
        raise ValidationError("kind must be invoice or quote")
    today = today or calendar.today()

    parsed = llm.generate_json(build_prompt(text.strip(), kind))
    client_name = str(parsed.get("clientName") or "").strip()
    raw_items = parsed.get("items")
    if not client_name or not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("The memo must mention a client and at least one item")

    items = [
        {
            "name": str(item.get("name") or "").strip(),
            "quantity": _parse_quantity(item.get("quantity")),
            "unit_price": _parse_unit_price(item.get("unitPrice")),
        }
        for item in raw_items
        if isinstance(item, dict)
    ]
    deadline = _parse_date(parsed.get("validUntil" if kind == KIND_QUOTE else "dueDate")) or calendar.end_of_next_month(today)
    draft = {
        "client_name": client_name,
        "client_email": str(parsed["clientEmail"]).strip() if parsed.get("clientEmail") else None,
        "client_address": str(parsed["clientAddress"]).strip() if parsed.get("clientAddress") else None,
        "issue_date": _parse_date(parsed.get("issueDate")) or today,
        "due_date": deadline if kind == KIND_INVOICE else None,
        "valid_until": deadline if kind == KIND_QUOTE else None,
        "items": items,
        "note": str(parsed["note"]).strip() if parsed.get("note") else None,
    }
    logger.info("memo_parsed: kind=%s items=%d", kind, len(items))
    return draft
