"""Tax calculation, amount normalization and document number formatting."""
from __future__ import annotations

import math
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Literal, Optional

TaxRounding = Literal["floor", "ceil", "round"]

TAX_ROUNDING_MODES = frozenset({"floor", "ceil", "round"})
DEFAULT_TAX_RATE = 10
DEFAULT_TAX_ROUNDING: TaxRounding = "floor"
DEFAULT_INVOICE_PREFIX = "INV-"
QUOTE_PREFIX = "QTE-"

_FULL_WIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")


def round_yen(value) -> int:
    """Round half-up to a whole yen."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calc_tax_amount(subtotal: int, rate_percent: float, rounding: str = DEFAULT_TAX_ROUNDING) -> int:
    raw = Decimal(str(subtotal)) * Decimal(str(rate_percent)) / Decimal(100)
    if rounding == "ceil":
        return int(math.ceil(raw))
    if rounding == "round":
        return round_yen(raw)
    return int(math.floor(raw))


def line_amount(quantity, unit_price) -> int:
    return round_yen(Decimal(str(quantity)) * Decimal(str(unit_price)))


def calc_subtotal(items: Iterable) -> int:
    total = 0
    for item in items:
        quantity = item["quantity"] if isinstance(item, dict) else item.quantity
        unit_price = item["unit_price"] if isinstance(item, dict) else item.unit_price
        total += line_amount(quantity, unit_price)
    return total


def normalize_to_half_width_numeric(value: str) -> str:
    """Convert full-width digits and separators so amounts parse as numbers."""
    return (
        value.translate(_FULL_WIDTH_DIGITS)
        .replace("．", ".")
        .replace("，", ",")
        .replace("、", ",")
        .strip()
    )


def format_document_number(prefix: str, issue_date: date, sequence: int) -> str:
    return f"{prefix}{issue_date.year}{issue_date.month:02d}-{sequence:03d}"


def parse_document_sequence(number: str, prefix: str, issue_date: date) -> Optional[int]:
    """Return the sequence part of `number` if it belongs to prefix + issue month."""
    head = f"{prefix}{issue_date.year}{issue_date.month:02d}-"
    if not number or not number.startswith(head):
        return None
    tail = number[len(head):]
    return int(tail) if tail.isdigit() else None
