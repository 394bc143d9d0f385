"""
Line item normalization and document totals shared by quotes and invoices.
"""
from __future__ import annotations

from typing import Iterable, List, Tuple

from billia.errors import ValidationError
from billia.utils.money import calc_subtotal, calc_tax_amount, line_amount
from billia.utils.validation import MAX_LENGTHS, validate_length


def _field(item, name, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def filter_line_items(items: Iterable) -> List[dict]:
    """Drop blank rows and return plain dicts.

    A row survives when its name is non-empty, quantity > 0 and unit
    price >= 0. At least one row must survive.
    """
    kept: List[dict] = []
    for item in items or []:
        name = (_field(item, "name") or "").strip()
        quantity = _field(item, "quantity") or 0
        unit_price = _field(item, "unit_price")
        if not name or quantity <= 0 or unit_price is None or unit_price < 0:
            continue
        validate_length(name, MAX_LENGTHS["title"], "Item name")
        kept.append({
            "name": name,
            "quantity": quantity,
            "unit": _field(item, "unit"),
            "unit_price": int(unit_price),
        })
    if not kept:
        raise ValidationError("At least one line item is required")
    return kept


def build_item_rows(model_cls, items: List[dict], tax_rate: float) -> list:
    """Create ORM item rows with positions and rounded amounts."""
    rows = []
    for position, item in enumerate(items):
        rows.append(model_cls(
            position=position,
            name=item["name"],
            quantity=item["quantity"],
            unit=item.get("unit"),
            unit_price=item["unit_price"],
            tax_rate=tax_rate,
            amount=line_amount(item["quantity"], item["unit_price"]),
        ))
    return rows


def compute_totals(items: List[dict], tax_rate: float, rounding: str, withholding_tax: int = 0) -> Tuple[int, int, int]:
    """Return (subtotal, tax_amount, total_amount)."""
    subtotal = calc_subtotal(items)
    tax_amount = calc_tax_amount(subtotal, tax_rate, rounding)
    return subtotal, tax_amount, subtotal + tax_amount - withholding_tax
