"""AI-assisted assignment of invoice line items to sales categories."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, List
from sqlalchemy.orm import Session

from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import sales as sales_repo
from billia.errors import ValidationError
from billia.services import llm
from billia.utils import calendar
from billia.utils.money import line_amount

logger = logging.getLogger(__name__)


def build_prompt(category_names: List[str], items: List[Dict[str, Any]]) -> str:
    lines = "\n".join(
        f"[{item['index']}] {item['name']} qty {item['quantity']} x {item['unit_price']} JPY = {item['amount']} JPY"
        for item in items
    )
    return (
        "Assign each invoice line item below to exactly one of the given sales categories.\n"
        "categoryName must match one of these names exactly (do not rewrite them): "
        + "、".join(category_names)
        + "\n\nItems:\n"
        + lines
        + "\n\nRespond with JSON only, no explanation or Markdown:\n"
        '{ "assignments": [ { "itemIndex": 0, "categoryName": "<category>" } ] }\n'
    )


def categorize_invoice(db: Session, *, user_id: uuid.UUID, invoice_id: uuid.UUID) -> Dict[str, Any]:
    """Ask the LLM for assignments and add the sums to the issue month's entries."""
    db_invoice = invoice_repo.require_invoice(db, user_id=user_id, invoice_id=invoice_id)
    categories = sales_repo.list_categories(db, user_id=user_id)
    if not categories:
        raise ValidationError("Add a sales category before using AI categorization")
    if not db_invoice.items:
        raise ValidationError("The invoice has no line items")

    items = [
        {
            "index": index,
            "name": item.name,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "amount": line_amount(item.quantity, item.unit_price),
        }
        for index, item in enumerate(db_invoice.items)
    ]
    category_ids = {c.name: c.id for c in categories}
    reply = llm.generate_json(build_prompt(list(category_ids), items))

    assignments = []
    sums: Dict[str, int] = defaultdict(int)
    by_index = {item["index"]: item for item in items}
    for assignment in reply.get("assignments") or []:
        if not isinstance(assignment, dict):
            continue
        item = by_index.get(assignment.get("itemIndex"))
        name = assignment.get("categoryName")
        if item is None or name not in category_ids:
            continue
        sums[name] += item["amount"]
        assignments.append({"item_index": item["index"], "category_name": name, "amount": item["amount"]})

    month = calendar.month_key(db_invoice.issue_date)
    for name, amount in sums.items():
        if amount <= 0:
            continue
        sales_repo.add_to_entry(db, user_id=user_id, category_id=category_ids[name], month=month, amount=amount)
    db.commit()
    logger.info("invoice_categorized: invoice_id=%s month=%s categories=%d", db_invoice.id, month, len(sums))
    return {
        "invoice_id": db_invoice.id,
        "month": month,
        "assignments": assignments,
        "totals": {name: amount for name, amount in sums.items() if amount > 0},
    }
