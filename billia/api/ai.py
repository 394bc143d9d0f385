"""
LLM-assisted endpoints: memo parsing and invoice categorization.

Both raise LLMUnavailableError (503) when LLM features are off or no API key
is configured.
"""
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.services import memo_parser, sales_categorization

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/parse-memo", response_model=schemas.InvoiceDraft)
def parse_memo_endpoint(body: schemas.MemoParseRequest, user=Depends(get_current_user)):
    return memo_parser.parse_memo(body.text, kind=body.kind)


@router.post("/categorize-invoice/{invoice_id}", response_model=schemas.CategorizeResult)
def categorize_invoice_endpoint(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return sales_categorization.categorize_invoice(db, user_id=user.id, invoice_id=invoice_id)
