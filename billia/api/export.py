"""
CSV export downloads for invoices and quotes.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db.database import get_db
from billia.services import export as export_service

router = APIRouter(prefix="/export", tags=["export"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _csv_response(body: str, kind: str) -> Response:
    filename = export_service.export_filename(kind)
    return Response(
        content=body.encode("utf-8"),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/invoices")
def export_invoices_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _csv_response(export_service.invoices_csv(db, user_id=user.id), "invoices")


@router.get("/quotes")
def export_quotes_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _csv_response(export_service.quotes_csv(db, user_id=user.id), "quotes")
