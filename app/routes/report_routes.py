from datetime import date

from fastapi import APIRouter, Depends, Query, status

from app.database.database import DocumentStore, get_db
from app.schemas.report_schemas import GSTReport
from app.schemas.schemas import ResponseSchema
from app.services import report_service

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/gst", status_code=status.HTTP_200_OK)
async def get_gst_report(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    vendor_id: str | None = Query(None, alias="vendorId"),
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[GSTReport]:
    """
    GST collected on commission, food and delivery for completed orders

    - **startDate** / **endDate**: inclusive day range (YYYY-MM-DD)
    - **vendorId**: restrict to one vendor
    """
    return ResponseSchema(
        data=await report_service.get_gst_report(
            db=db, start_date=start_date, end_date=end_date, vendor_id=vendor_id
        )
    )
