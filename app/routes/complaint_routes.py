from fastapi import APIRouter, Depends, Query, status

from app.database.database import DocumentStore, get_db
from app.schemas.complaint_schemas import ComplaintListResponse, ComplaintUpdateSchema
from app.schemas.schemas import MessageResponse, ResponseSchema
from app.services import complaint_service

router = APIRouter(prefix="/api/complaints", tags=["Complaints"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_complaints(
    complaint_status: str | None = Query(None, alias="status"),
    priority: str | None = Query(None),
    complaint_type: str | None = Query(None, alias="type"),
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[ComplaintListResponse]:
    """Latest complaints, filtered by status, priority and type, with a summary"""
    return ResponseSchema(
        data=await complaint_service.get_complaints(
            db=db,
            complaint_status=complaint_status,
            priority=priority,
            complaint_type=complaint_type,
        )
    )


@router.patch("", status_code=status.HTTP_200_OK)
async def update_complaint(
    payload: ComplaintUpdateSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    return await complaint_service.update_complaint(db=db, update_data=payload)
