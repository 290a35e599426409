from fastapi import APIRouter, Depends, status

from app.database.database import DocumentStore, get_db
from app.schemas.delivery_schemas import (
    DeliveryVerificationSchema,
    PendingDeliveryPersonSchema,
)
from app.schemas.schemas import MessageResponse, ResponseSchema
from app.schemas.vendor_schemas import PendingVendorSchema, VendorVerificationSchema
from app.services import verification_service

router = APIRouter(prefix="/api/verification", tags=["Verification"])


@router.get("/vendors", status_code=status.HTTP_200_OK)
async def get_pending_vendors(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[list[PendingVendorSchema]]:
    """Unverified vendors with their menu items"""
    return ResponseSchema(data=await verification_service.get_pending_vendors(db=db))


@router.patch("/vendors", status_code=status.HTTP_200_OK)
async def verify_vendor(
    payload: VendorVerificationSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    """
    Approve or reject a vendor

    - **action**: `approve` or `reject`
    """
    return await verification_service.verify_vendor(
        db=db, vendor_id=payload.vendor_id, action=payload.action, notes=payload.notes
    )


@router.get("/delivery", status_code=status.HTTP_200_OK)
async def get_pending_delivery_persons(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[list[PendingDeliveryPersonSchema]]:
    return ResponseSchema(
        data=await verification_service.get_pending_delivery_persons(db=db)
    )


@router.patch("/delivery", status_code=status.HTTP_200_OK)
async def verify_delivery_person(
    payload: DeliveryVerificationSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    return await verification_service.verify_delivery_person(
        db=db,
        delivery_person_id=payload.delivery_person_id,
        action=payload.action,
        notes=payload.notes,
    )
