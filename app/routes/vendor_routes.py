from fastapi import APIRouter, Depends, Query, status

from app.database.database import DocumentStore, get_db
from app.schemas.payout_schemas import (
    PayoutResponse,
    VendorPayoutCreateSchema,
    VendorPayoutOverview,
)
from app.schemas.schemas import MessageResponse, ResponseSchema, SuspensionResponse
from app.schemas.settings_schema import (
    CommissionOverview,
    CommissionUpdateSchema,
    PlatformCommissionSchema,
)
from app.schemas.vendor_schemas import (
    SuspendedVendorsResponse,
    SuspendVendorSchema,
    VendorPerformanceResponse,
    VendorResponse,
    VendorUpdateSchema,
)
from app.services import payout_service, settings_service, vendor_service
from app.services.mutation_service import VENDOR_SUSPENSION, reinstate, suspend

router = APIRouter(prefix="/api/vendors", tags=["Vendors"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_vendors(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[list[VendorResponse]]:
    """Every vendor with earnings, order count and a menu preview"""
    return ResponseSchema(data=await vendor_service.get_vendors(db=db))


@router.patch("", status_code=status.HTTP_200_OK)
async def update_vendor(
    payload: VendorUpdateSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    return await vendor_service.update_vendor(
        db=db, vendor_id=payload.vendor_id, updates=payload.updates
    )


@router.get("/performance", status_code=status.HTTP_200_OK)
async def get_vendor_performance(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[VendorPerformanceResponse]:
    """Order buckets, cancellation/completion rates and ratings per vendor"""
    return ResponseSchema(data=await vendor_service.get_vendor_performance(db=db))


# Commission


@router.get("/commission", status_code=status.HTTP_200_OK)
async def get_commission_settings(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[CommissionOverview]:
    return ResponseSchema(data=await settings_service.get_commission_settings(db=db))


@router.patch("/commission", status_code=status.HTTP_200_OK)
async def update_vendor_commission(
    payload: CommissionUpdateSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    """
    Set a custom commission rate for one vendor

    - **commissionRate**: percent, 0 to 100
    - **reason**: stored in the vendor's commission history
    """
    return await settings_service.update_vendor_commission(db=db, update_data=payload)


@router.post("/commission", status_code=status.HTTP_200_OK)
async def update_platform_commission(
    payload: PlatformCommissionSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    return await settings_service.update_platform_commission(db=db, update_data=payload)


# Suspension


@router.get("/suspend", status_code=status.HTTP_200_OK)
async def get_suspended_vendors(
    db: DocumentStore = Depends(get_db),
) -> SuspendedVendorsResponse:
    return await vendor_service.get_suspended_vendors(db=db)


@router.post("/suspend", status_code=status.HTTP_200_OK)
async def suspend_vendor(
    payload: SuspendVendorSchema, db: DocumentStore = Depends(get_db)
) -> SuspensionResponse:
    """Suspend a vendor and take it offline"""
    return await suspend(
        db,
        VENDOR_SUSPENSION,
        entity_id=payload.vendor_id,
        reason=payload.reason.value if payload.reason else None,
        notes=payload.notes,
        admin_id=payload.admin_id,
    )


@router.delete("/suspend", status_code=status.HTTP_200_OK)
async def reinstate_vendor(
    vendor_id: str | None = Query(None, alias="vendorId"),
    admin_id: str | None = Query(None, alias="adminId"),
    db: DocumentStore = Depends(get_db),
) -> SuspensionResponse:
    """Lift a vendor's suspension"""
    return await reinstate(db, VENDOR_SUSPENSION, entity_id=vendor_id, admin_id=admin_id)


# Payouts


@router.get("/payouts", status_code=status.HTTP_200_OK)
async def get_vendor_payouts(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[VendorPayoutOverview]:
    """Net payable, paid and pending amounts per vendor with recent payouts"""
    return ResponseSchema(data=await payout_service.get_vendor_payouts(db=db))


@router.post("/payouts", status_code=status.HTTP_200_OK)
async def record_vendor_payout(
    payload: VendorPayoutCreateSchema, db: DocumentStore = Depends(get_db)
) -> PayoutResponse:
    """
    Record money paid out to a vendor

    - **vendorId**, **amount**: required, amount above 0
    - **method**: defaults to Bank Transfer
    """
    return await payout_service.record_vendor_payout(db=db, payout=payload)
