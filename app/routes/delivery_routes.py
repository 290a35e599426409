from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.config.config import settings
from app.database.database import DocumentStore, get_db
from app.schemas.delivery_schemas import (
    CodOverview,
    CodSettlementCreateSchema,
    CodSettlementResponse,
    DeliveryPerformanceResponse,
    DeliveryPersonResponse,
    DeliveryPersonUpdateSchema,
    SuspendDeliveryPersonSchema,
    SuspendedDeliveryPersonsResponse,
    SyncRequestSchema,
    SyncResponse,
)
from app.schemas.payout_schemas import (
    DeliveryPayoutCreateSchema,
    DeliveryPayoutOverview,
    DeliveryPayoutResponse,
)
from app.schemas.schemas import MessageResponse, ResponseSchema, SuspensionResponse
from app.services import delivery_service, payout_service
from app.services.mutation_service import DELIVERY_SUSPENSION, reinstate, suspend
from app.utils.limiter import limiter

router = APIRouter(prefix="/api/delivery", tags=["Delivery Partners"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_delivery_persons(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[list[DeliveryPersonResponse]]:
    """Every delivery partner with earnings and COD totals"""
    return ResponseSchema(data=await delivery_service.get_delivery_persons(db=db))


@router.patch("", status_code=status.HTTP_200_OK)
async def update_delivery_person(
    payload: DeliveryPersonUpdateSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    return await delivery_service.update_delivery_person(
        db=db, delivery_person_id=payload.delivery_person_id, updates=payload.updates
    )


async def optional_sync_request(request: Request) -> SyncRequestSchema:
    """Sync body is optional; a missing or unreadable body syncs every partner"""
    try:
        body = await request.json()
    except ValueError:
        return SyncRequestSchema()
    if not isinstance(body, dict):
        return SyncRequestSchema()
    try:
        return SyncRequestSchema.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.post("/sync", status_code=status.HTTP_200_OK)
@limiter.limit(settings.SYNC_RATE_LIMIT)
async def sync_delivery_earnings(
    request: Request,
    payload: SyncRequestSchema = Depends(optional_sync_request),
    db: DocumentStore = Depends(get_db),
) -> SyncResponse:
    """
    Recalculate cached earnings from delivered tasks

    - **deliveryPersonId**: optional, restricts the sync to one partner
    """
    return await delivery_service.sync_delivery_earnings(
        db=db, delivery_person_id=payload.delivery_person_id
    )


@router.get("/performance", status_code=status.HTTP_200_OK)
async def get_delivery_performance(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[DeliveryPerformanceResponse]:
    return ResponseSchema(data=await delivery_service.get_delivery_performance(db=db))


# Cash on delivery


@router.get("/cod", status_code=status.HTTP_200_OK)
async def get_cod_overview(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[CodOverview]:
    return ResponseSchema(data=await delivery_service.get_cod_overview(db=db))


@router.post("/cod", status_code=status.HTTP_200_OK)
async def record_cod_settlement(
    payload: CodSettlementCreateSchema, db: DocumentStore = Depends(get_db)
) -> CodSettlementResponse:
    """Record cash handed over by a delivery partner"""
    return await delivery_service.record_cod_settlement(db=db, settlement=payload)


# Payouts


@router.get("/payouts", status_code=status.HTTP_200_OK)
async def get_delivery_payouts(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[DeliveryPayoutOverview]:
    return ResponseSchema(data=await payout_service.get_delivery_payouts(db=db))


@router.post("/payouts", status_code=status.HTTP_200_OK)
async def record_delivery_payout(
    payload: DeliveryPayoutCreateSchema, db: DocumentStore = Depends(get_db)
) -> DeliveryPayoutResponse:
    """Record money paid out to a delivery partner"""
    return await payout_service.record_delivery_payout(db=db, payout=payload)


# Suspension


@router.get("/suspend", status_code=status.HTTP_200_OK)
async def get_suspended_delivery_persons(
    db: DocumentStore = Depends(get_db),
) -> SuspendedDeliveryPersonsResponse:
    return await delivery_service.get_suspended_delivery_persons(db=db)


@router.post("/suspend", status_code=status.HTTP_200_OK)
async def suspend_delivery_person(
    payload: SuspendDeliveryPersonSchema, db: DocumentStore = Depends(get_db)
) -> SuspensionResponse:
    """Suspend a delivery partner and take them off the dispatch pool"""
    return await suspend(
        db,
        DELIVERY_SUSPENSION,
        entity_id=payload.delivery_person_id,
        reason=payload.reason.value if payload.reason else None,
        notes=payload.notes,
        admin_id=payload.admin_id,
    )


@router.delete("/suspend", status_code=status.HTTP_200_OK)
async def reinstate_delivery_person(
    delivery_person_id: str | None = Query(None, alias="deliveryPersonId"),
    admin_id: str | None = Query(None, alias="adminId"),
    db: DocumentStore = Depends(get_db),
) -> SuspensionResponse:
    return await reinstate(
        db, DELIVERY_SUSPENSION, entity_id=delivery_person_id, admin_id=admin_id
    )
