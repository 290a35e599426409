import asyncio

from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.delivery_schemas import (
    CodOverview,
    CodPartnerSchema,
    CodSettlementCreateSchema,
    CodSettlementResponse,
    CodSettlementSchema,
    CodSummary,
    DeliveryPerformanceResponse,
    DeliveryPerformanceSchema,
    DeliveryPerformanceSummary,
    DeliveryPersonResponse,
    SuspendedDeliveryPersonSchema,
    SuspendedDeliveryPersonsResponse,
    SyncResponse,
    SyncResult,
)
from app.schemas.schemas import MessageResponse
from app.schemas.status_schema import (
    DELIVERY_SUSPENSION_LABELS,
    DeliveryTaskStatus,
    SettlementStatus,
)
from app.services.aggregation import (
    CodLedger,
    DeliveryEarnings,
    DeliveryPerformance,
    SyncedEarnings,
    aggregate,
    average,
    by_field,
)
from app.services.mutation_service import (
    DELIVERY_SUSPENSION,
    list_suspended,
    update_entity,
)
from app.services.projection import coalesce, flag, pick, status_label
from app.utils.logger_config import setup_logger
from app.utils.utils import generate_receipt_id, round_half_up, to_iso, to_iso_or_now, utcnow

logger = setup_logger()
sync_logger = setup_logger("delito.sync", log_file="sync.log")

COD_PAYMENT_MODES = ["COD", "cod", "Cash", "cash"]
RECENT_SETTLEMENTS_LIMIT = 100


async def get_delivery_persons(db: DocumentStore) -> list[DeliveryPersonResponse]:
    """
    List every delivery partner with earnings and COD computed from orders.

    Computed totals win when non-zero, otherwise the cached totals stored on
    the partner document are shown.
    """
    try:
        partners, orders = await asyncio.gather(
            db.get_documents(Collections.DELIVERY_PERSONS),
            db.get_documents(Collections.ORDERS),
        )
    except Exception as e:
        logger.error(f"Error fetching delivery persons: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch delivery persons",
        )

    earnings = aggregate(orders, by_field("deliveryPersonId"), DeliveryEarnings)

    result = []
    for data in partners:
        totals = earnings.get(data["id"], DeliveryEarnings())
        created_at = to_iso_or_now(data.get("createdAt"))
        result.append(
            DeliveryPersonResponse(
                delivery_person_id=data["id"],
                full_name=data.get("fullName") or "",
                email=data.get("email") or "",
                phone_number=data.get("phoneNumber") or "",
                address=data.get("address") or "",
                city=data.get("city") or "",
                pincode=data.get("pincode") or "",
                vehicle_type=data.get("vehicleType") or "Bike",
                vehicle_number=data.get("vehicleNumber") or "",
                driver_license_number=data.get("driverLicenseNumber") or "",
                driver_license_url=data.get("driverLicenseUrl") or "",
                vehicle_document_url=data.get("vehicleDocumentUrl") or "",
                profile_photo_url=data.get("profilePhotoUrl") or "",
                bank_name=data.get("bankName") or "",
                bank_account_number=data.get("bankAccountNumber") or "",
                ifsc_code=data.get("ifscCode") or "",
                upi_id=data.get("upiId") or "",
                rating=data.get("rating") or 0,
                total_deliveries=pick(totals.total_deliveries, data.get("totalDeliveries"), 0),
                total_earnings=pick(totals.total_earnings, data.get("totalEarnings"), 0),
                incentives=pick(totals.incentives, data.get("incentives"), 0),
                cod_collected=pick(totals.cod_collected, data.get("codCollected"), 0),
                cod_settled=pick(totals.cod_settled, data.get("codSettled"), 0),
                cod_pending=pick(totals.cod_pending, data.get("codPending"), 0),
                is_online=flag(data, "isOnline"),
                is_on_delivery=flag(data, "isOnDelivery"),
                is_verified=flag(data, "isVerified"),
                is_suspended=flag(data, "isSuspended"),
                current_location=data.get("currentLocation") or "Offline",
                registered_at=created_at,
                created_at=created_at,
                status=status_label(data),
            )
        )
    return result


async def update_delivery_person(
    db: DocumentStore, delivery_person_id: str | None, updates: dict | None
) -> MessageResponse:
    return await update_entity(
        db, Collections.DELIVERY_PERSONS, delivery_person_id, updates, "Delivery person"
    )


async def get_suspended_delivery_persons(
    db: DocumentStore,
) -> SuspendedDeliveryPersonsResponse:
    documents = await list_suspended(db, DELIVERY_SUSPENSION)
    return SuspendedDeliveryPersonsResponse(
        data=[
            SuspendedDeliveryPersonSchema(
                delivery_person_id=data["id"],
                full_name=data.get("fullName") or "",
                email=data.get("email") or "",
                phone_number=data.get("phoneNumber") or "",
                vehicle_type=data.get("vehicleType") or "",
                vehicle_number=data.get("vehicleNumber") or "",
                suspension_reason=data.get("suspensionReason") or "",
                suspension_notes=data.get("suspensionNotes") or "",
                suspended_at=to_iso(data.get("suspendedAt")),
                suspended_by=data.get("suspendedBy") or "",
                total_deliveries=data.get("totalDeliveries") or 0,
                rating=data.get("rating") or 0,
                cod_collected=data.get("codCollected") or 0,
            )
            for data in documents
        ],
        suspension_reasons={
            reason.value: label for reason, label in DELIVERY_SUSPENSION_LABELS.items()
        },
    )


# Earnings sync


async def compute_synced_earnings(db: DocumentStore, delivery_person_id: str) -> SyncedEarnings:
    """
    Recompute a partner's earnings from delivered tasks.

    Falls back to the partner's completed orders when no delivered task
    exists.
    """
    earnings = SyncedEarnings()
    tasks = await db.get_documents(
        Collections.DELIVERY_TASKS,
        filters=[
            ("deliveryPersonId", "==", delivery_person_id),
            ("status", "==", DeliveryTaskStatus.DELIVERED.value),
        ],
    )
    for task in tasks:
        earnings.add_task(task)

    if earnings.deliveries == 0:
        orders = await db.get_documents(
            Collections.ORDERS,
            filters=[("deliveryPersonId", "==", delivery_person_id)],
        )
        for order in orders:
            earnings.add_order(order)
    return earnings


async def _sync_one(db: DocumentStore, delivery_person_id: str) -> SyncResult:
    earnings = await compute_synced_earnings(db, delivery_person_id)
    if earnings.deliveries == 0:
        return SyncResult(id=delivery_person_id, success=True, earnings=0, deliveries=0)

    current = await db.get_document(Collections.DELIVERY_PERSONS, delivery_person_id) or {}
    await db.update_document(
        Collections.DELIVERY_PERSONS,
        delivery_person_id,
        {
            "totalEarnings": earnings.total_earnings,
            "totalDeliveries": earnings.deliveries,
            # COD may also be recorded by the delivery app, keep the larger figure
            "codCollected": max(earnings.cod_collected, current.get("codCollected") or 0),
            "updatedAt": utcnow(),
        },
    )
    return SyncResult(
        id=delivery_person_id,
        success=True,
        earnings=earnings.total_earnings,
        deliveries=earnings.deliveries,
    )


async def sync_delivery_earnings(
    db: DocumentStore, delivery_person_id: str | None = None
) -> SyncResponse:
    """
    Overwrite cached earnings on partner documents with recomputed totals.

    Each partner is synced independently; a failure is reported in that
    partner's result and does not stop the others.
    """
    try:
        if delivery_person_id:
            partner_ids = [delivery_person_id]
        else:
            partners = await db.get_documents(Collections.DELIVERY_PERSONS)
            partner_ids = [partner["id"] for partner in partners]
    except Exception as e:
        sync_logger.error(f"Error listing delivery partners for sync: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sync delivery earnings",
        )

    results = []
    for partner_id in partner_ids:
        try:
            results.append(await _sync_one(db, partner_id))
        except Exception as e:
            sync_logger.error(f"Error syncing earnings for {partner_id}: {str(e)}")
            results.append(SyncResult(id=partner_id, success=False, earnings=0, deliveries=0))

    synced = sum(1 for r in results if r.success)
    sync_logger.info(f"Synced {synced}/{len(results)} delivery partners")
    return SyncResponse(
        message=f"Synced {synced}/{len(results)} delivery partners", results=results
    )


# Performance


async def get_delivery_performance(db: DocumentStore) -> DeliveryPerformanceResponse:
    try:
        partners, orders = await asyncio.gather(
            db.get_documents(Collections.DELIVERY_PERSONS),
            db.get_documents(Collections.ORDERS),
        )
    except Exception as e:
        logger.error(f"Error fetching delivery performance: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch delivery performance",
        )

    performance = aggregate(orders, by_field("deliveryPersonId"), DeliveryPerformance)

    rows = []
    for data in partners:
        perf = performance.get(data["id"], DeliveryPerformance())
        avg_rating = average(perf.rating_sum, perf.rating_count)
        # Stored COD figures come first here; the sync keeps them current
        cod_collected = pick(data.get("codCollected"), perf.cod_collected, 0)
        cod_settled = pick(data.get("codSettled"), perf.cod_settled, 0)
        rows.append(
            DeliveryPerformanceSchema(
                delivery_person_id=data["id"],
                full_name=data.get("fullName") or "Unknown",
                profile_photo_url=data.get("profilePhotoUrl") or "",
                phone_number=data.get("phoneNumber") or "",
                email=data.get("email") or "",
                city=data.get("city") or "",
                vehicle_type=data.get("vehicleType") or "",
                vehicle_number=data.get("vehicleNumber") or "",
                is_online=flag(data, "isOnline"),
                is_on_delivery=flag(data, "isOnDelivery"),
                is_verified=flag(data, "isVerified"),
                total_deliveries=pick(perf.total_deliveries, data.get("totalDeliveries"), 0),
                completed_deliveries=perf.completed_deliveries,
                cancelled_deliveries=perf.cancelled_deliveries,
                pending_deliveries=perf.pending_deliveries,
                success_rate=perf.success_rate,
                avg_delivery_time=average(
                    perf.delivery_time_sum, perf.delivery_time_count, digits=0
                )
                or 0,
                avg_rating=avg_rating if avg_rating is not None else (data.get("rating") or 0),
                total_ratings=perf.rating_count,
                total_earnings=pick(perf.total_earnings, data.get("totalEarnings"), 0),
                cod_collected=cod_collected,
                cod_settled=cod_settled,
                cod_pending=cod_collected - cod_settled,
                last_delivery_date=perf.last_delivery_date,
            )
        )

    rows.sort(key=lambda d: d.total_deliveries, reverse=True)

    count = len(rows)
    summary = DeliveryPerformanceSummary(
        total_partners=count,
        active_partners=sum(1 for d in rows if d.is_online),
        on_delivery=sum(1 for d in rows if d.is_on_delivery),
        total_deliveries=sum(d.total_deliveries for d in rows),
        avg_success_rate=(
            round_half_up(sum(d.success_rate for d in rows) / count, 1) if count else 0
        ),
        avg_rating=round_half_up(sum(d.avg_rating for d in rows) / count, 1) if count else 0,
        total_cod_pending=sum(d.cod_pending for d in rows),
    )
    return DeliveryPerformanceResponse(delivery_partners=rows, summary=summary)


# Cash on delivery


def _settlement(data: dict) -> CodSettlementSchema:
    return CodSettlementSchema(
        settlement_id=data["id"],
        delivery_person_id=data.get("deliveryPersonId") or "",
        delivery_person_name=data.get("deliveryPersonName") or "",
        amount=data.get("amount") or 0,
        orders_count=data.get("ordersCount") or 0,
        method=data.get("method") or "Cash",
        status=data.get("status") or SettlementStatus.PENDING.value,
        created_at=to_iso(data.get("createdAt")),
        processed_at=to_iso(data.get("processedAt")) or None,
        notes=data.get("notes") or None,
        receipt_id=data.get("receiptId") or None,
    )


async def get_cod_overview(db: DocumentStore) -> CodOverview:
    """
    COD collected, settled and pending per delivery partner.

    Only partners holding COD appear, highest pending amount first.
    """
    try:
        partners, cod_orders, settlements = await asyncio.gather(
            db.get_documents(Collections.DELIVERY_PERSONS),
            db.get_documents(
                Collections.ORDERS, filters=[("paymentMode", "in", COD_PAYMENT_MODES)]
            ),
            db.get_documents(
                Collections.COD_SETTLEMENTS,
                order_by="createdAt",
                descending=True,
                limit=RECENT_SETTLEMENTS_LIMIT,
            ),
        )
    except Exception as e:
        logger.error(f"Error fetching COD data: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch COD data",
        )

    ledgers = aggregate(cod_orders, by_field("deliveryPersonId"), CodLedger)

    settled_by_partner: dict[str, float] = {}
    for settlement in settlements:
        if settlement.get("status") == SettlementStatus.COMPLETED.value:
            partner_id = settlement.get("deliveryPersonId")
            settled_by_partner[partner_id] = (
                settled_by_partner.get(partner_id, 0) + (settlement.get("amount") or 0)
            )

    rows = []
    for data in partners:
        ledger = ledgers.get(data["id"], CodLedger())
        settled = pick(settled_by_partner.get(data["id"]), data.get("codSettled"), 0)
        cod_collected = coalesce(data.get("codCollected"), ledger.collected)
        cod_settled = coalesce(data.get("codSettled"), settled)
        cod_pending = cod_collected - cod_settled
        if cod_collected <= 0 and cod_pending <= 0:
            continue
        rows.append(
            CodPartnerSchema(
                delivery_person_id=data["id"],
                full_name=data.get("fullName") or "Unknown",
                profile_photo_url=data.get("profilePhotoUrl") or "",
                phone_number=data.get("phoneNumber") or "",
                city=data.get("city") or "",
                is_online=flag(data, "isOnline"),
                is_verified=flag(data, "isVerified"),
                cod_collected=cod_collected,
                cod_settled=cod_settled,
                cod_pending=cod_pending,
                pending_orders=len(ledger.pending_order_ids),
                pending_order_ids=ledger.pending_order_ids,
                total_cod_orders=ledger.orders,
            )
        )

    rows.sort(key=lambda d: d.cod_pending, reverse=True)

    return CodOverview(
        delivery_partners=rows,
        recent_settlements=[_settlement(s) for s in settlements],
        summary=CodSummary(
            total_cod_collected=sum(d.cod_collected for d in rows),
            total_cod_settled=sum(d.cod_settled for d in rows),
            total_cod_pending=sum(d.cod_pending for d in rows),
            partners_with_pending=sum(1 for d in rows if d.cod_pending > 0),
        ),
    )


async def record_cod_settlement(
    db: DocumentStore, settlement: CodSettlementCreateSchema
) -> CodSettlementResponse:
    """
    Record cash handed over by a delivery partner.

    Moves the amount from the partner's collected to settled COD and marks
    the listed orders as settled in one batch.
    """
    if not settlement.delivery_person_id or not settlement.amount or settlement.amount <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Delivery person ID and valid amount required",
        )

    order_ids = settlement.order_ids or []
    receipt_id = generate_receipt_id()
    try:
        partner = await db.get_document(
            Collections.DELIVERY_PERSONS, settlement.delivery_person_id
        )
        if partner is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Delivery partner not found",
            )

        now = utcnow()
        settlement_id = await db.add_document(
            Collections.COD_SETTLEMENTS,
            {
                "deliveryPersonId": settlement.delivery_person_id,
                "deliveryPersonName": settlement.delivery_person_name or "",
                "amount": settlement.amount,
                "method": settlement.method or "Cash",
                "status": SettlementStatus.COMPLETED.value,
                "notes": settlement.notes or None,
                "orderIds": order_ids,
                "ordersCount": len(order_ids),
                "receiptId": receipt_id,
                "createdAt": now,
                "processedAt": now,
                "processedBy": "admin",
            },
        )

        await db.update_document(
            Collections.DELIVERY_PERSONS,
            settlement.delivery_person_id,
            {
                "codCollected": max(0, (partner.get("codCollected") or 0) - settlement.amount),
                "codSettled": (partner.get("codSettled") or 0) + settlement.amount,
                "lastCodSettlementAt": now,
                "lastCodSettlementId": settlement_id,
                "updatedAt": now,
            },
        )

        if order_ids:
            await db.batch_update(
                Collections.ORDERS,
                {
                    order_id: {
                        "codSettled": True,
                        "codSettledAt": now,
                        "codSettlementId": settlement_id,
                        "codReceiptId": receipt_id,
                    }
                    for order_id in order_ids
                },
            )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            f"Error recording COD settlement for {settlement.delivery_person_id}: {str(e)}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record settlement",
        )

    logger.info(
        f"COD settlement {receipt_id} of {settlement.amount} recorded for "
        f"{settlement.delivery_person_id} ({len(order_ids)} orders)"
    )
    return CodSettlementResponse(
        message=f"COD settlement of ₹{settlement.amount:g} recorded successfully",
        settlement_id=settlement_id,
        receipt_id=receipt_id,
        orders_settled=len(order_ids),
    )
