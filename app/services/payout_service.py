import asyncio

from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.payout_schemas import (
    DeliveryPartnerPayoutSchema,
    DeliveryPayoutCreateSchema,
    DeliveryPayoutOverview,
    DeliveryPayoutRecord,
    DeliveryPayoutResponse,
    DeliveryPayoutSummary,
    PayoutDeliverySchema,
    PayoutResponse,
    VendorPayoutCreateSchema,
    VendorPayoutOverview,
    VendorPayoutRecord,
    VendorPayoutSchema,
    VendorPayoutSummary,
)
from app.schemas.status_schema import SettlementStatus, is_completed
from app.services.aggregation import (
    DeliveryPayout,
    VendorPayout,
    aggregate,
    by_field,
    gst_breakdown,
)
from app.services.delivery_service import compute_synced_earnings
from app.services.projection import flag, pick
from app.services.vendor_service import DEFAULT_COMMISSION_RATE
from app.utils.logger_config import setup_logger
from app.utils.utils import to_iso, utcnow

logger = setup_logger()

RECENT_PAYOUTS_LIMIT = 100
RECENT_DELIVERIES_LIMIT = 10
DEFAULT_PAYOUT_METHOD = "Bank Transfer"
PAID_STATUSES = (SettlementStatus.COMPLETED.value, SettlementStatus.PROCESSED.value)


def _paid_by(payouts: list[dict], id_field: str) -> dict[str, float]:
    """Sum of completed or processed payout amounts per payee"""
    paid: dict[str, float] = {}
    for payout in payouts:
        if payout.get("status") in PAID_STATUSES:
            payee = payout.get(id_field)
            paid[payee] = paid.get(payee, 0) + (payout.get("amount") or 0)
    return paid


def _payout_fields(data: dict) -> dict:
    return {
        "payout_id": data["id"],
        "amount": data.get("amount") or 0,
        "method": data.get("method") or DEFAULT_PAYOUT_METHOD,
        "status": data.get("status") or SettlementStatus.PENDING.value,
        "created_at": to_iso(data.get("createdAt")),
        "processed_at": to_iso(data.get("processedAt")) or None,
        "transaction_id": data.get("transactionId") or None,
        "notes": data.get("notes") or None,
    }


def _payout_document(payee: dict, amount: float, method, transaction_id, notes) -> dict:
    now = utcnow()
    return {
        **payee,
        "amount": amount,
        "method": method or DEFAULT_PAYOUT_METHOD,
        "status": SettlementStatus.COMPLETED.value,
        "transactionId": transaction_id or None,
        "notes": notes or None,
        "createdAt": now,
        "processedAt": now,
    }


# Vendor payouts


async def get_vendor_payouts(db: DocumentStore) -> VendorPayoutOverview:
    """
    Amount owed to each vendor from completed orders, less recorded payouts.

    Vendors with neither revenue nor a pending balance are left out; the
    rest are listed highest pending amount first.
    """
    try:
        vendors, orders, payouts = await asyncio.gather(
            db.get_documents(Collections.VENDORS),
            db.get_documents(Collections.ORDERS),
            db.get_documents(
                Collections.VENDOR_PAYOUTS,
                order_by="createdAt",
                descending=True,
                limit=RECENT_PAYOUTS_LIMIT,
            ),
        )
    except Exception as e:
        logger.error(f"Error fetching vendor payouts: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch vendor payouts",
        )

    totals_by_vendor = aggregate(orders, by_field("vendorId"), VendorPayout)
    paid_by_vendor = _paid_by(payouts, "vendorId")

    rows = []
    for data in vendors:
        totals = totals_by_vendor.get(data["id"])
        # Payouts only count against vendors that have completed orders
        paid = paid_by_vendor.get(data["id"], 0) if totals else 0
        totals = totals or VendorPayout()
        pending = max(0, totals.net_payable - paid)
        if totals.total_revenue <= 0 and pending <= 0:
            continue
        rows.append(
            VendorPayoutSchema(
                vendor_id=data["id"],
                shop_name=pick(data.get("shopName"), data.get("fullName"), "Unknown"),
                full_name=data.get("fullName") or "",
                shop_image_url=pick(data.get("shopImageUrl"), data.get("profileImageUrl"), ""),
                email=data.get("email") or "",
                phone_number=data.get("phoneNumber") or "",
                city=data.get("city") or "",
                is_verified=flag(data, "isVerified"),
                commission_rate=data.get("commissionRate") or DEFAULT_COMMISSION_RATE,
                bank_details=data.get("bankDetails") or None,
                upi_id=data.get("upiId") or None,
                total_revenue=totals.total_revenue,
                commission_amount=totals.commission_amount,
                gst_on_commission=totals.gst_on_commission,
                small_order_fees=totals.small_order_fees,
                delivery_fee_profit=totals.delivery_fee_profit,
                total_platform_earning=totals.total_platform_earning,
                net_payable=totals.net_payable,
                paid_amount=paid,
                pending_amount=pending,
                order_count=totals.order_count,
                last_order_date=totals.last_order_date,
            )
        )

    rows.sort(key=lambda v: v.pending_amount, reverse=True)

    return VendorPayoutOverview(
        vendors=rows,
        recent_payouts=[
            VendorPayoutRecord(
                vendor_id=p.get("vendorId") or "",
                vendor_name=p.get("vendorName") or "",
                **_payout_fields(p),
            )
            for p in payouts
        ],
        summary=VendorPayoutSummary(
            total_pending_payouts=sum(v.pending_amount for v in rows),
            total_paid_amount=sum(v.paid_amount for v in rows),
            total_commission_earned=sum(v.commission_amount for v in rows),
            total_gst_collected=sum(v.gst_on_commission for v in rows),
            total_small_order_fees=sum(v.small_order_fees for v in rows),
            total_delivery_fee_profit=sum(v.delivery_fee_profit for v in rows),
            total_platform_earning=sum(v.total_platform_earning for v in rows),
            vendors_with_pending=sum(1 for v in rows if v.pending_amount > 0),
        ),
    )


def _vendor_earnings_backfill(orders: list[dict]) -> dict:
    """Cached vendor totals rebuilt from completed orders, empty when there are none."""
    earnings = 0
    commission = 0
    order_count = 0
    for order in orders:
        if not is_completed(order):
            continue
        gst = gst_breakdown(order)
        earnings += gst.item_total
        commission += gst.total_platform_earning
        order_count += 1

    if earnings <= 0:
        return {}
    return {
        "totalEarnings": earnings,
        "totalCommission": commission,
        "totalOrders": order_count,
    }


async def record_vendor_payout(
    db: DocumentStore, payout: VendorPayoutCreateSchema
) -> PayoutResponse:
    """
    Record a completed payout and add it to the vendor's paid amount.

    A vendor with no cached earnings gets them rebuilt from its orders in the
    same update.
    """
    if not payout.vendor_id or not payout.amount or payout.amount <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vendor ID and valid amount required",
        )

    try:
        vendor = await db.get_document(Collections.VENDORS, payout.vendor_id)
        if vendor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Vendor not found",
            )

        document = _payout_document(
            {"vendorId": payout.vendor_id, "vendorName": payout.vendor_name or ""},
            payout.amount,
            payout.method,
            payout.transaction_id,
            payout.notes,
        )
        payout_id = await db.add_document(Collections.VENDOR_PAYOUTS, document)

        updates = {
            "paidAmount": (vendor.get("paidAmount") or 0) + payout.amount,
            "lastPayoutAt": document["processedAt"],
            "updatedAt": document["processedAt"],
        }
        if not (vendor.get("totalEarnings") or 0) > 0:
            orders = await db.get_documents(
                Collections.ORDERS, filters=[("vendorId", "==", payout.vendor_id)]
            )
            updates.update(_vendor_earnings_backfill(orders))

        await db.update_document(Collections.VENDORS, payout.vendor_id, updates)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing payout for vendor {payout.vendor_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process payout",
        )

    logger.info(f"Payout {payout_id} of {payout.amount} recorded for vendor {payout.vendor_id}")
    return PayoutResponse(
        message=f"Payout of ₹{payout.amount:g} processed successfully",
        payout_id=payout_id,
    )


# Delivery partner payouts


def _delivery_payouts(tasks: list[dict], orders: list[dict]) -> dict[str, DeliveryPayout]:
    """Fold delivered tasks, then completed orders no task has accounted for."""
    payouts = aggregate(tasks, by_field("deliveryPersonId"), DeliveryPayout)
    covered = set().union(*(p.order_ids for p in payouts.values()))

    for order in orders:
        partner_id = order.get("deliveryPersonId")
        if not partner_id or order["id"] in covered or not is_completed(order):
            continue
        payouts.setdefault(partner_id, DeliveryPayout()).add_order(order)
    return payouts


async def get_delivery_payouts(db: DocumentStore) -> DeliveryPayoutOverview:
    """
    Earnings owed to each delivery partner, less recorded payouts.

    Earnings are the larger of the recomputed total (plus stored incentives)
    and the cached total on the partner document. Every partner is listed,
    highest pending amount first, then by name.
    """
    try:
        partners, orders, tasks, payouts = await asyncio.gather(
            db.get_documents(Collections.DELIVERY_PERSONS),
            db.get_documents(Collections.ORDERS),
            db.get_documents(Collections.DELIVERY_TASKS),
            db.get_documents(
                Collections.DELIVERY_PAYOUTS,
                order_by="createdAt",
                descending=True,
                limit=RECENT_PAYOUTS_LIMIT,
            ),
        )
    except Exception as e:
        logger.error(f"Error fetching delivery payouts: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch delivery payouts",
        )

    earnings_by_partner = _delivery_payouts(tasks, orders)
    paid_by_partner = _paid_by(payouts, "deliveryPersonId")

    rows = []
    for data in partners:
        earnings = earnings_by_partner.get(data["id"], DeliveryPayout())
        incentives = data.get("incentives") or 0
        total_earnings = max(earnings.total_earnings + incentives, data.get("totalEarnings") or 0)
        paid = pick(paid_by_partner.get(data["id"]), data.get("paidAmount"), 0)
        cod_collected = pick(earnings.cod_collected, data.get("codCollected"), 0)
        cod_settled = pick(earnings.cod_settled, data.get("codSettled"), 0)
        rows.append(
            DeliveryPartnerPayoutSchema(
                delivery_person_id=data["id"],
                full_name=data.get("fullName") or "Unknown",
                profile_photo_url=data.get("profilePhotoUrl") or "",
                phone_number=data.get("phoneNumber") or "",
                email=data.get("email") or "",
                city=data.get("city") or "",
                is_online=flag(data, "isOnline"),
                is_verified=flag(data, "isVerified"),
                bank_details=data.get("bankDetails") or None,
                upi_id=data.get("upiId") or None,
                total_earnings=total_earnings,
                delivery_fees=max(earnings.total_earnings - earnings.tips, 0),
                tips=earnings.tips,
                incentives=incentives,
                delivery_count=max(earnings.delivery_count, data.get("totalDeliveries") or 0),
                paid_amount=paid,
                pending_amount=max(0, total_earnings - paid),
                cod_collected=cod_collected,
                cod_settled=cod_settled,
                cod_pending=max(0, cod_collected - cod_settled),
                last_delivery_date=earnings.last_delivery_date,
                recent_deliveries=[
                    PayoutDeliverySchema(
                        order_id=line.order_id,
                        distance_km=line.distance_km,
                        earnings=line.earnings,
                        tip=line.tip,
                        date=line.date,
                    )
                    for line in earnings.deliveries[:RECENT_DELIVERIES_LIMIT]
                ],
            )
        )

    rows.sort(key=lambda d: (-d.pending_amount, d.full_name))

    return DeliveryPayoutOverview(
        delivery_partners=rows,
        recent_payouts=[
            DeliveryPayoutRecord(
                delivery_person_id=p.get("deliveryPersonId") or "",
                delivery_person_name=p.get("deliveryPersonName") or "",
                **_payout_fields(p),
            )
            for p in payouts
        ],
        summary=DeliveryPayoutSummary(
            total_pending_payouts=sum(d.pending_amount for d in rows),
            total_paid_amount=sum(d.paid_amount for d in rows),
            total_earnings=sum(d.total_earnings for d in rows),
            total_tips=sum(d.tips for d in rows),
            total_delivery_fees=sum(d.delivery_fees for d in rows),
            total_deliveries=sum(d.delivery_count for d in rows),
            total_cod_collected=sum(d.cod_collected for d in rows),
            total_cod_settled=sum(d.cod_settled for d in rows),
            total_cod_pending=sum(d.cod_pending for d in rows),
            partners_with_pending=sum(1 for d in rows if d.pending_amount > 0),
            active_partners=sum(1 for d in rows if d.delivery_count > 0),
        ),
    )


async def record_delivery_payout(
    db: DocumentStore, payout: DeliveryPayoutCreateSchema
) -> DeliveryPayoutResponse:
    """
    Record a completed payout and update the partner's paid and pending amounts.

    A partner with no cached earnings gets them recomputed from delivered
    tasks (or completed orders) before the pending amount is worked out.
    """
    if not payout.delivery_person_id or not payout.amount or payout.amount <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Delivery person ID and valid amount required",
        )

    try:
        partner = await db.get_document(Collections.DELIVERY_PERSONS, payout.delivery_person_id)
        if partner is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Delivery partner not found",
            )

        document = _payout_document(
            {
                "deliveryPersonId": payout.delivery_person_id,
                "deliveryPersonName": payout.delivery_person_name or "",
            },
            payout.amount,
            payout.method,
            payout.transaction_id,
            payout.notes,
        )
        payout_id = await db.add_document(Collections.DELIVERY_PAYOUTS, document)

        new_paid = (partner.get("paidAmount") or 0) + payout.amount
        new_pending = max(0, (partner.get("totalEarnings") or 0) - new_paid)
        updates = {
            "paidAmount": new_paid,
            "lastPayoutAt": document["processedAt"],
            "updatedAt": document["processedAt"],
        }
        if not (partner.get("totalEarnings") or 0) > 0:
            earnings = await compute_synced_earnings(db, payout.delivery_person_id)
            if earnings.total_earnings > 0:
                new_pending = max(0, earnings.total_earnings - new_paid)
                updates["totalEarnings"] = earnings.total_earnings
                updates["totalDeliveries"] = earnings.deliveries
        updates["pendingPayout"] = new_pending

        await db.update_document(Collections.DELIVERY_PERSONS, payout.delivery_person_id, updates)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            f"Error processing payout for delivery partner {payout.delivery_person_id}: {str(e)}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process payout",
        )

    logger.info(
        f"Payout {payout_id} of {payout.amount} recorded for delivery partner "
        f"{payout.delivery_person_id}"
    )
    return DeliveryPayoutResponse(
        message=f"Payout of ₹{payout.amount:g} processed successfully",
        payout_id=payout_id,
        new_paid_amount=new_paid,
        new_pending_payout=new_pending,
    )
