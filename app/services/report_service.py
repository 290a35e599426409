import asyncio
from datetime import date, datetime, time, timezone

from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.report_schemas import (
    GSTEntry,
    GSTReport,
    GSTSummary,
    MonthlyGST,
    VendorGST,
)
from app.schemas.status_schema import is_completed
from app.services.aggregation import (
    COMMISSION_RATE,
    GST_ON_COMMISSION,
    GST_ON_DELIVERY,
    GST_ON_FOOD,
    gst_breakdown,
)
from app.services.projection import pick
from app.utils.logger_config import setup_logger
from app.utils.utils import iso, round_half_up, to_datetime

logger = setup_logger()

# Entries returned in the report, newest first; aggregates cover all orders
GST_ENTRIES_LIMIT = 100


def _percent(rate: float) -> float:
    return round_half_up(rate * 100, 2)


def _in_range(order_date: datetime, start_date: date | None, end_date: date | None) -> bool:
    if start_date and order_date < datetime.combine(start_date, time.min, tzinfo=timezone.utc):
        return False
    if end_date and order_date > datetime.combine(end_date, time.max, tzinfo=timezone.utc):
        return False
    return True


async def get_gst_report(
    db: DocumentStore,
    start_date: date | None = None,
    end_date: date | None = None,
    vendor_id: str | None = None,
) -> GSTReport:
    """
    GST and platform commission for completed orders.

    Args:
        db: Document store
        start_date: First day included (UTC), inclusive
        end_date: Last day included (UTC), inclusive
        vendor_id: Restrict the report to one vendor

    Returns:
        GSTReport with the newest entries, monthly and per-vendor totals
        (highest GST first) and an overall summary
    """
    try:
        vendors, orders = await asyncio.gather(
            db.get_documents(Collections.VENDORS),
            db.get_documents(Collections.ORDERS),
        )
    except Exception as e:
        logger.error(f"Error fetching GST report data: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch GST report",
        )

    vendor_names = {
        v["id"]: pick(v.get("shopName"), v.get("fullName"), "Unknown") for v in vendors
    }

    entries: list[tuple[datetime, GSTEntry]] = []
    monthly: dict[str, MonthlyGST] = {}
    by_vendor: dict[str, VendorGST] = {}

    for order in orders:
        if not is_completed(order):
            continue
        order_date = to_datetime(order.get("deliveredAt") or order.get("createdAt"))
        if order_date is None or not _in_range(order_date, start_date, end_date):
            continue
        if vendor_id and order.get("vendorId") != vendor_id:
            continue

        order_vendor_id = order.get("vendorId") or ""
        vendor_name = vendor_names.get(order_vendor_id) or order.get("vendorName") or "Unknown"
        gst = gst_breakdown(order)

        entries.append(
            (
                order_date,
                GSTEntry(
                    order_id=order["id"],
                    vendor_id=order_vendor_id,
                    vendor_name=vendor_name,
                    order_date=iso(order_date),
                    item_total=gst.item_total,
                    discount=gst.discount,
                    item_total_after_discount=gst.item_total_after_discount,
                    delivery_fee=gst.delivery_fee,
                    commission=gst.commission,
                    gst_on_commission=gst.gst_on_commission,
                    gst_on_food=gst.gst_on_food,
                    gst_on_delivery=gst.gst_on_delivery,
                    total_gst=gst.total_gst,
                    total_platform_earning=gst.total_platform_earning,
                    payment_mode=order.get("paymentMode") or "Unknown",
                ),
            )
        )

        utc_date = order_date.astimezone(timezone.utc)
        month_key = utc_date.strftime("%Y-%m")
        month = monthly.setdefault(
            month_key, MonthlyGST(month=utc_date.strftime("%B %Y"), month_key=month_key)
        )
        month.orders_count += 1
        month.total_item_sales += gst.item_total_after_discount
        month.total_delivery_fees += gst.delivery_fee
        month.total_commission += gst.commission
        month.total_gst_on_commission += gst.gst_on_commission
        month.total_gst_on_food += gst.gst_on_food
        month.total_gst_on_delivery += gst.gst_on_delivery
        month.total_gst += gst.total_gst
        month.total_platform_earning += gst.total_platform_earning

        vendor = by_vendor.setdefault(
            order_vendor_id, VendorGST(vendor_id=order_vendor_id, vendor_name=vendor_name)
        )
        vendor.orders_count += 1
        vendor.total_item_sales += gst.item_total_after_discount
        vendor.total_delivery_fees += gst.delivery_fee
        vendor.total_commission += gst.commission
        vendor.total_gst += gst.total_gst
        vendor.total_platform_earning += gst.total_platform_earning

    entries.sort(key=lambda item: item[0], reverse=True)
    all_entries = [entry for _, entry in entries]

    summary = GSTSummary(
        total_orders=len(all_entries),
        total_item_sales=sum(e.item_total_after_discount for e in all_entries),
        total_delivery_fees=sum(e.delivery_fee for e in all_entries),
        total_commission=sum(e.commission for e in all_entries),
        total_gst_on_commission=sum(e.gst_on_commission for e in all_entries),
        total_gst_on_food=sum(e.gst_on_food for e in all_entries),
        total_gst_on_delivery=sum(e.gst_on_delivery for e in all_entries),
        total_gst_collected=sum(e.total_gst for e in all_entries),
        total_platform_earning=sum(e.total_platform_earning for e in all_entries),
        commission_rate=_percent(COMMISSION_RATE),
        gst_on_commission_rate=_percent(GST_ON_COMMISSION),
        gst_on_food_rate=_percent(GST_ON_FOOD),
        gst_on_delivery_rate=_percent(GST_ON_DELIVERY),
        # Older dashboards read the commission GST rate from here
        gst_rate=_percent(GST_ON_COMMISSION),
    )

    return GSTReport(
        entries=all_entries[:GST_ENTRIES_LIMIT],
        monthly_data=sorted(monthly.values(), key=lambda m: m.month_key, reverse=True),
        vendor_data=sorted(by_vendor.values(), key=lambda v: v.total_gst, reverse=True),
        summary=summary,
    )
