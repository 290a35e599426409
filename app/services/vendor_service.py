import asyncio

from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.schemas import MessageResponse
from app.schemas.status_schema import VENDOR_SUSPENSION_LABELS
from app.schemas.vendor_schemas import (
    MenuItemPreview,
    SpecialOfferSchema,
    SuspendedVendorSchema,
    SuspendedVendorsResponse,
    VendorPerformanceResponse,
    VendorPerformanceSchema,
    VendorPerformanceSummary,
    VendorResponse,
)
from app.services.aggregation import (
    VendorEarnings,
    VendorPerformance,
    aggregate,
    average,
    by_field,
)
from app.services.mutation_service import (
    VENDOR_SUSPENSION,
    list_suspended,
    update_entity,
)
from app.services.projection import flag, pick, status_label
from app.utils.logger_config import setup_logger
from app.utils.utils import round_half_up, to_iso, to_iso_or_now

logger = setup_logger()

MENU_PREVIEW_SIZE = 10
DEFAULT_COMMISSION_RATE = 15
DEFAULT_PREPARATION_TIME = 30


def _menu_data(menu_items: list[dict]) -> dict[str, dict]:
    """Group menu items per vendor into previews and discounted offers."""
    menu: dict[str, dict] = {}
    for item in menu_items:
        vendor_id = item.get("vendorId")
        if not vendor_id:
            continue
        entry = menu.setdefault(vendor_id, {"items": [], "offers": []})
        entry["items"].append(
            MenuItemPreview(
                item_id=item["id"],
                name=item.get("name") or "",
                price=item.get("price") or 0,
                image_url=item.get("imageUrl") or "",
                discount=item.get("discount") or 0,
                is_available=item.get("isAvailable") is not False,
                is_best_seller=flag(item, "isBestSeller"),
                is_veg=flag(item, "isVeg"),
                category_name=item.get("categoryName") or "",
            )
        )
        if (item.get("discount") or 0) > 0:
            entry["offers"].append(
                SpecialOfferSchema(
                    item_id=item["id"],
                    name=item.get("name") or "",
                    price=item.get("price") or 0,
                    discount=item["discount"],
                    image_url=item.get("imageUrl") or "",
                )
            )
    return menu


async def get_vendors(db: DocumentStore) -> list[VendorResponse]:
    """
    List every vendor with earnings computed from orders and a menu preview.

    Vendors with no orders still appear with zero totals (or their stored
    totals, which take precedence over a computed zero).
    """
    try:
        vendors, menu_items, orders = await asyncio.gather(
            db.get_documents(Collections.VENDORS),
            db.get_documents(Collections.MENU_ITEMS),
            db.get_documents(Collections.ORDERS),
        )
    except Exception as e:
        logger.error(f"Error fetching vendors: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch vendors",
        )

    menu = _menu_data(menu_items)
    earnings = aggregate(orders, by_field("vendorId"), VendorEarnings)

    result = []
    for data in vendors:
        vendor_menu = menu.get(data["id"], {"items": [], "offers": []})
        totals = earnings.get(data["id"], VendorEarnings())
        created_at = to_iso_or_now(data.get("createdAt"))
        result.append(
            VendorResponse(
                vendor_id=data["id"],
                full_name=data.get("fullName") or "",
                shop_name=data.get("shopName") or "",
                email=data.get("email") or "",
                phone_number=data.get("phoneNumber") or "",
                profile_image_url=data.get("profileImageUrl") or "",
                shop_image_url=pick(data.get("shopImageUrl"), data.get("profileImageUrl"), ""),
                address=data.get("address") or "",
                city=data.get("city") or "",
                pincode=data.get("pincode") or "",
                gst_number=data.get("gstNumber") or "",
                fssai_license=data.get("fssaiLicense") or "",
                rating=data.get("rating") or 0,
                total_orders=pick(totals.total_orders, data.get("totalOrders"), 0),
                total_earnings=pick(totals.total_earnings, data.get("totalEarnings"), 0),
                menu_items_count=len(vendor_menu["items"]),
                menu_items=vendor_menu["items"][:MENU_PREVIEW_SIZE],
                special_offers=vendor_menu["offers"],
                is_online=flag(data, "isOnline"),
                is_verified=flag(data, "isVerified"),
                is_suspended=flag(data, "isSuspended"),
                cuisine_types=data.get("cuisineTypes") or [],
                minimum_order_amount=data.get("minimumOrderAmount") or 0,
                average_delivery_time=data.get("averageDeliveryTime") or DEFAULT_PREPARATION_TIME,
                registered_at=created_at,
                created_at=created_at,
                status=status_label(data),
            )
        )
    return result


async def update_vendor(
    db: DocumentStore, vendor_id: str | None, updates: dict | None
) -> MessageResponse:
    return await update_entity(db, Collections.VENDORS, vendor_id, updates, "Vendor")


async def get_vendor_performance(db: DocumentStore) -> VendorPerformanceResponse:
    """
    Per-vendor order buckets, rates and averages, sorted by revenue.

    Average rating falls back to the stored rating and average preparation
    time to the stored delivery time when no orders carry those figures.
    """
    try:
        vendors, orders = await asyncio.gather(
            db.get_documents(Collections.VENDORS),
            db.get_documents(Collections.ORDERS),
        )
    except Exception as e:
        logger.error(f"Error fetching vendor performance: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch vendor performance",
        )

    performance = aggregate(orders, by_field("vendorId"), VendorPerformance)

    rows = []
    for data in vendors:
        perf = performance.get(data["id"], VendorPerformance())
        avg_rating = average(perf.rating_sum, perf.total_ratings)
        avg_prep_time = average(perf.preparation_time_sum, perf.prep_time_count, digits=0)
        rows.append(
            VendorPerformanceSchema(
                vendor_id=data["id"],
                shop_name=pick(data.get("shopName"), data.get("fullName"), "Unknown"),
                full_name=data.get("fullName") or "",
                shop_image_url=pick(data.get("shopImageUrl"), data.get("profileImageUrl"), ""),
                city=data.get("city") or "",
                pincode=data.get("pincode") or "",
                is_online=flag(data, "isOnline"),
                is_verified=flag(data, "isVerified"),
                cuisine_types=data.get("cuisineTypes") or [],
                total_orders=perf.total_orders,
                completed_orders=perf.completed_orders,
                cancelled_orders=perf.cancelled_orders,
                pending_orders=perf.pending_orders,
                preparing_orders=perf.preparing_orders,
                total_revenue=perf.total_revenue,
                avg_rating=avg_rating if avg_rating is not None else (data.get("rating") or 0),
                total_ratings=perf.total_ratings,
                cancellation_rate=perf.cancellation_rate,
                completion_rate=perf.completion_rate,
                avg_preparation_time=(
                    avg_prep_time
                    if avg_prep_time is not None
                    else (data.get("averageDeliveryTime") or DEFAULT_PREPARATION_TIME)
                ),
                # A stored rate of 0 shows the default here, unlike the commission page
                commission_rate=data.get("commissionRate") or DEFAULT_COMMISSION_RATE,
                custom_commission=flag(data, "customCommission"),
            )
        )

    rows.sort(key=lambda v: v.total_revenue, reverse=True)

    count = len(rows)
    summary = VendorPerformanceSummary(
        total_vendors=count,
        active_vendors=sum(1 for v in rows if v.is_online),
        total_revenue=sum(v.total_revenue for v in rows),
        total_orders=sum(v.total_orders for v in rows),
        avg_cancellation_rate=(
            round_half_up(sum(v.cancellation_rate for v in rows) / count, 1) if count else 0
        ),
        avg_rating=round_half_up(sum(v.avg_rating for v in rows) / count, 1) if count else 0,
    )
    return VendorPerformanceResponse(vendors=rows, summary=summary)


async def get_suspended_vendors(db: DocumentStore) -> SuspendedVendorsResponse:
    documents = await list_suspended(db, VENDOR_SUSPENSION)
    return SuspendedVendorsResponse(
        data=[
            SuspendedVendorSchema(
                vendor_id=data["id"],
                shop_name=data.get("shopName") or "",
                full_name=data.get("fullName") or "",
                email=data.get("email") or "",
                phone_number=data.get("phoneNumber") or "",
                suspension_reason=data.get("suspensionReason") or "",
                suspension_notes=data.get("suspensionNotes") or "",
                suspended_at=to_iso(data.get("suspendedAt")),
                suspended_by=data.get("suspendedBy") or "",
                total_orders=data.get("totalOrders") or 0,
                rating=data.get("rating") or 0,
            )
            for data in documents
        ],
        suspension_reasons={
            reason.value: label for reason, label in VENDOR_SUSPENSION_LABELS.items()
        },
    )
