from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.schemas import MessageResponse
from app.schemas.settings_schema import (
    CommissionOverview,
    CommissionUpdateSchema,
    CommissionVendorSchema,
    PlatformCommissionSchema,
)
from app.services.projection import coalesce, flag, pick
from app.utils.logger_config import setup_logger
from app.utils.utils import utcnow

logger = setup_logger()

DEFAULT_COMMISSION_RATE = 15
COMMISSION_HISTORY_LIMIT = 10
COMMISSION_SETTINGS_DOC = "commission"


def _valid_rate(rate: float | None) -> bool:
    return rate is not None and 0 <= rate <= 100


async def get_commission_settings(db: DocumentStore) -> CommissionOverview:
    """
    Retrieve per-vendor commission rates and the platform default.

    Args:
        db: Document store

    Returns:
        CommissionOverview with every vendor's rate and history
    """
    try:
        vendors = await db.get_documents(Collections.VENDORS)
        platform = await db.get_document(
            Collections.PLATFORM_SETTINGS, COMMISSION_SETTINGS_DOC
        )
    except Exception as e:
        logger.error(f"Error retrieving commission settings: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch commission settings",
        )

    return CommissionOverview(
        vendors=[
            CommissionVendorSchema(
                vendor_id=data["id"],
                shop_name=pick(data.get("shopName"), data.get("fullName"), "Unknown"),
                full_name=data.get("fullName") or "",
                shop_image_url=pick(data.get("shopImageUrl"), data.get("profileImageUrl"), ""),
                city=data.get("city") or "",
                is_verified=flag(data, "isVerified"),
                is_online=flag(data, "isOnline"),
                # An explicit 0% rate is kept
                commission_rate=coalesce(data.get("commissionRate"), DEFAULT_COMMISSION_RATE),
                custom_commission=flag(data, "customCommission"),
                commission_history=data.get("commissionHistory") or [],
            )
            for data in vendors
        ],
        platform_default_rate=(platform or {}).get("defaultRate") or DEFAULT_COMMISSION_RATE,
    )


async def update_vendor_commission(
    db: DocumentStore, update_data: CommissionUpdateSchema
) -> MessageResponse:
    """
    Set a custom commission rate for one vendor.

    The previous rate is appended to the vendor's commission history, which
    keeps the last COMMISSION_HISTORY_LIMIT changes.
    """
    if not update_data.vendor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Vendor ID required"
        )
    if not _valid_rate(update_data.commission_rate):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Valid commission rate (0-100) required",
        )

    try:
        vendor = await db.get_document(Collections.VENDORS, update_data.vendor_id)
        if vendor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found"
            )

        now = utcnow()
        previous_rate = coalesce(vendor.get("commissionRate"), DEFAULT_COMMISSION_RATE)
        history = [
            *(vendor.get("commissionHistory") or []),
            {
                "previousRate": previous_rate,
                "newRate": update_data.commission_rate,
                "reason": update_data.reason or "Admin update",
                "changedAt": now,
            },
        ][-COMMISSION_HISTORY_LIMIT:]

        await db.update_document(
            Collections.VENDORS,
            update_data.vendor_id,
            {
                "commissionRate": update_data.commission_rate,
                "customCommission": True,
                "commissionHistory": history,
                "updatedAt": now,
            },
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating commission for {update_data.vendor_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update commission",
        )

    logger.info(
        f"Commission for vendor {update_data.vendor_id} changed "
        f"{previous_rate}% -> {update_data.commission_rate}%"
    )
    return MessageResponse(
        message=f"Commission rate updated to {update_data.commission_rate:g}%"
    )


async def update_platform_commission(
    db: DocumentStore, update_data: PlatformCommissionSchema
) -> MessageResponse:
    if not _valid_rate(update_data.default_rate):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Valid default rate (0-100) required",
        )

    try:
        await db.set_document(
            Collections.PLATFORM_SETTINGS,
            COMMISSION_SETTINGS_DOC,
            {"defaultRate": update_data.default_rate, "updatedAt": utcnow()},
            merge=True,
        )
    except Exception as e:
        logger.error(f"Error updating platform commission: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update platform commission",
        )

    logger.info(f"Platform default commission set to {update_data.default_rate}%")
    return MessageResponse(
        message=f"Platform default commission updated to {update_data.default_rate:g}%"
    )
