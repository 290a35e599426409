from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore, fetch_by_ids
from app.schemas.delivery_schemas import PendingDeliveryPersonSchema
from app.schemas.schemas import MessageResponse
from app.schemas.status_schema import VerificationStatus
from app.schemas.vendor_schemas import PendingMenuItemSchema, PendingVendorSchema
from app.services.mutation_service import (
    DELIVERY_VERIFICATION,
    VENDOR_VERIFICATION,
    apply_verification,
)
from app.services.projection import coalesce, flag, pick
from app.utils.logger_config import setup_logger
from app.utils.utils import to_iso_or_now

logger = setup_logger()


def _menu_item(data: dict) -> PendingMenuItemSchema:
    return PendingMenuItemSchema(
        item_id=data["id"],
        name=data.get("name") or "",
        description=data.get("description") or "",
        price=data.get("price") or 0,
        category_name=data.get("categoryName") or "Uncategorized",
        image_url=data.get("imageUrl") or "",
        is_veg=coalesce(data.get("isVeg"), True),
        is_best_seller=flag(data, "isBestSeller"),
        preparation_time=data.get("preparationTime") or 0,
        discount=data.get("discount") or 0,
        is_verified=flag(data, "isVerified"),
        verification_status=data.get("verificationStatus") or VerificationStatus.PENDING.value,
        verification_notes=data.get("verificationNotes") or "",
    )


async def get_pending_vendors(db: DocumentStore) -> list[PendingVendorSchema]:
    """Unverified vendors with their submitted menu items."""
    try:
        vendors = await db.get_documents(
            Collections.VENDORS, filters=[("isVerified", "==", False)]
        )
        menu_items = await fetch_by_ids(
            db, Collections.MENU_ITEMS, [v["id"] for v in vendors], field="vendorId"
        )
    except Exception as e:
        logger.error(f"Error fetching pending vendors: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch pending vendors",
        )

    return [
        PendingVendorSchema(
            vendor_id=data["id"],
            full_name=data.get("fullName") or "",
            shop_name=data.get("shopName") or "",
            email=data.get("email") or "",
            phone_number=data.get("phoneNumber") or "",
            address=data.get("address") or "",
            city=data.get("city") or "",
            pincode=data.get("pincode") or "",
            gst_number=data.get("gstNumber") or "",
            fssai_license=data.get("fssaiLicense") or "",
            fssai_license_url=data.get("fssaiLicenseUrl") or "",
            gst_document_url=data.get("gstDocumentUrl") or "",
            profile_image_url=data.get("profileImageUrl") or "",
            shop_image_url=pick(data.get("shopImageUrl"), data.get("profileImageUrl"), ""),
            cuisine_types=data.get("cuisineTypes") or [],
            bank_account_number=data.get("bankAccountNumber") or "",
            bank_name=data.get("bankName") or "",
            ifsc_code=data.get("ifscCode") or "",
            upi_id=data.get("upiId") or "",
            menu_items=[_menu_item(item) for item in menu_items.get(data["id"], [])],
            submitted_at=to_iso_or_now(data.get("createdAt")),
            verification_status=VerificationStatus.PENDING.value,
        )
        for data in vendors
    ]


async def verify_vendor(
    db: DocumentStore, vendor_id: str | None, action: str | None, notes: str | None
) -> MessageResponse:
    return await apply_verification(db, VENDOR_VERIFICATION, vendor_id, action, notes)


async def get_pending_delivery_persons(
    db: DocumentStore,
) -> list[PendingDeliveryPersonSchema]:
    """
    Delivery partners not yet verified.

    Documents without an ``isVerified`` field count as pending, so the whole
    collection is read and filtered here.
    """
    try:
        partners = await db.get_documents(Collections.DELIVERY_PERSONS)
    except Exception as e:
        logger.error(f"Error fetching pending delivery persons: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch pending delivery persons",
        )

    return [
        PendingDeliveryPersonSchema(
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
            submitted_at=to_iso_or_now(data.get("createdAt")),
            verification_status=VerificationStatus.PENDING.value,
            is_verified=False,
        )
        for data in partners
        if data.get("isVerified") is not True
    ]


async def verify_delivery_person(
    db: DocumentStore,
    delivery_person_id: str | None,
    action: str | None,
    notes: str | None,
) -> MessageResponse:
    return await apply_verification(
        db, DELIVERY_VERIFICATION, delivery_person_id, action, notes
    )
