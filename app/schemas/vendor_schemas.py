from pydantic import Field

from app.schemas.schemas import CamelModel, EntityUpdateSchema
from app.schemas.status_schema import VendorSuspensionReason


class VendorUpdateSchema(EntityUpdateSchema):
    vendor_id: str | None = None


class MenuItemPreview(CamelModel):
    item_id: str
    name: str
    price: float
    image_url: str
    discount: float
    is_available: bool
    is_best_seller: bool
    is_veg: bool
    category_name: str


class SpecialOfferSchema(CamelModel):
    item_id: str
    name: str
    price: float
    discount: float
    image_url: str


class VendorResponse(CamelModel):
    vendor_id: str
    full_name: str
    shop_name: str
    email: str
    phone_number: str
    profile_image_url: str
    shop_image_url: str
    address: str
    city: str
    pincode: str
    gst_number: str
    fssai_license: str
    rating: float
    total_orders: int
    total_earnings: float
    menu_items_count: int
    menu_items: list[MenuItemPreview]
    special_offers: list[SpecialOfferSchema]
    is_online: bool
    is_verified: bool
    is_suspended: bool
    cuisine_types: list[str]
    minimum_order_amount: float
    average_delivery_time: float
    registered_at: str
    created_at: str
    status: str


# Performance


class VendorPerformanceSchema(CamelModel):
    vendor_id: str
    shop_name: str
    full_name: str
    shop_image_url: str
    city: str
    pincode: str
    is_online: bool
    is_verified: bool
    cuisine_types: list[str]
    total_orders: int
    completed_orders: int
    cancelled_orders: int
    pending_orders: int
    preparing_orders: int
    total_revenue: float
    avg_rating: float
    total_ratings: int
    cancellation_rate: float
    completion_rate: float
    avg_preparation_time: float
    commission_rate: float
    custom_commission: bool


class VendorPerformanceSummary(CamelModel):
    total_vendors: int
    active_vendors: int
    total_revenue: float
    total_orders: int
    avg_cancellation_rate: float
    avg_rating: float


class VendorPerformanceResponse(CamelModel):
    vendors: list[VendorPerformanceSchema]
    summary: VendorPerformanceSummary


# Suspension


class SuspendVendorSchema(CamelModel):
    vendor_id: str | None = None
    reason: VendorSuspensionReason | None = None
    notes: str | None = None
    admin_id: str | None = None


class SuspendedVendorSchema(CamelModel):
    vendor_id: str
    shop_name: str
    full_name: str
    email: str
    phone_number: str
    suspension_reason: str
    suspension_notes: str
    suspended_at: str
    suspended_by: str
    total_orders: int
    rating: float


class SuspendedVendorsResponse(CamelModel):
    success: bool = True
    data: list[SuspendedVendorSchema]
    suspension_reasons: dict[str, str]


# Verification


class PendingMenuItemSchema(CamelModel):
    item_id: str
    name: str
    description: str
    price: float
    category_name: str
    image_url: str
    is_veg: bool
    is_best_seller: bool
    preparation_time: float
    discount: float
    is_verified: bool
    verification_status: str
    verification_notes: str


class PendingVendorSchema(CamelModel):
    vendor_id: str
    full_name: str
    shop_name: str
    email: str
    phone_number: str
    address: str
    city: str
    pincode: str
    gst_number: str
    fssai_license: str
    fssai_license_url: str
    gst_document_url: str
    profile_image_url: str
    shop_image_url: str
    cuisine_types: list[str]
    bank_account_number: str
    bank_name: str
    ifsc_code: str
    upi_id: str
    menu_items: list[PendingMenuItemSchema] = Field(default_factory=list)
    submitted_at: str
    verification_status: str


class VendorVerificationSchema(CamelModel):
    vendor_id: str | None = None
    action: str | None = None
    notes: str | None = None
