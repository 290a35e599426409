from typing import Any

from app.schemas.schemas import CamelModel


class PayoutResponse(CamelModel):
    success: bool = True
    message: str
    payout_id: str


# Vendor payouts


class VendorPayoutSchema(CamelModel):
    vendor_id: str
    shop_name: str
    full_name: str
    shop_image_url: str
    email: str
    phone_number: str
    city: str
    is_verified: bool
    commission_rate: float
    bank_details: dict[str, Any] | None
    upi_id: str | None
    total_revenue: float
    commission_amount: float
    gst_on_commission: float
    small_order_fees: float
    delivery_fee_profit: float
    total_platform_earning: float
    net_payable: float
    paid_amount: float
    pending_amount: float
    order_count: int
    last_order_date: str | None


class VendorPayoutRecord(CamelModel):
    payout_id: str
    vendor_id: str
    vendor_name: str
    amount: float
    method: str
    status: str
    created_at: str
    processed_at: str | None
    transaction_id: str | None
    notes: str | None


class VendorPayoutSummary(CamelModel):
    total_pending_payouts: float
    total_paid_amount: float
    total_commission_earned: float
    total_gst_collected: float
    total_small_order_fees: float
    total_delivery_fee_profit: float
    total_platform_earning: float
    vendors_with_pending: int


class VendorPayoutOverview(CamelModel):
    vendors: list[VendorPayoutSchema]
    recent_payouts: list[VendorPayoutRecord]
    summary: VendorPayoutSummary


class VendorPayoutCreateSchema(CamelModel):
    vendor_id: str | None = None
    vendor_name: str | None = None
    amount: float | None = None
    method: str | None = None
    transaction_id: str | None = None
    notes: str | None = None


# Delivery partner payouts


class PayoutDeliverySchema(CamelModel):
    order_id: str
    distance_km: float
    earnings: float
    tip: float
    date: str


class DeliveryPartnerPayoutSchema(CamelModel):
    delivery_person_id: str
    full_name: str
    profile_photo_url: str
    phone_number: str
    email: str
    city: str
    is_online: bool
    is_verified: bool
    bank_details: dict[str, Any] | None
    upi_id: str | None
    total_earnings: float
    delivery_fees: float
    tips: float
    incentives: float
    delivery_count: int
    paid_amount: float
    pending_amount: float
    cod_collected: float
    cod_settled: float
    cod_pending: float
    last_delivery_date: str | None
    recent_deliveries: list[PayoutDeliverySchema]


class DeliveryPayoutRecord(CamelModel):
    payout_id: str
    delivery_person_id: str
    delivery_person_name: str
    amount: float
    method: str
    status: str
    created_at: str
    processed_at: str | None
    transaction_id: str | None
    notes: str | None


class DeliveryPayoutSummary(CamelModel):
    total_pending_payouts: float
    total_paid_amount: float
    total_earnings: float
    total_tips: float
    total_delivery_fees: float
    total_deliveries: int
    total_cod_collected: float
    total_cod_settled: float
    total_cod_pending: float
    partners_with_pending: int
    active_partners: int


class DeliveryPayoutOverview(CamelModel):
    delivery_partners: list[DeliveryPartnerPayoutSchema]
    recent_payouts: list[DeliveryPayoutRecord]
    summary: DeliveryPayoutSummary


class DeliveryPayoutCreateSchema(CamelModel):
    delivery_person_id: str | None = None
    delivery_person_name: str | None = None
    amount: float | None = None
    method: str | None = None
    transaction_id: str | None = None
    notes: str | None = None


class DeliveryPayoutResponse(PayoutResponse):
    new_paid_amount: float
    new_pending_payout: float
