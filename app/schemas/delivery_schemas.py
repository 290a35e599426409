from typing import Any

from app.schemas.schemas import CamelModel, EntityUpdateSchema
from app.schemas.status_schema import DeliverySuspensionReason


class DeliveryPersonUpdateSchema(EntityUpdateSchema):
    delivery_person_id: str | None = None


class DeliveryPersonResponse(CamelModel):
    delivery_person_id: str
    full_name: str
    email: str
    phone_number: str
    address: str
    city: str
    pincode: str
    vehicle_type: str
    vehicle_number: str
    driver_license_number: str
    driver_license_url: str
    vehicle_document_url: str
    profile_photo_url: str
    bank_name: str
    bank_account_number: str
    ifsc_code: str
    upi_id: str
    rating: float
    total_deliveries: int
    total_earnings: float
    incentives: float
    cod_collected: float
    cod_settled: float
    cod_pending: float
    is_online: bool
    is_on_delivery: bool
    is_verified: bool
    is_suspended: bool
    current_location: Any
    registered_at: str
    created_at: str
    status: str


# Suspension


class SuspendDeliveryPersonSchema(CamelModel):
    delivery_person_id: str | None = None
    reason: DeliverySuspensionReason | None = None
    notes: str | None = None
    admin_id: str | None = None


class SuspendedDeliveryPersonSchema(CamelModel):
    delivery_person_id: str
    full_name: str
    email: str
    phone_number: str
    vehicle_type: str
    vehicle_number: str
    suspension_reason: str
    suspension_notes: str
    suspended_at: str
    suspended_by: str
    total_deliveries: int
    rating: float
    cod_collected: float


class SuspendedDeliveryPersonsResponse(CamelModel):
    success: bool = True
    data: list[SuspendedDeliveryPersonSchema]
    suspension_reasons: dict[str, str]


# Earnings sync


class SyncRequestSchema(CamelModel):
    delivery_person_id: str | None = None


class SyncResult(CamelModel):
    id: str
    success: bool
    earnings: float
    deliveries: int


class SyncResponse(CamelModel):
    success: bool = True
    message: str
    results: list[SyncResult]


# Performance


class DeliveryPerformanceSchema(CamelModel):
    delivery_person_id: str
    full_name: str
    profile_photo_url: str
    phone_number: str
    email: str
    city: str
    vehicle_type: str
    vehicle_number: str
    is_online: bool
    is_on_delivery: bool
    is_verified: bool
    total_deliveries: int
    completed_deliveries: int
    cancelled_deliveries: int
    pending_deliveries: int
    success_rate: float
    avg_delivery_time: float
    avg_rating: float
    total_ratings: int
    total_earnings: float
    cod_collected: float
    cod_settled: float
    cod_pending: float
    last_delivery_date: str | None


class DeliveryPerformanceSummary(CamelModel):
    total_partners: int
    active_partners: int
    on_delivery: int
    total_deliveries: int
    avg_success_rate: float
    avg_rating: float
    total_cod_pending: float


class DeliveryPerformanceResponse(CamelModel):
    delivery_partners: list[DeliveryPerformanceSchema]
    summary: DeliveryPerformanceSummary


# Cash on delivery


class CodPartnerSchema(CamelModel):
    delivery_person_id: str
    full_name: str
    profile_photo_url: str
    phone_number: str
    city: str
    is_online: bool
    is_verified: bool
    cod_collected: float
    cod_settled: float
    cod_pending: float
    pending_orders: int
    pending_order_ids: list[str]
    total_cod_orders: int


class CodSettlementSchema(CamelModel):
    settlement_id: str
    delivery_person_id: str
    delivery_person_name: str
    amount: float
    orders_count: int
    method: str
    status: str
    created_at: str
    processed_at: str | None
    notes: str | None
    receipt_id: str | None


class CodSummary(CamelModel):
    total_cod_collected: float
    total_cod_settled: float
    total_cod_pending: float
    partners_with_pending: int


class CodOverview(CamelModel):
    delivery_partners: list[CodPartnerSchema]
    recent_settlements: list[CodSettlementSchema]
    summary: CodSummary


class CodSettlementCreateSchema(CamelModel):
    delivery_person_id: str | None = None
    delivery_person_name: str | None = None
    amount: float | None = None
    method: str | None = None
    notes: str | None = None
    order_ids: list[str] | None = None


class CodSettlementResponse(CamelModel):
    success: bool = True
    message: str
    settlement_id: str
    receipt_id: str
    orders_settled: int


# Verification


class PendingDeliveryPersonSchema(CamelModel):
    delivery_person_id: str
    full_name: str
    email: str
    phone_number: str
    address: str
    city: str
    pincode: str
    vehicle_type: str
    vehicle_number: str
    driver_license_number: str
    driver_license_url: str
    vehicle_document_url: str
    profile_photo_url: str
    bank_name: str
    bank_account_number: str
    ifsc_code: str
    upi_id: str
    submitted_at: str
    verification_status: str
    is_verified: bool


class DeliveryVerificationSchema(CamelModel):
    delivery_person_id: str | None = None
    action: str | None = None
    notes: str | None = None
