from app.schemas.schemas import CamelModel
from app.schemas.status_schema import ComplaintPriority, ComplaintStatus


class ComplaintUpdateSchema(CamelModel):
    complaint_id: str | None = None
    status: ComplaintStatus | None = None
    resolution: str | None = None
    admin_notes: str | None = None
    priority: ComplaintPriority | None = None


class ComplaintSchema(CamelModel):
    complaint_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    customer_email: str
    type: str
    subject: str
    description: str
    status: str
    priority: str
    order_id: str
    vendor_id: str
    vendor_name: str
    delivery_person_id: str
    delivery_person_name: str
    order_total: float
    payment_mode: str
    razorpay_payment_id: str
    refund_requested: bool
    refund_amount: float
    refund_status: str
    refund_id: str
    resolution: str
    admin_notes: str
    created_at: str
    updated_at: str


class ComplaintSummary(CamelModel):
    total: int
    open: int
    in_progress: int
    resolved: int
    refund_pending: int
    high_priority: int


class ComplaintListResponse(CamelModel):
    complaints: list[ComplaintSchema]
    summary: ComplaintSummary
