from typing import Any

from app.schemas.schemas import CamelModel, EntityUpdateSchema


class OrderUpdateSchema(EntityUpdateSchema):
    order_id: str | None = None


class OrderResponseSchema(CamelModel):
    order_id: str
    vendor_id: str
    vendor_name: str
    customer_id: str
    customer_name: str
    customer_phone: str
    items: list[Any]
    item_names: list[str]
    subtotal: float
    discount: float
    delivery_fee: float
    taxes: float
    total: float
    status: str
    payment_mode: str
    payment_status: str
    delivery_address: Any
    delivery_person_id: str | None
    delivery_person_name: str
    delivery_person_phone: str
    pickup_pin: str
    delivery_pin: str
    pickup_pin_verified: bool
    delivery_pin_verified: bool
    pickup_pin_verified_at: str | None
    delivery_pin_verified_at: str | None
    created_at: str
    estimated_delivery_time: float
