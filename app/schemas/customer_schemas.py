from typing import Any

from app.schemas.schemas import CamelModel, EntityUpdateSchema


class CustomerUpdateSchema(EntityUpdateSchema):
    customer_id: str | None = None


class CustomerResponse(CamelModel):
    customer_id: str
    full_name: str
    email: str
    phone_number: str
    profile_image_url: str
    address: str
    city: str
    pincode: str
    addresses: list[dict[str, Any]]
    total_orders: int
    total_spent: float
    last_order_at: str
    registered_at: str
    created_at: str
    status: str
