from typing import Any

from app.schemas.schemas import CamelModel


class CommissionVendorSchema(CamelModel):
    """Per-vendor commission settings as shown on the commission page"""

    vendor_id: str
    shop_name: str
    full_name: str
    shop_image_url: str
    city: str
    is_verified: bool
    is_online: bool
    commission_rate: float
    custom_commission: bool
    commission_history: list[dict[str, Any]]


class CommissionOverview(CamelModel):
    vendors: list[CommissionVendorSchema]
    platform_default_rate: float


class CommissionUpdateSchema(CamelModel):
    """Schema for updating one vendor's commission rate (percent, 0-100)"""

    vendor_id: str | None = None
    commission_rate: float | None = None
    reason: str | None = None


class PlatformCommissionSchema(CamelModel):
    """Schema for updating the platform default commission rate (percent, 0-100)"""

    default_rate: float | None = None
