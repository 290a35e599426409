from app.schemas.schemas import CamelModel


class GSTEntry(CamelModel):
    order_id: str
    vendor_id: str
    vendor_name: str
    order_date: str
    item_total: float
    discount: float
    item_total_after_discount: float
    delivery_fee: float
    commission: float
    gst_on_commission: float
    gst_on_food: float
    gst_on_delivery: float
    total_gst: float
    total_platform_earning: float
    payment_mode: str


class MonthlyGST(CamelModel):
    month: str
    month_key: str
    orders_count: int = 0
    total_item_sales: float = 0
    total_delivery_fees: float = 0
    total_commission: float = 0
    total_gst_on_commission: float = 0
    total_gst_on_food: float = 0
    total_gst_on_delivery: float = 0
    total_gst: float = 0
    total_platform_earning: float = 0


class VendorGST(CamelModel):
    vendor_id: str
    vendor_name: str
    orders_count: int = 0
    total_item_sales: float = 0
    total_delivery_fees: float = 0
    total_commission: float = 0
    total_gst: float = 0
    total_platform_earning: float = 0


class GSTSummary(CamelModel):
    total_orders: int
    total_item_sales: float
    total_delivery_fees: float
    total_commission: float
    total_gst_on_commission: float
    total_gst_on_food: float
    total_gst_on_delivery: float
    total_gst_collected: float
    total_platform_earning: float
    commission_rate: float
    gst_on_commission_rate: float
    gst_on_food_rate: float
    gst_on_delivery_rate: float
    gst_rate: float


class GSTReport(CamelModel):
    entries: list[GSTEntry]
    monthly_data: list[MonthlyGST]
    vendor_data: list[VendorGST]
    summary: GSTSummary
