"""
Per-entity running totals folded from order and delivery-task documents.

Every totals class exposes ``add(record)``; :func:`aggregate` groups a
sequence of records by a key and folds each one into the totals for its
group. Totals are recomputed from source documents on every read.
"""
from dataclasses import dataclass, field
from typing import Callable, Iterable, TypeVar

from app.schemas.status_schema import (
    CANCELLED_STATUSES,
    COMPLETED_STATUSES,
    IN_TRANSIT_STATUSES,
    PENDING_STATUSES,
    PREPARING_STATUSES,
    DeliveryTaskStatus,
    is_completed,
    normalize_status,
)
from app.utils.utils import round_half_up, to_datetime, to_iso

T = TypeVar("T")

# Flat per-order delivery earning when the order carries no fee
DEFAULT_DELIVERY_FEE = 30

# Distance-based delivery earnings used by the sync operation
BASE_DELIVERY_FEE = 10
PER_KM_RATE = 6.5

# GST on platform commission
COMMISSION_RATE = 0.15
GST_ON_COMMISSION = 0.18
GST_ON_FOOD = 0.05
GST_ON_DELIVERY = 0.18

COD_PAYMENT_METHODS = ("COD", "Cash")


def aggregate(
    records: Iterable[dict],
    key: Callable[[dict], str | None],
    factory: Callable[[], T],
) -> dict[str, T]:
    totals: dict[str, T] = {}
    for record in records:
        group = key(record)
        if not group:
            continue
        if group not in totals:
            totals[group] = factory()
        totals[group].add(record)
    return totals


def by_field(name: str) -> Callable[[dict], str | None]:
    return lambda record: record.get(name)


def rate(part: float, whole: float) -> float:
    """Percentage rounded to one decimal, 0 when there is nothing to divide."""
    if not whole:
        return 0
    return round_half_up(part / whole * 100, 1)


def average(total: float, count: int, digits: int = 1):
    """Mean rounded half-up, or None so callers can apply their own fallback."""
    if not count:
        return None
    return round_half_up(total / count, digits)


def is_cod(order: dict) -> bool:
    method = order.get("paymentMethod") or order.get("paymentMode")
    return method in COD_PAYMENT_METHODS


@dataclass
class VendorEarnings:
    total_orders: int = 0
    total_earnings: float = 0

    def add(self, order: dict) -> None:
        self.total_orders += 1
        if normalize_status(order.get("status")) in COMPLETED_STATUSES:
            # Vendor gets the subtotal, before delivery fee and commission
            self.total_earnings += order.get("subtotal") or order.get("total") or 0


@dataclass
class DeliveryEarnings:
    total_deliveries: int = 0
    total_earnings: float = 0
    incentives: float = 0
    cod_collected: float = 0
    cod_settled: float = 0

    def add(self, order: dict) -> None:
        if normalize_status(order.get("status")) not in COMPLETED_STATUSES:
            return
        self.total_deliveries += 1
        self.total_earnings += (
            order.get("deliveryFee") or order.get("deliveryCharges") or DEFAULT_DELIVERY_FEE
        )
        self.incentives += order.get("deliveryIncentive") or 0
        if is_cod(order):
            amount = order.get("total") or order.get("grandTotal") or 0
            self.cod_collected += amount
            if order.get("codSettled"):
                self.cod_settled += amount

    @property
    def cod_pending(self) -> float:
        return self.cod_collected - self.cod_settled


@dataclass
class CustomerSpending:
    total_orders: int = 0
    total_spent: float = 0
    last_order_at: str = ""

    def add(self, order: dict) -> None:
        if normalize_status(order.get("status")) in COMPLETED_STATUSES:
            self.total_spent += order.get("total") or order.get("grandTotal") or 0
        self.total_orders += 1
        order_date = to_iso(order.get("createdAt"))
        if order_date > self.last_order_at:
            self.last_order_at = order_date


@dataclass
class VendorPerformance:
    total_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0
    pending_orders: int = 0
    preparing_orders: int = 0
    total_revenue: float = 0
    total_ratings: int = 0
    rating_sum: float = 0
    preparation_time_sum: float = 0
    prep_time_count: int = 0

    def add(self, order: dict) -> None:
        self.total_orders += 1
        status = normalize_status(order.get("status"))
        if status in COMPLETED_STATUSES:
            self.completed_orders += 1
            self.total_revenue += order.get("subtotal") or order.get("total") or 0
            if order.get("preparationTime"):
                self.preparation_time_sum += order["preparationTime"]
                self.prep_time_count += 1
        elif status in CANCELLED_STATUSES:
            self.cancelled_orders += 1
        elif status in PENDING_STATUSES:
            self.pending_orders += 1
        elif status in PREPARING_STATUSES:
            self.preparing_orders += 1

        if order.get("vendorRating"):
            self.rating_sum += order["vendorRating"]
            self.total_ratings += 1

    @property
    def cancellation_rate(self) -> float:
        return rate(self.cancelled_orders, self.total_orders)

    @property
    def completion_rate(self) -> float:
        return rate(self.completed_orders, self.total_orders)


@dataclass
class DeliveryPerformance:
    total_deliveries: int = 0
    completed_deliveries: int = 0
    cancelled_deliveries: int = 0
    pending_deliveries: int = 0
    total_earnings: float = 0
    delivery_time_sum: float = 0
    delivery_time_count: int = 0
    rating_sum: float = 0
    rating_count: int = 0
    cod_collected: float = 0
    cod_settled: float = 0
    last_delivery_date: str | None = None

    def add(self, order: dict) -> None:
        self.total_deliveries += 1
        status = normalize_status(order.get("status"))
        if status in COMPLETED_STATUSES:
            self.completed_deliveries += 1
            self.total_earnings += order.get("deliveryFee") or 0
            if normalize_status(order.get("paymentMode")) in ("cod", "cash"):
                self.cod_collected += order.get("total") or 0
            if order.get("actualDeliveryTime"):
                self.delivery_time_sum += order["actualDeliveryTime"]
                self.delivery_time_count += 1
            delivered_at = to_datetime(order.get("deliveredAt") or order.get("createdAt"))
            if delivered_at:
                date_str = to_iso(delivered_at)
                if not self.last_delivery_date or date_str > self.last_delivery_date:
                    self.last_delivery_date = date_str
        elif status in CANCELLED_STATUSES:
            self.cancelled_deliveries += 1
        elif status in IN_TRANSIT_STATUSES:
            self.pending_deliveries += 1

        if order.get("deliveryRating"):
            self.rating_sum += order["deliveryRating"]
            self.rating_count += 1

    @property
    def success_rate(self) -> float:
        return rate(self.completed_deliveries, self.total_deliveries)


@dataclass
class CodLedger:
    collected: float = 0
    orders: int = 0
    pending_order_ids: list[str] = field(default_factory=list)

    def add(self, order: dict) -> None:
        if normalize_status(order.get("status")) not in COMPLETED_STATUSES:
            return
        self.collected += order.get("total") or 0
        self.orders += 1
        if not order.get("codSettled"):
            self.pending_order_ids.append(order["id"])


def distance_earnings(stored: float | None, distance_km: float, delivery_fee: float | None) -> float:
    """Stored earning, else base fee plus per-km rate, else the flat fee."""
    if stored:
        return stored
    if distance_km > 0:
        return round_half_up(BASE_DELIVERY_FEE + distance_km * PER_KM_RATE)
    return delivery_fee or BASE_DELIVERY_FEE


def task_distance_km(task: dict) -> float:
    return task.get("distanceKm") or ((task.get("deliveryDistanceMeters") or 0) / 1000)


def task_earning(task: dict) -> float:
    return distance_earnings(
        task.get("deliveryEarnings") or task.get("deliveryPersonEarnings"),
        task_distance_km(task),
        task.get("deliveryFee"),
    )


def order_earning(order: dict) -> float:
    return distance_earnings(
        order.get("deliveryPersonEarnings"),
        order.get("distanceKm") or 0,
        order.get("deliveryFee"),
    )


def is_delivered_task(task: dict) -> bool:
    return normalize_status(task.get("status")) == DeliveryTaskStatus.DELIVERED.value.lower()


@dataclass
class SyncedEarnings:
    """Earnings recomputed by the sync operation from tasks or orders."""

    total_earnings: float = 0
    deliveries: int = 0
    tips: float = 0
    cod_collected: float = 0

    def add_task(self, task: dict) -> None:
        earning = task_earning(task)
        tip = task.get("tip") or 0
        self.total_earnings += earning + tip
        self.tips += tip
        self.deliveries += 1
        payment_mode = task.get("paymentMode")
        if (
            isinstance(payment_mode, str)
            and payment_mode.upper() == "COD"
            and task.get("codCollected")
            and not task.get("codSettled")
        ):
            self.cod_collected += task.get("codAmount") or task.get("orderTotal") or 0

    def add_order(self, order: dict) -> None:
        if normalize_status(order.get("status")) not in COMPLETED_STATUSES:
            return
        earning = order_earning(order)
        tip = order.get("tip") or 0
        self.total_earnings += earning + tip
        self.tips += tip
        self.deliveries += 1


# Payouts


def _later(current: str | None, candidate: str) -> str | None:
    if candidate and (not current or candidate > current):
        return candidate
    return current


@dataclass
class VendorPayout:
    """
    Completed-order revenue split between a vendor and the platform.

    The vendor is owed the item total less commission and the GST on that
    commission. The platform keeps commission, GST, small-order fees and the
    delivery fee margin, which goes negative when delivery is subsidised.
    """

    order_count: int = 0
    total_revenue: float = 0
    commission_amount: float = 0
    gst_on_commission: float = 0
    small_order_fees: float = 0
    delivery_fee_profit: float = 0
    total_platform_earning: float = 0
    net_payable: float = 0
    last_order_date: str | None = None

    def add(self, order: dict) -> None:
        if not is_completed(order):
            return
        item_total = order.get("itemTotal") or order.get("subtotal") or 0
        commission = item_total * COMMISSION_RATE
        gst = commission * GST_ON_COMMISSION
        small_order_fee = order.get("smallOrderSupportFee") or 0

        customer_fee = order.get("deliveryFee") or 0
        partner_earning = order.get("deliveryPersonEarnings") or (
            round_half_up(BASE_DELIVERY_FEE + order["distanceKm"] * PER_KM_RATE)
            if order.get("distanceKm")
            else customer_fee
        )
        delivery_fee_profit = customer_fee - partner_earning

        self.order_count += 1
        self.total_revenue += item_total
        self.commission_amount += commission
        self.gst_on_commission += gst
        self.small_order_fees += small_order_fee
        self.delivery_fee_profit += delivery_fee_profit
        self.total_platform_earning += commission + gst + small_order_fee + delivery_fee_profit
        self.net_payable += item_total - commission - gst
        self.last_order_date = _later(self.last_order_date, to_iso(order.get("createdAt")))


@dataclass
class DeliveryLine:
    order_id: str
    distance_km: float
    earnings: float
    tip: float
    date: str


@dataclass
class DeliveryPayout:
    """
    Payable earnings per delivery partner.

    ``add`` folds delivery tasks; ``add_order`` folds completed orders that
    no delivered task already covers.
    """

    total_earnings: float = 0
    delivery_count: int = 0
    tips: float = 0
    cod_collected: float = 0
    cod_settled: float = 0
    last_delivery_date: str | None = None
    order_ids: set[str] = field(default_factory=set)
    deliveries: list[DeliveryLine] = field(default_factory=list)

    def _record(self, earning: float, tip: float, delivered_at) -> str:
        self.total_earnings += earning + tip
        self.tips += tip
        self.delivery_count += 1
        date_str = to_iso(delivered_at)
        self.last_delivery_date = _later(self.last_delivery_date, date_str)
        return date_str

    def add(self, task: dict) -> None:
        if not is_delivered_task(task):
            return
        earning = task_earning(task)
        tip = task.get("tip") or 0
        date_str = self._record(earning, tip, task.get("deliveredAt") or task.get("createdAt"))

        payment_mode = task.get("paymentMode")
        if isinstance(payment_mode, str) and payment_mode.upper() == "COD":
            amount = task.get("codAmount") or task.get("orderTotal") or 0
            if task.get("codCollected"):
                self.cod_collected += amount
            if task.get("codSettled"):
                self.cod_settled += amount

        order_id = task.get("orderId") or task["id"]
        self.order_ids.add(order_id)
        if date_str:
            self.deliveries.append(
                DeliveryLine(
                    order_id=order_id,
                    distance_km=task_distance_km(task),
                    earnings=earning,
                    tip=tip,
                    date=date_str,
                )
            )

    def add_order(self, order: dict) -> None:
        if not is_completed(order):
            return
        self._record(
            order_earning(order),
            order.get("tip") or 0,
            order.get("deliveredAt") or order.get("createdAt"),
        )


@dataclass
class GSTBreakdown:
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


def gst_breakdown(order: dict) -> GSTBreakdown:
    item_total = order.get("itemTotal") or order.get("subtotal") or order.get("total") or 0
    discount = order.get("discount") or 0
    item_total_after_discount = max(0, item_total - discount)
    delivery_fee = order.get("deliveryFee") or 0

    # Commission is charged on the item total before discount
    commission = item_total * COMMISSION_RATE
    gst_on_commission = commission * GST_ON_COMMISSION
    gst_on_food = item_total_after_discount * GST_ON_FOOD
    gst_on_delivery = delivery_fee * GST_ON_DELIVERY

    return GSTBreakdown(
        item_total=item_total,
        discount=discount,
        item_total_after_discount=item_total_after_discount,
        delivery_fee=delivery_fee,
        commission=commission,
        gst_on_commission=gst_on_commission,
        gst_on_food=gst_on_food,
        gst_on_delivery=gst_on_delivery,
        total_gst=gst_on_commission + gst_on_food + gst_on_delivery,
        total_platform_earning=commission + gst_on_commission,
    )
