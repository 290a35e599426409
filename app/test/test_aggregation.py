import pytest

from app.services.aggregation import (
    CodLedger,
    CustomerSpending,
    DeliveryEarnings,
    DeliveryPayout,
    SyncedEarnings,
    VendorEarnings,
    VendorPayout,
    VendorPerformance,
    aggregate,
    average,
    by_field,
    distance_earnings,
    gst_breakdown,
    rate,
)
from app.schemas.status_schema import COMPLETED_STATUSES, IN_TRANSIT_STATUSES, PENDING_STATUSES
from app.services.projection import coalesce, pick
from app.utils.utils import chunked, round_half_up, to_datetime, to_iso
from app.test.factories import BASE_TIME, OrderFactory


class TestAggregate:
    """Grouping records into per-entity totals."""

    def test_vendor_earnings_count_all_orders_but_sum_completed(self):
        orders = [
            OrderFactory(vendorId="v1", status="Delivered", subtotal=200),
            OrderFactory(vendorId="v1", status="completed", subtotal=100),
            OrderFactory(vendorId="v1", status="Pending", subtotal=500),
            OrderFactory(vendorId="v2", status="Cancelled", subtotal=80),
        ]

        totals = aggregate(orders, by_field("vendorId"), VendorEarnings)

        assert totals["v1"].total_orders == 3
        assert totals["v1"].total_earnings == 300
        assert totals["v2"].total_orders == 1
        assert totals["v2"].total_earnings == 0

    def test_vendor_earnings_fall_back_to_total(self):
        totals = aggregate(
            [OrderFactory(vendorId="v1", subtotal=None, total=180)],
            by_field("vendorId"),
            VendorEarnings,
        )
        assert totals["v1"].total_earnings == 180

    def test_records_without_key_are_skipped(self):
        orders = [OrderFactory(deliveryPersonId=None), OrderFactory(deliveryPersonId="")]
        assert aggregate(orders, by_field("deliveryPersonId"), DeliveryEarnings) == {}

    def test_entity_without_orders_gets_zero_totals(self):
        totals = aggregate([], by_field("deliveryPersonId"), DeliveryEarnings)
        earnings = totals.get("dp-9", DeliveryEarnings())
        assert earnings.total_deliveries == 0
        assert earnings.total_earnings == 0
        assert earnings.cod_pending == 0

    def test_delivery_earnings_default_fee_and_cod(self):
        orders = [
            OrderFactory(deliveryFee=None, paymentMode="Online"),
            OrderFactory(deliveryFee=40, paymentMode="COD", total=250, codSettled=True),
            OrderFactory(deliveryFee=40, paymentMode="Cash", total=150),
            OrderFactory(status="Cancelled", deliveryFee=40, paymentMode="COD"),
        ]

        earnings = aggregate(orders, by_field("deliveryPersonId"), DeliveryEarnings)["dp-1"]

        assert earnings.total_deliveries == 3
        assert earnings.total_earnings == 110
        assert earnings.cod_collected == 400
        assert earnings.cod_settled == 250
        assert earnings.cod_pending == 150

    def test_customer_spending_tracks_latest_order(self):
        first = OrderFactory(customerId="c1", status="Delivered", total=250)
        latest = OrderFactory(customerId="c1", status="Pending", total=100)

        spending = aggregate([latest, first], by_field("customerId"), CustomerSpending)["c1"]

        assert spending.total_orders == 2
        assert spending.total_spent == 250
        assert spending.last_order_at == to_iso(latest["createdAt"])

    def test_status_casing_is_ignored(self):
        orders = [
            OrderFactory(customerId="c1", vendorId="v1", status="delivered", subtotal=200, total=250),
            OrderFactory(customerId="c1", vendorId="v1", status="DELIVERED", subtotal=100, total=120),
            OrderFactory(customerId="c1", vendorId="v1", status="CANCELLED", subtotal=90, total=90),
        ]

        vendor = aggregate(orders, by_field("vendorId"), VendorEarnings)["v1"]
        customer = aggregate(orders, by_field("customerId"), CustomerSpending)["c1"]

        assert vendor.total_earnings == 300
        assert customer.total_spent == 370
        assert customer.total_orders == 3

    def test_status_buckets_follow_order_statuses(self):
        assert COMPLETED_STATUSES == {"delivered", "completed"}
        assert PENDING_STATUSES == {"pending", "placed"}
        assert IN_TRANSIT_STATUSES == {"out_for_delivery", "picked_up"}

    def test_vendor_performance_buckets_and_rates(self):
        orders = [
            OrderFactory(status="Delivered", preparationTime=20, vendorRating=5),
            OrderFactory(status="DELIVERED", preparationTime=30, vendorRating=4),
            OrderFactory(status="Cancelled"),
            OrderFactory(status="placed"),
            OrderFactory(status="Accepted"),
            OrderFactory(status="Picked Up"),
        ]

        perf = aggregate(orders, by_field("vendorId"), VendorPerformance)["vendor-1"]

        assert perf.total_orders == 6
        assert perf.completed_orders == 2
        assert perf.cancelled_orders == 1
        assert perf.pending_orders == 1
        assert perf.preparing_orders == 1
        assert perf.total_revenue == 400
        assert perf.completion_rate == 33.3
        assert perf.cancellation_rate == 16.7
        assert average(perf.rating_sum, perf.total_ratings) == 4.5
        assert average(perf.preparation_time_sum, perf.prep_time_count, digits=0) == 25

    def test_cod_ledger_lists_unsettled_orders(self):
        orders = [
            OrderFactory(id="o1", paymentMode="COD", total=250),
            OrderFactory(id="o2", paymentMode="COD", total=150, codSettled=True),
            OrderFactory(id="o3", paymentMode="COD", status="Pending", total=90),
        ]

        ledger = aggregate(orders, by_field("deliveryPersonId"), CodLedger)["dp-1"]

        assert ledger.collected == 400
        assert ledger.orders == 2
        assert ledger.pending_order_ids == ["o1"]


class TestRates:
    def test_rate_is_zero_without_denominator(self):
        assert rate(5, 0) == 0

    def test_rate_rounds_to_one_decimal(self):
        assert rate(2, 3) == 66.7

    def test_average_is_none_without_samples(self):
        assert average(0, 0) is None

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(33.35, 1) == 33.4


class TestSyncedEarnings:
    """Distance based earnings recomputed by the sync job."""

    def test_distance_earnings_precedence(self):
        assert distance_earnings(50, 4, 25) == 50
        assert distance_earnings(None, 4, 25) == 36
        assert distance_earnings(None, 0, 25) == 25
        assert distance_earnings(None, 0, None) == 10

    def test_task_with_tip_and_unsettled_cod(self):
        earnings = SyncedEarnings()
        earnings.add_task(
            {
                "deliveryDistanceMeters": 2000,
                "tip": 5,
                "paymentMode": "cod",
                "codCollected": True,
                "codAmount": 300,
            }
        )
        earnings.add_task({"deliveryEarnings": 40, "paymentMode": "COD", "codSettled": True})

        assert earnings.deliveries == 2
        assert earnings.total_earnings == 68
        assert earnings.tips == 5
        assert earnings.cod_collected == 300

    def test_orders_fallback_uses_completed_orders_only(self):
        earnings = SyncedEarnings()
        earnings.add_order(OrderFactory(deliveryPersonEarnings=45))
        earnings.add_order(OrderFactory(status="Cancelled", deliveryPersonEarnings=45))

        assert earnings.deliveries == 1
        assert earnings.total_earnings == 45


class TestPayouts:
    """Vendor and delivery partner payout totals."""

    def test_vendor_payout_split(self):
        orders = [
            OrderFactory(
                vendorId="v1",
                itemTotal=1000,
                deliveryFee=40,
                deliveryPersonEarnings=50,
                smallOrderSupportFee=10,
                createdAt=BASE_TIME,
            ),
            OrderFactory(vendorId="v1", status="Cancelled", itemTotal=500),
        ]

        payout = aggregate(orders, by_field("vendorId"), VendorPayout)["v1"]

        assert payout.order_count == 1
        assert payout.total_revenue == 1000
        assert payout.commission_amount == pytest.approx(150)
        assert payout.gst_on_commission == pytest.approx(27)
        assert payout.delivery_fee_profit == -10
        assert payout.total_platform_earning == pytest.approx(177)
        assert payout.net_payable == pytest.approx(823)
        assert payout.last_order_date == "2024-03-15T12:00:00.000Z"

    def test_vendor_payout_partner_earning_from_distance(self):
        payout = VendorPayout()
        payout.add(OrderFactory(subtotal=200, deliveryFee=40, distanceKm=2))

        assert payout.total_revenue == 200
        assert payout.delivery_fee_profit == 17

    def test_delivery_payout_from_tasks(self):
        payout = DeliveryPayout()
        payout.add(
            {
                "id": "t1",
                "orderId": "o1",
                "status": "DELIVERED",
                "distanceKm": 2,
                "tip": 5,
                "deliveredAt": BASE_TIME,
            }
        )
        payout.add(
            {
                "id": "t2",
                "status": "delivered",
                "deliveryEarnings": 40,
                "paymentMode": "cod",
                "codCollected": True,
                "codSettled": True,
                "codAmount": 300,
            }
        )
        payout.add({"id": "t3", "status": "ASSIGNED", "distanceKm": 9})

        assert payout.delivery_count == 2
        assert payout.total_earnings == 68
        assert payout.tips == 5
        assert payout.cod_collected == 300
        assert payout.cod_settled == 300
        assert payout.order_ids == {"o1", "t2"}
        assert [line.order_id for line in payout.deliveries] == ["o1"]
        assert payout.last_delivery_date == "2024-03-15T12:00:00.000Z"

    def test_delivery_payout_from_orders(self):
        payout = DeliveryPayout()
        payout.add_order(OrderFactory(deliveryPersonEarnings=35, tip=5))
        payout.add_order(OrderFactory(status="Cancelled", deliveryPersonEarnings=35))

        assert payout.delivery_count == 1
        assert payout.total_earnings == 40
        assert payout.deliveries == []


class TestGSTBreakdown:
    def test_commission_and_gst_on_item_total(self):
        gst = gst_breakdown({"itemTotal": 1000, "deliveryFee": 0})

        assert gst.commission == pytest.approx(150)
        assert gst.gst_on_commission == pytest.approx(27)
        assert gst.gst_on_food == pytest.approx(50)
        assert gst.gst_on_delivery == 0
        assert gst.total_gst == pytest.approx(77)
        assert gst.total_platform_earning == pytest.approx(177)

    def test_discount_reduces_food_gst_not_commission(self):
        gst = gst_breakdown({"subtotal": 200, "discount": 50, "deliveryFee": 40})

        assert gst.item_total_after_discount == 150
        assert gst.commission == pytest.approx(30)
        assert gst.gst_on_food == pytest.approx(7.5)
        assert gst.gst_on_delivery == pytest.approx(7.2)


class TestProjection:
    """Precedence between computed and stored values."""

    def test_pick_prefers_first_truthy(self):
        assert pick(12, 40, 0) == 12
        assert pick(None, "", "fallback") == "fallback"

    def test_pick_computed_zero_loses_to_stored_value(self):
        assert pick(0, 500, 0) == 500

    def test_pick_evaluates_callables_lazily(self):
        calls = []

        def stored():
            calls.append("stored")
            return 7

        assert pick(3, stored, 0) == 3
        assert calls == []
        assert pick(0, stored, 0) == 7
        assert calls == ["stored"]

    def test_coalesce_keeps_zero(self):
        assert coalesce(0, 15) == 0
        assert coalesce(None, 15) == 15


class TestTimestamps:
    def test_to_datetime_shapes(self):
        expected = to_datetime("2024-03-15T12:00:00Z")
        assert to_datetime({"_seconds": expected.timestamp()}) == expected
        assert to_datetime(expected.timestamp() * 1000) == expected
        assert to_datetime("not a date") is None
        assert to_datetime(None) is None

    def test_to_iso_formats_milliseconds(self):
        assert to_iso("2024-03-15T12:00:00Z") == "2024-03-15T12:00:00Z"
        assert to_iso(to_datetime("2024-03-15T12:00:00.250+00:00")) == "2024-03-15T12:00:00.250Z"
        assert to_iso(None) == ""

    def test_chunked(self):
        chunks = list(chunked(list(range(45)), 30))
        assert [len(c) for c in chunks] == [30, 15]
