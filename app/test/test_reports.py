from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from app.database.database import Collections
from app.test.factories import OrderFactory, VendorFactory


def _seed_gst_orders(store):
    store.seed(
        Collections.VENDORS,
        VendorFactory(id="v1", shopName="Spice Hub"),
        VendorFactory(id="v2", shopName="", fullName="Asha Rao"),
    )
    store.seed(
        Collections.ORDERS,
        OrderFactory(
            id="march",
            vendorId="v1",
            itemTotal=1000,
            deliveryFee=0,
            paymentMode="COD",
            deliveredAt=datetime(2024, 3, 10, 18, 30, tzinfo=timezone.utc),
        ),
        OrderFactory(
            id="feb",
            vendorId="v2",
            subtotal=200,
            deliveryFee=40,
            createdAt=datetime(2024, 2, 20, 9, 0, tzinfo=timezone.utc),
        ),
        OrderFactory(
            id="pending",
            vendorId="v1",
            status="Pending",
            createdAt=datetime(2024, 3, 12, tzinfo=timezone.utc),
        ),
    )


class TestGSTReport:
    """GET /api/reports/gst"""

    @pytest.mark.asyncio
    async def test_report_covers_completed_orders(self, client: AsyncClient, store):
        _seed_gst_orders(store)

        response = await client.get("/api/reports/gst")

        assert response.status_code == 200
        data = response.json()["data"]

        assert [e["orderId"] for e in data["entries"]] == ["march", "feb"]
        march = data["entries"][0]
        assert march["vendorName"] == "Spice Hub"
        assert march["orderDate"] == "2024-03-10T18:30:00.000Z"
        assert march["commission"] == pytest.approx(150)
        assert march["gstOnCommission"] == pytest.approx(27)
        assert march["gstOnFood"] == pytest.approx(50)
        assert march["totalGst"] == pytest.approx(77)
        assert march["totalPlatformEarning"] == pytest.approx(177)
        assert march["paymentMode"] == "COD"
        assert data["entries"][1]["vendorName"] == "Asha Rao"

        assert [m["monthKey"] for m in data["monthlyData"]] == ["2024-03", "2024-02"]
        assert data["monthlyData"][0]["month"] == "March 2024"
        assert data["monthlyData"][1]["totalGst"] == pytest.approx(22.6)

        assert [v["vendorId"] for v in data["vendorData"]] == ["v1", "v2"]

        summary = data["summary"]
        assert summary["totalOrders"] == 2
        assert summary["totalCommission"] == pytest.approx(180)
        assert summary["totalGstCollected"] == pytest.approx(99.6)
        assert summary["totalPlatformEarning"] == pytest.approx(212.4)
        assert summary["commissionRate"] == 15
        assert summary["gstOnCommissionRate"] == 18
        assert summary["gstOnFoodRate"] == 5
        assert summary["gstOnDeliveryRate"] == 18

    @pytest.mark.asyncio
    async def test_inclusive_date_range(self, client: AsyncClient, store):
        _seed_gst_orders(store)

        response = await client.get(
            "/api/reports/gst", params={"startDate": "2024-03-01", "endDate": "2024-03-10"}
        )

        data = response.json()["data"]
        assert [e["orderId"] for e in data["entries"]] == ["march"]
        assert data["summary"]["totalOrders"] == 1

    @pytest.mark.asyncio
    async def test_vendor_filter(self, client: AsyncClient, store):
        _seed_gst_orders(store)

        response = await client.get("/api/reports/gst", params={"vendorId": "v2"})

        data = response.json()["data"]
        assert [e["orderId"] for e in data["entries"]] == ["feb"]
        assert [v["vendorName"] for v in data["vendorData"]] == ["Asha Rao"]

    @pytest.mark.asyncio
    async def test_invalid_date(self, client: AsyncClient):
        response = await client.get("/api/reports/gst", params={"startDate": "last week"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_empty_report(self, client: AsyncClient):
        response = await client.get("/api/reports/gst")

        data = response.json()["data"]
        assert data["entries"] == []
        assert data["summary"]["totalOrders"] == 0
        assert data["summary"]["totalGstCollected"] == 0

    @pytest.mark.asyncio
    async def test_entries_capped_at_newest_hundred(self, client: AsyncClient, store):
        orders = OrderFactory.build_batch(130, vendorId="v1")
        store.seed(Collections.VENDORS, VendorFactory(id="v1"))
        store.seed(Collections.ORDERS, *orders)

        response = await client.get("/api/reports/gst")

        data = response.json()["data"]
        entries = data["entries"]
        assert len(entries) == 100
        assert entries[0]["orderId"] == orders[-1]["id"]
        assert entries[-1]["orderId"] == orders[30]["id"]
        dates = [e["orderDate"] for e in entries]
        assert dates == sorted(dates, reverse=True)

        assert data["summary"]["totalOrders"] == 130
        assert data["monthlyData"][0]["ordersCount"] == 130
        assert data["vendorData"][0]["ordersCount"] == 130
