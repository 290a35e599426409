from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.database.database import Collections
from app.test.factories import BASE_TIME, DeliveryPersonFactory, OrderFactory
from app.utils.cron_job import sync_all_delivery_earnings


class TestDeliveryPartnerList:
    """GET/PATCH /api/delivery"""

    @pytest.mark.asyncio
    async def test_earnings_and_cod_from_orders(self, client: AsyncClient, store):
        store.seed(
            Collections.DELIVERY_PERSONS,
            DeliveryPersonFactory(id="dp-1"),
            DeliveryPersonFactory(id="dp-2", isVerified=False, totalEarnings=640),
        )
        store.seed(
            Collections.ORDERS,
            OrderFactory(deliveryPersonId="dp-1", deliveryFee=40, paymentMode="COD", total=250),
            OrderFactory(deliveryPersonId="dp-1", deliveryFee=None, deliveryIncentive=15),
            OrderFactory(deliveryPersonId="dp-1", status="Cancelled", deliveryFee=40),
        )

        response = await client.get("/api/delivery")

        assert response.status_code == 200
        partners = {p["deliveryPersonId"]: p for p in response.json()["data"]}

        assert partners["dp-1"]["totalDeliveries"] == 2
        assert partners["dp-1"]["totalEarnings"] == 70
        assert partners["dp-1"]["incentives"] == 15
        assert partners["dp-1"]["codCollected"] == 250
        assert partners["dp-1"]["codPending"] == 250
        assert partners["dp-1"]["status"] == "active"
        assert partners["dp-1"]["createdAt"] == "2024-03-15T12:00:00.000Z"
        assert partners["dp-1"]["registeredAt"] == partners["dp-1"]["createdAt"]

        assert partners["dp-2"]["totalDeliveries"] == 0
        assert partners["dp-2"]["totalEarnings"] == 640
        assert partners["dp-2"]["currentLocation"] == "Offline"
        assert partners["dp-2"]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_update_delivery_person(self, client: AsyncClient, store):
        store.seed(Collections.DELIVERY_PERSONS, DeliveryPersonFactory(id="dp-1"))

        response = await client.patch(
            "/api/delivery",
            json={"deliveryPersonId": "dp-1", "updates": {"vehicleType": "Scooter"}},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Delivery person updated"
        assert store.raw(Collections.DELIVERY_PERSONS, "dp-1")["vehicleType"] == "Scooter"

    @pytest.mark.asyncio
    async def test_update_unknown_delivery_person(self, client: AsyncClient):
        response = await client.patch(
            "/api/delivery", json={"deliveryPersonId": "nope", "updates": {"city": "Pune"}}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Delivery person not found"


class TestEarningsSync:
    """POST /api/delivery/sync"""

    def _seed_tasks(self, store):
        store.seed(
            Collections.DELIVERY_PERSONS,
            DeliveryPersonFactory(id="dp-1", codCollected=50),
            DeliveryPersonFactory(id="dp-2"),
        )
        store.seed(
            Collections.DELIVERY_TASKS,
            {"id": "t1", "deliveryPersonId": "dp-1", "status": "DELIVERED", "distanceKm": 2},
            {
                "id": "t2",
                "deliveryPersonId": "dp-1",
                "status": "DELIVERED",
                "deliveryEarnings": 40,
                "tip": 10,
                "paymentMode": "COD",
                "codCollected": True,
                "orderTotal": 320,
            },
            {"id": "t3", "deliveryPersonId": "dp-1", "status": "ASSIGNED", "distanceKm": 9},
        )

    @pytest.mark.asyncio
    async def test_sync_one_partner(self, client: AsyncClient, store):
        self._seed_tasks(store)

        response = await client.post("/api/delivery/sync", json={"deliveryPersonId": "dp-1"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Synced 1/1 delivery partners"
        assert body["results"] == [
            {"id": "dp-1", "success": True, "earnings": 73, "deliveries": 2}
        ]
        partner = store.raw(Collections.DELIVERY_PERSONS, "dp-1")
        assert partner["totalEarnings"] == 73
        assert partner["totalDeliveries"] == 2
        assert partner["codCollected"] == 320

    @pytest.mark.asyncio
    async def test_sync_is_idempotent(self, client: AsyncClient, store):
        self._seed_tasks(store)

        await client.post("/api/delivery/sync")
        first = dict(store.raw(Collections.DELIVERY_PERSONS, "dp-1"))
        await client.post("/api/delivery/sync")
        second = store.raw(Collections.DELIVERY_PERSONS, "dp-1")

        for field in ("totalEarnings", "totalDeliveries", "codCollected"):
            assert first[field] == second[field]

    @pytest.mark.asyncio
    async def test_partner_without_deliveries_is_not_written(self, client: AsyncClient, store):
        self._seed_tasks(store)

        response = await client.post("/api/delivery/sync")

        results = {r["id"]: r for r in response.json()["results"]}
        assert results["dp-2"] == {"id": "dp-2", "success": True, "earnings": 0, "deliveries": 0}
        assert "totalEarnings" not in store.raw(Collections.DELIVERY_PERSONS, "dp-2")
        assert response.json()["message"] == "Synced 2/2 delivery partners"

    @pytest.mark.asyncio
    async def test_unreadable_body_syncs_every_partner(self, client: AsyncClient, store):
        self._seed_tasks(store)

        response = await client.post(
            "/api/delivery/sync",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Synced 2/2 delivery partners"
        assert store.raw(Collections.DELIVERY_PERSONS, "dp-1")["totalEarnings"] == 73

    @pytest.mark.asyncio
    async def test_non_object_body_syncs_every_partner(self, client: AsyncClient, store):
        self._seed_tasks(store)

        response = await client.post("/api/delivery/sync", json=["dp-1"])

        assert response.status_code == 200
        assert response.json()["message"] == "Synced 2/2 delivery partners"

    @pytest.mark.asyncio
    async def test_invalid_partner_id_type(self, client: AsyncClient, store):
        self._seed_tasks(store)

        response = await client.post("/api/delivery/sync", json={"deliveryPersonId": 7})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "totalEarnings" not in store.raw(Collections.DELIVERY_PERSONS, "dp-1")

    @pytest.mark.asyncio
    async def test_falls_back_to_completed_orders(self, client: AsyncClient, store):
        store.seed(Collections.DELIVERY_PERSONS, DeliveryPersonFactory(id="dp-1"))
        store.seed(
            Collections.ORDERS,
            OrderFactory(deliveryPersonId="dp-1", deliveryPersonEarnings=45, tip=5),
            OrderFactory(deliveryPersonId="dp-1", deliveryFee=None, distanceKm=4),
            OrderFactory(deliveryPersonId="dp-1", status="Cancelled", deliveryPersonEarnings=45),
        )

        response = await client.post("/api/delivery/sync", json={"deliveryPersonId": "dp-1"})

        assert response.json()["results"][0]["earnings"] == 86
        assert store.raw(Collections.DELIVERY_PERSONS, "dp-1")["totalDeliveries"] == 2

    @pytest.mark.asyncio
    async def test_failed_partner_is_reported(self, client: AsyncClient, store):
        store.seed(
            Collections.DELIVERY_TASKS,
            {"id": "t1", "deliveryPersonId": "ghost", "status": "DELIVERED", "distanceKm": 1},
        )

        response = await client.post("/api/delivery/sync", json={"deliveryPersonId": "ghost"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Synced 0/1 delivery partners"
        assert body["results"][0]["success"] is False

    @pytest.mark.asyncio
    async def test_scheduled_job_syncs_every_partner(self, store):
        self._seed_tasks(store)

        await sync_all_delivery_earnings(store)

        assert store.raw(Collections.DELIVERY_PERSONS, "dp-1")["totalEarnings"] == 73

    @pytest.mark.asyncio
    async def test_scheduled_job_logs_store_errors(self, store):
        store.failing.add("get_documents")

        await sync_all_delivery_earnings(store)

        assert store.collections[Collections.DELIVERY_PERSONS] == {}


class TestDeliveryPerformance:
    @pytest.mark.asyncio
    async def test_performance_sorted_by_deliveries(self, client: AsyncClient, store):
        store.seed(
            Collections.DELIVERY_PERSONS,
            DeliveryPersonFactory(id="dp-2", isOnline=False, rating=4.1),
            DeliveryPersonFactory(id="dp-1", codCollected=900, codSettled=300),
        )
        store.seed(
            Collections.ORDERS,
            OrderFactory(
                deliveryPersonId="dp-1",
                actualDeliveryTime=20,
                deliveryRating=5,
                paymentMode="cod",
                total=250,
                deliveredAt=BASE_TIME + timedelta(days=2),
            ),
            OrderFactory(deliveryPersonId="dp-1", actualDeliveryTime=31, deliveryRating=4),
            OrderFactory(deliveryPersonId="dp-1", status="Cancelled"),
            OrderFactory(deliveryPersonId="dp-1", status="picked_up"),
        )

        response = await client.get("/api/delivery/performance")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [d["deliveryPersonId"] for d in data["deliveryPartners"]] == ["dp-1", "dp-2"]

        top, idle = data["deliveryPartners"]
        assert top["totalDeliveries"] == 4
        assert top["completedDeliveries"] == 2
        assert top["cancelledDeliveries"] == 1
        assert top["pendingDeliveries"] == 1
        assert top["successRate"] == 50
        assert top["avgDeliveryTime"] == 26
        assert top["avgRating"] == 4.5
        assert top["totalEarnings"] == 80
        # Stored COD figures take precedence over the computed 250
        assert top["codCollected"] == 900
        assert top["codPending"] == 600
        assert top["lastDeliveryDate"] == "2024-03-17T12:00:00.000Z"

        assert idle["avgRating"] == 4.1
        assert idle["lastDeliveryDate"] is None
        assert data["summary"]["totalPartners"] == 2
        assert data["summary"]["activePartners"] == 1
        assert data["summary"]["totalCodPending"] == 600


class TestCashOnDelivery:
    """GET/POST /api/delivery/cod"""

    @pytest.mark.asyncio
    async def test_cod_overview(self, client: AsyncClient, store):
        store.seed(
            Collections.DELIVERY_PERSONS,
            DeliveryPersonFactory(id="dp-1", fullName="Ravi"),
            DeliveryPersonFactory(id="dp-2"),
            DeliveryPersonFactory(id="dp-3", codCollected=1000, codSettled=200),
        )
        store.seed(
            Collections.ORDERS,
            OrderFactory(id="o1", deliveryPersonId="dp-1", paymentMode="COD", total=250),
            OrderFactory(
                id="o2", deliveryPersonId="dp-1", paymentMode="cash", total=150, codSettled=True
            ),
            OrderFactory(id="o3", deliveryPersonId="dp-2", paymentMode="Online", total=400),
        )
        store.seed(
            Collections.COD_SETTLEMENTS,
            {
                "id": "s1",
                "deliveryPersonId": "dp-1",
                "amount": 150,
                "status": "completed",
                "createdAt": BASE_TIME,
            },
        )

        response = await client.get("/api/delivery/cod")

        assert response.status_code == 200
        data = response.json()["data"]
        partners = data["deliveryPartners"]
        assert [p["deliveryPersonId"] for p in partners] == ["dp-3", "dp-1"]

        ravi = partners[1]
        assert ravi["codCollected"] == 400
        assert ravi["codSettled"] == 150
        assert ravi["codPending"] == 250
        assert ravi["pendingOrderIds"] == ["o1"]
        assert ravi["totalCodOrders"] == 2

        assert partners[0]["codPending"] == 800
        assert data["summary"]["totalCodPending"] == 1050
        assert data["summary"]["partnersWithPending"] == 2
        assert [s["settlementId"] for s in data["recentSettlements"]] == ["s1"]

    @pytest.mark.asyncio
    async def test_record_settlement(self, client: AsyncClient, store):
        store.seed(
            Collections.DELIVERY_PERSONS,
            DeliveryPersonFactory(id="dp-1", codCollected=400, codSettled=0),
        )
        store.seed(Collections.ORDERS, OrderFactory(id="o1"), OrderFactory(id="o2"))

        response = await client.post(
            "/api/delivery/cod",
            json={
                "deliveryPersonId": "dp-1",
                "deliveryPersonName": "Ravi",
                "amount": 150,
                "orderIds": ["o1"],
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "COD settlement of ₹150 recorded successfully"
        assert body["ordersSettled"] == 1
        assert body["receiptId"].startswith("COD-")

        partner = store.raw(Collections.DELIVERY_PERSONS, "dp-1")
        assert partner["codCollected"] == 250
        assert partner["codSettled"] == 150
        assert partner["lastCodSettlementId"] == body["settlementId"]

        settlement = store.raw(Collections.COD_SETTLEMENTS, body["settlementId"])
        assert settlement["status"] == "completed"
        assert settlement["orderIds"] == ["o1"]
        assert settlement["receiptId"] == body["receiptId"]

        assert store.raw(Collections.ORDERS, "o1")["codSettled"] is True
        assert store.raw(Collections.ORDERS, "o1")["codReceiptId"] == body["receiptId"]
        assert "codSettled" not in store.raw(Collections.ORDERS, "o2")

    @pytest.mark.asyncio
    async def test_settlement_requires_positive_amount(self, client: AsyncClient, store):
        store.seed(Collections.DELIVERY_PERSONS, DeliveryPersonFactory(id="dp-1"))

        response = await client.post(
            "/api/delivery/cod", json={"deliveryPersonId": "dp-1", "amount": 0}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Delivery person ID and valid amount required"
        assert store.collections[Collections.COD_SETTLEMENTS] == {}

    @pytest.mark.asyncio
    async def test_settlement_for_unknown_partner(self, client: AsyncClient, store):
        response = await client.post(
            "/api/delivery/cod", json={"deliveryPersonId": "ghost", "amount": 100}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Delivery partner not found"
        assert store.collections[Collections.COD_SETTLEMENTS] == {}


class TestDeliverySuspension:
    @pytest.mark.asyncio
    async def test_suspend_takes_partner_off_dispatch(self, client: AsyncClient, store):
        store.seed(
            Collections.DELIVERY_PERSONS,
            DeliveryPersonFactory(id="dp-1", fullName="Ravi", isAvailable=True),
        )

        response = await client.post(
            "/api/delivery/suspend",
            json={"deliveryPersonId": "dp-1", "reason": "COD_MISAPPROPRIATION"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == 'Delivery partner "Ravi" has been suspended'
        assert response.json()["data"]["deliveryPersonId"] == "dp-1"
        partner = store.raw(Collections.DELIVERY_PERSONS, "dp-1")
        assert partner["isSuspended"] is True
        assert partner["isOnline"] is False
        assert partner["isAvailable"] is False
        assert partner["suspendedBy"] == "admin"

        log = list(store.collections[Collections.ADMIN_LOGS].values())[0]
        assert log["action"] == "DELIVERY_PARTNER_SUSPENDED"
        assert log["targetType"] == "deliveryPerson"

    @pytest.mark.asyncio
    async def test_double_suspension_rejected(self, client: AsyncClient, store):
        store.seed(Collections.DELIVERY_PERSONS, DeliveryPersonFactory(id="dp-1"))
        payload = {"deliveryPersonId": "dp-1", "reason": "LATE_DELIVERIES"}

        first = await client.post("/api/delivery/suspend", json=payload)
        suspended_at = store.raw(Collections.DELIVERY_PERSONS, "dp-1")["suspendedAt"]
        second = await client.post(
            "/api/delivery/suspend",
            json={"deliveryPersonId": "dp-1", "reason": "RUDE_BEHAVIOR"},
        )

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"] == "Delivery partner is already suspended"
        partner = store.raw(Collections.DELIVERY_PERSONS, "dp-1")
        assert partner["suspendedAt"] == suspended_at
        assert partner["suspensionReason"] == "LATE_DELIVERIES"
        assert len(store.collections[Collections.ADMIN_LOGS]) == 1

    @pytest.mark.asyncio
    async def test_suspension_survives_audit_log_failure(self, client: AsyncClient, store):
        store.seed(Collections.DELIVERY_PERSONS, DeliveryPersonFactory(id="dp-1"))
        store.failing.add("add_document")

        response = await client.post(
            "/api/delivery/suspend",
            json={"deliveryPersonId": "dp-1", "reason": "TRAFFIC_VIOLATIONS"},
        )

        assert response.status_code == 200
        assert store.raw(Collections.DELIVERY_PERSONS, "dp-1")["isSuspended"] is True
        assert store.collections[Collections.ADMIN_LOGS] == {}

    @pytest.mark.asyncio
    async def test_suspend_requires_id(self, client: AsyncClient):
        response = await client.post("/api/delivery/suspend", json={"reason": "OTHER"})

        assert response.status_code == 400
        assert (
            response.json()["error"]
            == "Delivery person ID and suspension reason are required"
        )

    @pytest.mark.asyncio
    async def test_reinstate_and_list(self, client: AsyncClient, store):
        store.seed(
            Collections.DELIVERY_PERSONS,
            DeliveryPersonFactory(
                id="dp-1", isSuspended=True, suspensionReason="LATE_DELIVERIES"
            ),
        )

        listed = await client.get("/api/delivery/suspend")
        assert [p["deliveryPersonId"] for p in listed.json()["data"]] == ["dp-1"]
        assert listed.json()["suspensionReasons"]["LATE_DELIVERIES"] == "Consistent Late Deliveries"

        response = await client.delete(
            "/api/delivery/suspend", params={"deliveryPersonId": "dp-1"}
        )

        assert response.status_code == 200
        assert store.raw(Collections.DELIVERY_PERSONS, "dp-1")["isSuspended"] is False
        log = list(store.collections[Collections.ADMIN_LOGS].values())[0]
        assert log["action"] == "DELIVERY_PARTNER_REINSTATED"
        assert log["previousReason"] == "LATE_DELIVERIES"

        again = await client.delete(
            "/api/delivery/suspend", params={"deliveryPersonId": "dp-1"}
        )
        assert again.status_code == 400
        assert again.json()["error"] == "Delivery partner is not suspended"
