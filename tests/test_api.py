# tests/test_api.py
"""API tests — routers, schemas and error mapping over a private store."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import random
import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from app.main import app
from app.models.lot import Lot
from app.services.lot_catalog import DEFAULT_LOTS
from app.services.payment_service import settle_intent
from app.services.spot_registry import seed_spots
from app.store import ParkingStore, get_store


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    store = ParkingStore(DEFAULT_LOTS, clock=clock)
    seed_spots(store, rng=random.Random(1))
    return store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestLots:
    def test_list_lots(self, client):
        resp = client.get("/api/lots")
        assert resp.status_code == 200
        lots = resp.json()
        assert [l["id"] for l in lots] == [1, 2, 3]
        for lot in lots:
            assert lot["availableSpots"] + lot["occupiedSpots"] == lot["totalSpots"]
        assert lots[0]["pricePerHour"] == 50

    def test_list_spots(self, client):
        spots = client.get("/api/lots/2/spots").json()
        assert len(spots) == 80
        assert {"id", "lotId", "spotNumber", "isOccupied", "battery", "signal", "tempC",
                "distanceCm", "sensorHealthy", "lastSeen"} <= set(spots[0])

    def test_metrics(self, client):
        metrics = client.get("/api/lots/3/metrics").json()
        assert metrics["total"] == 70
        assert set(metrics) == {"total", "occupied", "unhealthy", "avgBattery", "avgSignal", "avgTemp"}

    def test_metrics_unknown_lot(self, client):
        resp = client.get("/api/lots/9/metrics")
        assert resp.status_code == 404
        assert resp.json()["code"] == "NotFound"


class TestUpiFlow:
    def test_intent_then_reserve_then_release(self, client, store, clock):
        resp = client.post("/api/pay/upi-intent",
                           json={"lotId": 2, "vehicleNumber": "MP07-AB-1234", "reservedHours": 2})
        assert resp.status_code == 201
        intent = resp.json()
        assert intent["amount"] == 80
        assert intent["upiUri"].startswith("upi://pay?")

        status = client.get(f"/api/pay/intent/{intent['intentId']}").json()
        assert status["status"] == "pending"

        body = {"lotId": 2, "vehicleNumber": "MP07-AB-1234", "reservedHours": 2,
                "paymentMethod": "upi", "intentId": intent["intentId"]}
        early = client.post("/api/reserve", json=body)
        assert early.status_code == 400
        assert early.json()["code"] == "InvalidPayment"

        settle_intent(store, intent["intentId"])
        assert client.get(f"/api/pay/intent/{intent['intentId']}").json()["status"] == "paid"

        resp = client.post("/api/reserve", json=body)
        assert resp.status_code == 200
        reservation = resp.json()["reservation"]
        assert reservation["prepaidAmount"] == 80
        assert reservation["status"] == "active"
        assert reservation["payment"]["intentId"] == intent["intentId"]

        again = client.post("/api/reserve", json=body)
        assert again.json()["code"] == "InvalidPayment"

        active = client.get("/api/reservations").json()
        assert active[0]["lotName"] == "DD Mall Parking"
        assert active[0]["pricePerHour"] == 40

        clock.advance(minutes=150)
        done = client.post("/api/release", json={"reservationId": reservation["id"]})
        assert done.status_code == 200
        settled = done.json()["reservation"]
        assert settled["status"] == "completed"
        assert settled["checkOutTime"] is not None
        assert settled["fee"] == 120          # 3 started hours at ₹40
        assert settled["extraDue"] == 40
        assert settled["refundDue"] == 0

        history = client.get("/api/history").json()
        assert [r["id"] for r in history] == [reservation["id"]]
        assert client.get("/api/reservations").json() == []

        again = client.post("/api/release", json={"reservationId": reservation["id"]})
        assert again.status_code == 404

    def test_bad_intent_request(self, client):
        resp = client.post("/api/pay/upi-intent", json={"lotId": 7, "vehicleNumber": "X", "reservedHours": 1})
        assert resp.status_code == 400
        assert resp.json()["code"] == "InvalidInput"

    def test_unknown_intent_status(self, client):
        assert client.get("/api/pay/intent/77").status_code == 404


class TestReserveErrors:
    def test_missing_fields(self, client):
        resp = client.post("/api/reserve", json={"reservedHours": 1, "paymentMethod": "card"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "InvalidInput"

    def test_malformed_body(self, client):
        resp = client.post("/api/reserve", json={"lotId": "one", "vehicleNumber": "X", "reservedHours": 1})
        assert resp.status_code == 400
        assert resp.json()["code"] == "InvalidInput"

    def test_unknown_lot(self, client):
        resp = client.post("/api/reserve", json={"lotId": 42, "vehicleNumber": "X",
                                                 "reservedHours": 1, "paymentMethod": "card"})
        assert resp.status_code == 404
        assert resp.json()["code"] == "LotNotFound"

    def test_full_lot(self):
        store = ParkingStore([Lot(id=1, name="Tiny", total_spots=1, price_per_hour=50)])
        seed_spots(store, rng=random.Random(1))
        store.spots["1-1"].is_occupied = True
        app.dependency_overrides[get_store] = lambda: store
        try:
            resp = TestClient(app).post("/api/reserve", json={"lotId": 1, "vehicleNumber": "X",
                                                              "reservedHours": 1, "paymentMethod": "cash"})
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 404
        assert resp.json()["code"] == "NoAvailability"


class TestStatus:
    def test_fleet_status(self, client, store):
        status = client.get("/api/status").json()
        assert status["totalSpots"] == 210
        assert status["occupiedSpots"] == sum(1 for s in store.spots.values() if s.is_occupied)
        assert status["unhealthySensors"] == 0
        assert 70 <= status["avgBattery"] <= 100
        assert "lastUpdateAt" in status

    def test_health(self, client):
        health = client.get("/api/health").json()
        assert health["backend"] == "ok"
        assert health["store"]["spots"] == 210
