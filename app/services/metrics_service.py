# app/services/metrics_service.py
"""
Fleet and per-lot aggregates over the spot telemetry.
Computed fresh on every call; averages rounded to one decimal.
"""

from app.errors import NotFound
from app.models.spot import Spot
from app.store import ParkingStore


def _avg(spots: list[Spot], attr: str) -> float:
    if not spots:
        return 0
    return round(sum(getattr(s, attr) for s in spots) / len(spots), 1)


def _aggregate(spots: list[Spot]) -> dict:
    return {
        "total": len(spots),
        "occupied": sum(1 for s in spots if s.is_occupied),
        "unhealthy": sum(1 for s in spots if not s.sensor_healthy),
        "avg_battery": _avg(spots, "battery"),
        "avg_signal": _avg(spots, "signal"),
        "avg_temp": _avg(spots, "temp_c"),
    }


def fleet_status(store: ParkingStore) -> dict:
    with store.lock:
        spots = list(store.spots.values())
        return {
            "last_update_at": store.last_update_at,
            "total_spots": len(spots),
            "occupied_spots": sum(1 for s in spots if s.is_occupied),
            "avg_battery": _avg(spots, "battery"),
            "unhealthy_sensors": sum(1 for s in spots if not s.sensor_healthy),
        }


def lot_metrics(store: ParkingStore, lot_id: int) -> dict:
    with store.lock:
        spots = [s for s in store.spots.values() if s.lot_id == lot_id]
        if not spots:
            raise NotFound("Lot not found")
        return _aggregate(spots)


def lot_snapshot(store: ParkingStore) -> list[dict]:
    """One aggregate row per lot, in catalog order — the stream's live summary."""
    with store.lock:
        rows = []
        for lot in store.lots.values():
            spots = [s for s in store.spots.values() if s.lot_id == lot.id]
            rows.append({"id": lot.id, "name": lot.name, **_aggregate(spots)})
        return rows
