# app/services/spot_registry.py
"""
Spot Registry — the only code that writes Spot records.

Two field groups, two writers:
  - occupancy  (is_occupied, reservation_id): set_occupied, used by the
    reservation engine; the simulator may flip only spots no reservation holds.
  - telemetry  (battery, signal, temp, distance, health, last_seen): apply_telemetry_delta.
All writes happen under store.lock.
"""

import random
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Optional

from app.errors import NotFound
from app.models.spot import Spot
from app.store import ParkingStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

MIN_READING = 5.0
MAX_READING = 100.0

# Ultrasonic range bands (cm), disjoint
OCCUPIED_RANGE = (20.0, 100.0)
VACANT_RANGE = (150.0, 300.0)


@dataclass
class TelemetryDelta:
    """New values for one spot. None means leave the field alone."""
    is_occupied: Optional[bool] = None
    battery: Optional[float] = None
    signal: Optional[float] = None
    temp_c: Optional[float] = None
    distance_cm: Optional[float] = None
    sensor_healthy: Optional[bool] = None
    low_battery_warned: Optional[bool] = None
    last_seen: Optional[datetime] = None


def clamp_reading(value: float) -> float:
    return max(MIN_READING, min(MAX_READING, value))


def distance_for(occupied: bool, rng: random.Random) -> float:
    low, high = OCCUPIED_RANGE if occupied else VACANT_RANGE
    return round(low + rng.random() * (high - low), 1)


def seed_spots(store: ParkingStore, rng: Optional[random.Random] = None):
    """One spot per (lot, spot number) with randomised starting telemetry."""
    rng = rng or random.Random()
    now = store.clock()
    with store.lock:
        store.spots.clear()
        for lot in store.lots.values():
            for number in range(1, lot.total_spots + 1):
                occupied = rng.random() > 0.7
                spot = Spot(
                    id=f"{lot.id}-{number}",
                    lot_id=lot.id,
                    spot_number=number,
                    is_occupied=occupied,
                    battery=float(int(70 + rng.random() * 30)),
                    signal=float(int(60 + rng.random() * 40)),
                    temp_c=round(28 + rng.random() * 6, 1),
                    distance_cm=distance_for(occupied, rng),
                    last_seen=now,
                )
                store.spots[spot.id] = spot


def get_spot(store: ParkingStore, spot_id: str) -> Spot:
    spot = store.spots.get(spot_id)
    if spot is None:
        raise NotFound(f"Spot {spot_id} not found")
    return spot


def list_by_lot(store: ParkingStore, lot_id: int) -> list[Spot]:
    """Copies of the lot's spots in spot-number order, safe to read outside the lock."""
    with store.lock:
        return [replace(s) for s in store.spots.values() if s.lot_id == lot_id]


def find_free_spot(store: ParkingStore, lot_id: int) -> Optional[Spot]:
    """First vacant spot by scan order, or None when the lot is full."""
    with store.lock:
        return next((s for s in store.spots.values()
                     if s.lot_id == lot_id and not s.is_occupied), None)


def set_occupied(store: ParkingStore, spot_id: str, occupied: bool,
                 reservation_id: Optional[int] = None) -> Spot:
    """Occupancy write for the reservation engine. Freeing a spot also detaches its reservation."""
    with store.lock:
        spot = get_spot(store, spot_id)
        spot.is_occupied = occupied
        spot.reservation_id = reservation_id if occupied else None
        return spot


def apply_telemetry_delta(store: ParkingStore, spot_id: str, delta: TelemetryDelta) -> Spot:
    """
    Applies a simulator reading and returns a copy of the spot as it was before.
    Battery and signal are clamped to [5, 100]. An occupancy flip on a spot held
    by a reservation is ignored.
    """
    with store.lock:
        spot = get_spot(store, spot_id)
        before = replace(spot)
        for f in fields(TelemetryDelta):
            value = getattr(delta, f.name)
            if value is None:
                continue
            if f.name == "is_occupied" and spot.reservation_id is not None:
                logger.debug(f"Spot {spot_id} held by reservation {spot.reservation_id} — flip ignored")
                continue
            if f.name in ("battery", "signal"):
                value = clamp_reading(value)
            setattr(spot, f.name, value)
        return before

