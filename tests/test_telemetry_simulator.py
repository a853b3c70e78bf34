# tests/test_telemetry_simulator.py
"""Unit tests for the telemetry simulator tick."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import random
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from app.models.lot import Lot
from app.services.lot_catalog import DEFAULT_LOTS, list_lots
from app.services.spot_registry import seed_spots, set_occupied
from app.services.telemetry_simulator import TelemetrySimulator
from app.store import ParkingStore


class FixedRandom(random.Random):
    """Every draw returns the same value — 0.99 means no flips, no faults, max drain."""

    def __init__(self, value=0.99):
        self.value = value
        super().__init__(0)

    def random(self):
        return self.value


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def single_spot_store(clock=None):
    store = ParkingStore([Lot(id=1, name="Solo", total_spots=1, price_per_hour=50)], clock=clock)
    seed_spots(store, rng=random.Random(1))
    spot = store.spots["1-1"]
    spot.is_occupied = False
    spot.sensor_healthy = True
    return store, spot


def events_of(store, event_type):
    return [e for e in store.events.since(0) if e.type == event_type]


class TestBatteryLow:
    def test_fires_once_while_below_threshold(self):
        store, spot = single_spot_store()
        spot.battery = 15.3
        sim = TelemetrySimulator(store, rng=FixedRandom())

        sim.tick()
        sim.tick()
        sim.tick()

        alerts = events_of(store, "battery_low")
        assert len(alerts) == 1
        assert alerts[0].battery == 15  # round(14.805)
        assert spot.battery < 15
        assert spot.low_battery_warned

    def test_rearms_only_above_25(self):
        store, spot = single_spot_store()
        spot.battery = 15.3
        sim = TelemetrySimulator(store, rng=FixedRandom())
        sim.tick()

        spot.battery = 20.0      # partial recovery, still armed-off
        sim.tick()
        assert spot.low_battery_warned
        spot.battery = 15.2
        sim.tick()
        assert len(events_of(store, "battery_low")) == 1

        spot.battery = 26.0      # replaced battery
        sim.tick()
        assert not spot.low_battery_warned
        spot.battery = 15.2
        sim.tick()
        assert len(events_of(store, "battery_low")) == 2

    def test_battery_never_below_floor(self):
        store, spot = single_spot_store()
        spot.battery = 5.1
        sim = TelemetrySimulator(store, rng=FixedRandom())
        for _ in range(5):
            sim.tick()
        assert spot.battery == 5


class TestTransitions:
    def test_occupancy_event_only_on_change(self):
        store, spot = single_spot_store()
        sim = TelemetrySimulator(store, rng=FixedRandom(), flip_probability=1.0)
        sim.tick()
        sim.tick()
        flips = events_of(store, "occupancy")
        assert [e.is_occupied for e in flips] == [True, False]
        assert not spot.is_occupied

    def test_no_flip_no_event(self):
        store, _ = single_spot_store()
        TelemetrySimulator(store, rng=FixedRandom(), flip_probability=0.0).tick()
        assert events_of(store, "occupancy") == []

    def test_reserved_spot_never_flipped(self):
        store, spot = single_spot_store()
        set_occupied(store, spot.id, True, reservation_id=1)
        sim = TelemetrySimulator(store, rng=FixedRandom(), flip_probability=1.0)
        for _ in range(3):
            sim.tick()
        assert spot.is_occupied
        assert events_of(store, "occupancy") == []

    def test_distance_follows_occupancy(self):
        store, spot = single_spot_store()
        sim = TelemetrySimulator(store, rng=FixedRandom(), flip_probability=1.0)
        sim.tick()
        assert spot.is_occupied and 20 <= spot.distance_cm <= 100
        sim.tick()
        assert not spot.is_occupied and 150 <= spot.distance_cm <= 300

    def test_sensor_failure_and_recovery_emit_once_each(self):
        store, spot = single_spot_store()
        failing = TelemetrySimulator(store, rng=FixedRandom(), failure_probability=1.0)
        failing.tick()
        failing.tick()
        assert not spot.sensor_healthy

        recovering = TelemetrySimulator(store, rng=FixedRandom(), failure_probability=0.0,
                                        recovery_probability=1.0)
        recovering.tick()
        recovering.tick()
        assert spot.sensor_healthy
        assert [e.healthy for e in events_of(store, "sensor")] == [False, True]

    def test_healthy_sensor_quiet(self):
        store, _ = single_spot_store()
        TelemetrySimulator(store, rng=FixedRandom(), recovery_probability=1.0).tick()
        assert events_of(store, "sensor") == []


class TestTick:
    def test_last_update_moves_every_tick(self):
        clock = FakeClock()
        store, spot = single_spot_store(clock)
        sim = TelemetrySimulator(store, rng=FixedRandom())
        clock.advance(seconds=5)
        assert sim.tick() == 0
        assert store.last_update_at == clock.now
        assert spot.last_seen == clock.now

    def test_samples_about_eight_percent(self):
        store = ParkingStore(DEFAULT_LOTS)
        seed_spots(store, rng=random.Random(3))
        sim = TelemetrySimulator(store, rng=random.Random(3))
        with patch.object(sim, "_report", return_value=0) as report:
            sim.tick()
        assert report.call_count == int(210 * 0.08)

    def test_spot_failure_does_not_stop_tick(self):
        store = ParkingStore([Lot(id=1, name="Pair", total_spots=2, price_per_hour=10)])
        seed_spots(store, rng=random.Random(1))
        sim = TelemetrySimulator(store, rng=random.Random(1), sample_ratio=1.0)
        with patch.object(sim, "_report", side_effect=[RuntimeError("bad sample"), 1]) as report:
            assert sim.tick() == 1
        assert report.call_count == 2

    def test_counts_balance_after_many_ticks(self):
        store = ParkingStore(DEFAULT_LOTS)
        seed_spots(store, rng=random.Random(11))
        sim = TelemetrySimulator(store, rng=random.Random(11))
        for _ in range(50):
            sim.tick()
        for lot in list_lots(store):
            assert lot["available_spots"] + lot["occupied_spots"] == lot["total_spots"]

    def test_event_ids_increase(self):
        store = ParkingStore(DEFAULT_LOTS)
        seed_spots(store, rng=random.Random(5))
        sim = TelemetrySimulator(store, rng=random.Random(5))
        for _ in range(30):
            sim.tick()
        ids = [e.id for e in store.events.since(0)]
        assert ids == sorted(ids) and len(ids) == len(set(ids))


class TestLoop:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        store, spot = single_spot_store()
        starting_battery = spot.battery
        sim = TelemetrySimulator(store, rng=FixedRandom(), tick_seconds=0.01)
        sim.start()
        assert sim.running
        await asyncio.sleep(0.05)
        await sim.stop()
        assert not sim.running
        assert spot.battery < starting_battery

    @pytest.mark.asyncio
    async def test_loop_survives_failing_tick(self):
        store, _ = single_spot_store()
        sim = TelemetrySimulator(store, tick_seconds=0.01)
        with patch.object(sim, "tick", side_effect=RuntimeError("boom")) as tick:
            sim.start()
            await asyncio.sleep(0.05)
            assert sim.running
            await sim.stop()
        assert tick.call_count >= 2
