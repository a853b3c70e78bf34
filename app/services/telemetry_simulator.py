# app/services/telemetry_simulator.py
"""
Telemetry simulator — stands in for the IoT sensors under every spot.

Every tick a random ~8% of the fleet reports: occupancy may flip, battery
drains, signal and temperature jitter, distance follows occupancy, and the
sensor may fail or recover. Events go to the bus only on real transitions:
  occupancy   → the flip actually changed the value
  battery_low → battery crossed below 15%; silent until it recovers above 25%
  sensor      → healthy flag changed

A failure on one spot is logged and skipped; the loop itself never dies on a bad tick.
"""

import asyncio
import random
from typing import Optional

from app.config import settings
from app.models.event import BATTERY_LOW, OCCUPANCY, SENSOR
from app.services.spot_registry import (
    TelemetryDelta, apply_telemetry_delta, clamp_reading, distance_for,
)
from app.store import ParkingStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

MAX_BATTERY_DRAIN = 0.5     # % per report
SIGNAL_JITTER = 5.0
TEMP_JITTER = 1.0


class TelemetrySimulator:
    def __init__(
        self,
        store: ParkingStore,
        rng: Optional[random.Random] = None,
        tick_seconds: float = settings.TELEMETRY_TICK_SECONDS,
        sample_ratio: float = settings.TELEMETRY_SAMPLE_RATIO,
        flip_probability: float = settings.OCCUPANCY_FLIP_PROBABILITY,
        failure_probability: float = settings.SENSOR_FAILURE_PROBABILITY,
        recovery_probability: float = settings.SENSOR_RECOVERY_PROBABILITY,
        battery_low_threshold: float = settings.BATTERY_LOW_THRESHOLD,
        battery_rearm_threshold: float = settings.BATTERY_REARM_THRESHOLD,
    ):
        self.store = store
        self.rng = rng or random.Random()
        self.tick_seconds = tick_seconds
        self.sample_ratio = sample_ratio
        self.flip_probability = flip_probability
        self.failure_probability = failure_probability
        self.recovery_probability = recovery_probability
        self.battery_low_threshold = battery_low_threshold
        self.battery_rearm_threshold = battery_rearm_threshold
        self._task: Optional[asyncio.Task] = None

    # ── One tick ─────────────────────────────────────────────────────────
    def tick(self) -> int:
        """Runs one simulation round. Returns the number of events emitted."""
        store = self.store
        emitted = 0
        with store.lock:
            spot_ids = list(store.spots)
            if spot_ids:
                sample_size = max(1, int(len(spot_ids) * self.sample_ratio))
                for _ in range(sample_size):
                    spot_id = self.rng.choice(spot_ids)
                    try:
                        emitted += self._report(spot_id)
                    except Exception as e:
                        logger.error(f"Telemetry update failed for spot {spot_id}: {e}", exc_info=True)
            store.last_update_at = store.clock()
        return emitted

    def _report(self, spot_id: str) -> int:
        store = self.store
        rng = self.rng
        spot = store.spots[spot_id]
        delta = TelemetryDelta(last_seen=store.clock())

        occupied = spot.is_occupied
        if spot.reservation_id is None and rng.random() < self.flip_probability:
            occupied = not occupied
            delta.is_occupied = occupied

        battery = clamp_reading(spot.battery - rng.random() * MAX_BATTERY_DRAIN)
        delta.battery = battery
        delta.signal = spot.signal + rng.uniform(-SIGNAL_JITTER, SIGNAL_JITTER)
        delta.distance_cm = distance_for(occupied, rng)
        delta.temp_c = round(spot.temp_c + rng.uniform(-TEMP_JITTER, TEMP_JITTER), 1)

        # Debounced: fire once on the way down, re-arm only after a real recovery
        battery_low = battery < self.battery_low_threshold and not spot.low_battery_warned
        if battery_low:
            delta.low_battery_warned = True
        elif battery > self.battery_rearm_threshold and spot.low_battery_warned:
            delta.low_battery_warned = False

        healthy = spot.sensor_healthy
        if rng.random() < self.failure_probability:
            healthy = False
        elif not healthy and rng.random() < self.recovery_probability:
            healthy = True
        delta.sensor_healthy = healthy

        before = apply_telemetry_delta(store, spot_id, delta)
        after = store.spots[spot_id]
        emitted = 0

        if after.is_occupied != before.is_occupied:
            store.events.publish(OCCUPANCY, after.lot_id, after.spot_number,
                                 is_occupied=after.is_occupied)
            emitted += 1

        if battery_low:
            store.events.publish(BATTERY_LOW, after.lot_id, after.spot_number,
                                 battery=round(after.battery))
            logger.warning(f"[BATTERY] Spot {spot_id} low battery: {after.battery:.1f}%")
            emitted += 1

        if after.sensor_healthy != before.sensor_healthy:
            store.events.publish(SENSOR, after.lot_id, after.spot_number,
                                 healthy=after.sensor_healthy)
            if after.sensor_healthy:
                logger.info(f"[SENSOR] Spot {spot_id} recovered")
            else:
                logger.warning(f"[SENSOR] Spot {spot_id} sensor fault")
            emitted += 1

        return emitted

    # ── Background loop ──────────────────────────────────────────────────
    async def run(self):
        """Ticks forever. Each tick runs to completion; errors never end the loop."""
        logger.info(f"🛰  Telemetry simulator running every {self.tick_seconds}s "
                    f"over {len(self.store.spots)} spots")
        while True:
            await asyncio.sleep(self.tick_seconds)
            try:
                emitted = self.tick()
                if emitted:
                    logger.debug(f"Telemetry tick emitted {emitted} events")
            except Exception as e:
                logger.error(f"Telemetry tick failed: {e}", exc_info=True)

    def start(self) -> asyncio.Task:
        """Schedules the loop on the running event loop. Idempotent."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="telemetry-simulator")
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("🛰  Telemetry simulator stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
