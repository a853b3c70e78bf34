# app/store.py
"""
In-memory state store. Replaces a database: everything is process-lifetime.

One ParkingStore owns the lots, spots, payment intents, reservations and the
event bus. `lock` is the single mutual-exclusion domain for every mutation;
services take it for the whole of each operation and never hold it across
an await.
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from app.config import settings
from app.models.lot import Lot
from app.models.payment_intent import PaymentIntent
from app.models.reservation import Reservation
from app.models.spot import Spot
from app.services.event_bus import EventBus
from app.utils.logger import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParkingStore:
    def __init__(self, lots: Iterable[Lot], clock: Optional[Callable[[], datetime]] = None,
                 event_capacity: int = settings.EVENT_LOG_CAPACITY):
        self.lock = threading.RLock()
        self.clock = clock or utcnow
        self.lots: dict[int, Lot] = {lot.id: lot for lot in lots}
        self.spots: dict[str, Spot] = {}
        self.intents: dict[int, PaymentIntent] = {}
        self.reservations: dict[int, Reservation] = {}
        self.events = EventBus(capacity=event_capacity, clock=self.clock)
        self.last_update_at = self.clock()
        # intent id → pending auto-settle timer
        self.settle_handles: dict[int, asyncio.TimerHandle] = {}
        self._next_intent_id = 1
        self._next_reservation_id = 1

    def next_intent_id(self) -> int:
        with self.lock:
            intent_id = self._next_intent_id
            self._next_intent_id += 1
            return intent_id

    def next_reservation_id(self) -> int:
        with self.lock:
            reservation_id = self._next_reservation_id
            self._next_reservation_id += 1
            return reservation_id

    def __repr__(self):
        return (f"<ParkingStore lots={len(self.lots)} spots={len(self.spots)} "
                f"reservations={len(self.reservations)} events={len(self.events)}>")


_store: Optional[ParkingStore] = None


def init_store(lots: Optional[Iterable[Lot]] = None, rng=None) -> ParkingStore:
    """
    Builds the process-wide store: seeds the lot catalog and one spot per
    (lot, spot number). Calling it again replaces the previous store.
    """
    global _store
    from app.services.lot_catalog import DEFAULT_LOTS      # noqa
    from app.services.spot_registry import seed_spots      # noqa

    store = ParkingStore(DEFAULT_LOTS if lots is None else lots)
    seed_spots(store, rng=rng)
    _store = store
    logger.info(f"Store initialised: {len(store.lots)} lots, {len(store.spots)} spots")
    return store


def get_store() -> ParkingStore:
    """FastAPI dependency — the process-wide store, created on first use."""
    if _store is None:
        return init_store()
    return _store
