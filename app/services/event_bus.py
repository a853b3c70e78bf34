# app/services/event_bus.py
"""
Append-only telemetry event log with monotonically increasing ids.

Capacity-bounded: once more than `capacity` events have been published the
oldest are dropped. A subscriber that falls further behind than that loses
the dropped range; ids are still never reused and never decrease.
"""

import threading
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Optional

from app.config import settings
from app.models.event import Event
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventBus:
    def __init__(self, capacity: int = settings.EVENT_LOG_CAPACITY,
                 clock: Optional[Callable[[], datetime]] = None):
        if capacity < 1:
            raise ValueError("event log capacity must be at least 1")
        self._events: deque[Event] = deque(maxlen=capacity)
        self._next_id = 1
        self._lock = threading.Lock()
        self._clock = clock or _utcnow
        self.capacity = capacity

    def publish(self, event_type: str, lot_id: int, spot_number: int, **fields) -> Event:
        """Assign the next id and append. Id assignment and append are one step."""
        with self._lock:
            event = Event(id=self._next_id, type=event_type, ts=self._clock(),
                          lot_id=lot_id, spot_number=spot_number, **fields)
            self._next_id += 1
            self._events.append(event)
        logger.debug(f"[EVENT] #{event.id} {event_type} lot={lot_id} spot={spot_number} {fields}")
        return event

    def since(self, last_id: int, limit: Optional[int] = None) -> list[Event]:
        """
        Events with id > last_id in id order.
        With a limit only the most recent `limit` of them are returned.
        """
        with self._lock:
            newer = [e for e in self._events if e.id > last_id]
        if limit is not None and len(newer) > limit:
            newer = newer[-limit:]
        return newer

    @property
    def last_id(self) -> int:
        """Id of the most recently published event, 0 before the first one."""
        with self._lock:
            return self._next_id - 1

    def __len__(self):
        with self._lock:
            return len(self._events)
