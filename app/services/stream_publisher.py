# app/services/stream_publisher.py
"""
Stream Publisher — live telemetry feed for dashboards (Server-Sent Events).

Each connection gets its own StreamSession holding a cursor (the id of the
last event it delivered). Every interval the session produces one message:

  event: iot   id: <last event id>   data: {lastUpdateAt, lots, events}
      when events newer than the cursor exist (at most the 50 most recent)
  event: ping  (no id)               data: {ts, lastUpdateAt, lots}
      otherwise; the cursor does not move

Resuming: the browser re-sends the last `id:` it saw as Last-Event-ID, and the
new session starts from there. Events the bus already dropped for capacity
are not replayed.

Sessions only read shared state; closing one has no other effect.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from app.config import settings
from app.schemas.event import EventOut
from app.schemas.lot import LotSnapshotOut
from app.services.metrics_service import lot_snapshot
from app.store import ParkingStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

IOT = "iot"
PING = "ping"


@dataclass
class StreamMessage:
    event: str               # iot | ping
    data: dict
    id: Optional[int] = None

    def to_sse(self) -> str:
        lines = []
        if self.id is not None:
            lines.append(f"id: {self.id}")
        lines.append(f"event: {self.event}")
        lines.append(f"data: {json.dumps(self.data, ensure_ascii=False)}")
        return "\n".join(lines) + "\n\n"


def parse_cursor(raw) -> int:
    """Last-Event-ID header value → cursor. Anything unusable means start fresh."""
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return 0


class StreamSession:
    def __init__(self, store: ParkingStore, last_event_id: int = 0,
                 batch_size: int = settings.STREAM_BATCH_SIZE):
        self.store = store
        self.last_delivered_id = last_event_id
        self.batch_size = batch_size

    def next_message(self) -> StreamMessage:
        store = self.store
        with store.lock:
            lots = [LotSnapshotOut(**row).model_dump(by_alias=True) for row in lot_snapshot(store)]
            last_update_at = store.last_update_at.isoformat()
        events = store.events.since(self.last_delivered_id, limit=self.batch_size)

        if not events:
            return StreamMessage(event=PING, data={
                "ts": store.clock().isoformat(),
                "lastUpdateAt": last_update_at,
                "lots": lots,
            })

        self.last_delivered_id = events[-1].id
        return StreamMessage(event=IOT, id=self.last_delivered_id, data={
            "lastUpdateAt": last_update_at,
            "lots": lots,
            "events": [EventOut.model_validate(e).model_dump(by_alias=True, exclude_none=True, mode="json")
                       for e in events],
        })


async def stream_messages(
    store: ParkingStore,
    last_event_id: int = 0,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    interval: float = settings.STREAM_INTERVAL_SECONDS,
):
    """
    Async generator of SSE frames, one per interval, until the client goes away.
    Cancellation (client disconnect, server shutdown) ends it cleanly.
    """
    session = StreamSession(store, last_event_id)
    logger.info(f"📡 Stream session opened (resume from #{last_event_id})")
    try:
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            yield session.next_message().to_sse()
            await asyncio.sleep(interval)
    finally:
        logger.info(f"📡 Stream session closed at #{session.last_delivered_id}")
