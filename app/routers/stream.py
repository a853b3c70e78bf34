# app/routers/stream.py
"""
GET /stream — Server-Sent Events feed of lot snapshots and telemetry events.
Resume with the standard Last-Event-ID header (or ?last_event_id= for clients
that cannot set headers).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import StreamingResponse

from app.services.stream_publisher import parse_cursor, stream_messages
from app.store import ParkingStore, get_store

router = APIRouter()


@router.get("/stream", summary="Live telemetry stream (SSE)")
async def stream(
    request: Request,
    last_event_id: Optional[str] = None,
    last_event_id_header: Optional[str] = Header(None, alias="Last-Event-ID"),
    store: ParkingStore = Depends(get_store),
):
    cursor = parse_cursor(last_event_id_header if last_event_id_header is not None else last_event_id)
    return StreamingResponse(
        stream_messages(store, cursor, is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )
