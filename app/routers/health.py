# app/routers/health.py
"""
System health check endpoint.
Returns status of the backend, the in-memory store and the telemetry simulator.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from app.store import ParkingStore, get_store

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(request: Request, store: ParkingStore = Depends(get_store)):
    """
    Returns:
    - Backend status
    - Store size (lots, spots, reservations, last event id)
    - Simulator state ("degraded" when it should run but doesn't)
    """
    simulator = getattr(request.app.state, "simulator", None)
    result = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": "ok",
        "store": {
            "lots": len(store.lots),
            "spots": len(store.spots),
            "reservations": len(store.reservations),
            "lastEventId": store.events.last_id,
        },
        "simulator": "disabled",
    }

    if simulator is not None:
        if simulator.running:
            result["simulator"] = "running"
        else:
            result["simulator"] = "stopped"
            result["status"] = "degraded"

    return result
