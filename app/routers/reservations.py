# app/routers/reservations.py
"""Check-in (reserve), checkout (release), active list and history."""

from fastapi import APIRouter, Depends

from app.schemas.reservation import (
    ActiveReservationOut, HistoryReservationOut, ReleaseRequest, ReservationResult, ReserveRequest,
)
from app.services.reservation_service import list_active, list_history, release, reserve
from app.store import ParkingStore, get_store

router = APIRouter()


@router.post("/reserve", response_model=ReservationResult, summary="Reserve a spot with advance payment")
def reserve_spot(body: ReserveRequest, store: ParkingStore = Depends(get_store)):
    """
    UPI (default) needs a paid intentId from /pay/upi-intent.
    Any other paymentMethod is treated as paid on the spot.
    """
    reservation = reserve(store, body.lot_id, body.vehicle_number, body.reserved_hours,
                          payment_method=body.payment_method, intent_id=body.intent_id)
    return {"message": "Spot paid & reserved successfully", "reservation": reservation}


@router.post("/release", response_model=ReservationResult, summary="Check out and settle the final fee")
def release_spot(body: ReleaseRequest, store: ParkingStore = Depends(get_store)):
    reservation = release(store, body.reservation_id)
    return {"message": "Spot released successfully", "reservation": reservation}


@router.get("/reservations", response_model=list[ActiveReservationOut], summary="Active reservations")
def get_active_reservations(store: ParkingStore = Depends(get_store)):
    return list_active(store)


@router.get("/history", response_model=list[HistoryReservationOut], summary="Completed reservations")
def get_history(store: ParkingStore = Depends(get_store)):
    return list_history(store)
