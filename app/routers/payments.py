# app/routers/payments.py
"""
UPI advance payment.
POST /pay/upi-intent     — create an intent; it settles by itself after a few seconds.
GET  /pay/intent/{id}    — poll its status.
"""

from fastapi import APIRouter, Depends, status

from app.schemas.payment import IntentStatusOut, UpiIntentCreate, UpiIntentOut
from app.services.payment_service import create_intent, get_intent, schedule_auto_settle
from app.store import ParkingStore, get_store

router = APIRouter()


@router.post("/pay/upi-intent", response_model=UpiIntentOut, status_code=status.HTTP_201_CREATED,
             summary="Create a UPI payment intent")
async def create_upi_intent(body: UpiIntentCreate, store: ParkingStore = Depends(get_store)):
    # async so the settle timer lands on the server's event loop
    intent = create_intent(store, body.lot_id, body.vehicle_number, body.reserved_hours)
    schedule_auto_settle(store, intent.id)
    return UpiIntentOut(intent_id=intent.id, upi_uri=intent.upi_uri,
                        amount=intent.amount, expires_at=intent.expires_at)


@router.get("/pay/intent/{intent_id}", response_model=IntentStatusOut, summary="Payment intent status")
def get_intent_status(intent_id: int, store: ParkingStore = Depends(get_store)):
    return get_intent(store, intent_id)
