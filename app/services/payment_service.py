# app/services/payment_service.py
"""
Payment Intent Ledger — advance payments for the UPI flow.

There is no real gateway: an intent is settled by a timer a few seconds
after creation (schedule_auto_settle), standing in for the gateway callback.
settle_intent is idempotent and only ever moves pending → paid.

Lifecycle:
  create_intent   → pending, amount fixed at reserved_hours × lot rate
  settle_intent   → paid (if still pending)
  verify_paid_intent / consume_intent → used by exactly one reservation
  expires_at passed while pending or paid-but-unused → expired
"""

import asyncio
from datetime import timedelta
from typing import Optional
from urllib.parse import quote

from app.config import settings
from app.errors import InvalidInput, InvalidPayment, NotFound
from app.models.payment_intent import EXPIRED, PAID, PENDING, PaymentIntent
from app.store import ParkingStore
from app.utils.logger import get_logger

logger = get_logger(__name__)


def parse_hours(reserved_hours) -> int:
    """Whole hours ≥ 1. Accepts ints and numeric strings, rejects everything else."""
    try:
        hours = int(reserved_hours)
    except (TypeError, ValueError):
        raise InvalidInput("Reserved hours must be >= 1")
    if hours < 1:
        raise InvalidInput("Reserved hours must be >= 1")
    return hours


def build_upi_uri(amount: int, note: str) -> str:
    return (
        f"upi://pay?pa={settings.UPI_PAYEE_VPA}"
        f"&pn={quote(settings.UPI_PAYEE_NAME)}"
        f"&am={quote(str(amount))}&cu=INR"
        f"&tn={quote(note or 'Parking advance')}"
    )


def create_intent(store: ParkingStore, lot_id, vehicle_number: str, reserved_hours) -> PaymentIntent:
    lot = store.lots.get(lot_id)
    if lot is None:
        raise InvalidInput("Invalid lot or hours")
    try:
        hours = parse_hours(reserved_hours)
    except InvalidInput:
        raise InvalidInput("Invalid lot or hours")

    amount = hours * lot.price_per_hour
    now = store.clock()
    with store.lock:
        intent = PaymentIntent(
            id=store.next_intent_id(),
            lot_id=lot.id,
            vehicle_number=vehicle_number,
            reserved_hours=hours,
            amount=amount,
            upi_uri=build_upi_uri(amount, f"{lot.name} • {vehicle_number}"),
            created_at=now,
            expires_at=now + timedelta(minutes=settings.UPI_INTENT_TTL_MINUTES),
        )
        store.intents[intent.id] = intent
    logger.info(f"[PAY] Intent {intent.id} created: ₹{amount} for {vehicle_number} at {lot.name}")
    return intent


def _refresh_expiry(store: ParkingStore, intent: PaymentIntent):
    if intent.status == EXPIRED or intent.consumed:
        return
    if store.clock() >= intent.expires_at:
        intent.status = EXPIRED
        logger.info(f"[PAY] Intent {intent.id} expired")


def get_intent(store: ParkingStore, intent_id) -> PaymentIntent:
    with store.lock:
        intent = store.intents.get(intent_id)
        if intent is None:
            raise NotFound("Not found")
        _refresh_expiry(store, intent)
        return intent


def settle_intent(store: ParkingStore, intent_id: int) -> bool:
    """pending → paid. Returns False (and changes nothing) for any other status."""
    with store.lock:
        store.settle_handles.pop(intent_id, None)
        intent = store.intents.get(intent_id)
        if intent is None:
            return False
        _refresh_expiry(store, intent)
        if intent.status != PENDING:
            return False
        intent.status = PAID
        intent.paid_at = store.clock()
    logger.info(f"[PAY] Intent {intent_id} settled (₹{intent.amount})")
    return True


def schedule_auto_settle(store: ParkingStore, intent_id: int,
                         delay: Optional[float] = None) -> asyncio.TimerHandle:
    """Demo gateway: settle the intent after `delay` seconds on the running loop."""
    delay = settings.UPI_AUTO_SETTLE_SECONDS if delay is None else delay
    handle = asyncio.get_running_loop().call_later(delay, settle_intent, store, intent_id)
    with store.lock:
        store.settle_handles[intent_id] = handle
    return handle


def cancel_pending_settlements(store: ParkingStore) -> int:
    with store.lock:
        handles = list(store.settle_handles.values())
        store.settle_handles.clear()
    for handle in handles:
        handle.cancel()
    return len(handles)


def verify_paid_intent(store: ParkingStore, intent_id, lot_id: int) -> PaymentIntent:
    """
    The intent a UPI reservation may be created against. Read-only; the
    caller consumes it once the reservation is certain.
    """
    try:
        intent_id = int(intent_id)
    except (TypeError, ValueError):
        raise InvalidPayment("Invalid payment intent")
    with store.lock:
        intent = store.intents.get(intent_id)
        if intent is None or intent.method != "upi":
            raise InvalidPayment("Invalid payment intent")
        if intent.consumed:
            raise InvalidPayment("Payment intent already used")
        _refresh_expiry(store, intent)
        if intent.status == EXPIRED:
            raise InvalidPayment("Payment intent expired")
        if intent.status != PAID:
            raise InvalidPayment("Payment not completed yet")
        if intent.lot_id != lot_id:
            raise InvalidPayment("Payment intent is for a different lot")
        return intent


def consume_intent(store: ParkingStore, intent: PaymentIntent):
    with store.lock:
        intent.consumed = True
