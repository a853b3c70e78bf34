# app/services/reservation_service.py
"""
Reservation Engine — check-in against an advance payment, checkout with final fee.

reserve():  validate → find free spot → verify payment → claim spot + create
            reservation. Runs entirely under the store lock, and nothing is
            written until every check has passed, so a failed call leaves
            spots, intents and events exactly as they were.
release():  active → completed. Bills every started hour at the lot rate and
            settles the difference against the prepaid amount.
"""

import math
from dataclasses import asdict
from datetime import datetime

from app.errors import InvalidInput, LotNotFound, NoAvailability, NotFound
from app.models.reservation import ACTIVE, COMPLETED, Payment, Reservation
from app.services.payment_service import consume_intent, parse_hours, verify_paid_intent
from app.services.spot_registry import find_free_spot, set_occupied
from app.store import ParkingStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600


def billable_hours(check_in: datetime, check_out: datetime) -> int:
    """Elapsed time rounded up to whole hours (90 min → 2)."""
    elapsed = (check_out - check_in).total_seconds()
    return max(0, math.ceil(elapsed / SECONDS_PER_HOUR))


def settle_balance(prepaid: int, final_fee: int) -> tuple[int, int]:
    """(extra_due, refund_due) — at most one of them is non-zero."""
    return max(0, final_fee - prepaid), max(0, prepaid - final_fee)


def reserve(store: ParkingStore, lot_id, vehicle_number: str, reserved_hours,
            payment_method: str = "upi", intent_id=None) -> Reservation:
    if not lot_id or not vehicle_number:
        raise InvalidInput("Lot ID and vehicle number required")
    hours = parse_hours(reserved_hours)
    method = payment_method or "upi"

    with store.lock:
        lot = store.lots.get(lot_id)
        if lot is None:
            raise LotNotFound("Lot not found")

        spot = find_free_spot(store, lot.id)
        if spot is None:
            raise NoAvailability("No available spots in this lot")

        now = store.clock()
        intent = None
        if method == "upi":
            intent = verify_paid_intent(store, intent_id, lot.id)
            # Price lock: the amount paid up front, not re-derived from hours
            prepaid = intent.amount
            payment = Payment(method="upi", amount=intent.amount, paid_at=now, intent_id=intent.id)
        else:
            # Non-UPI methods settle immediately
            prepaid = hours * lot.price_per_hour
            payment = Payment(method=method, amount=prepaid, paid_at=now)

        reservation = Reservation(
            id=store.next_reservation_id(),
            spot_id=spot.id,
            lot_id=lot.id,
            spot_number=spot.spot_number,
            vehicle_number=vehicle_number,
            check_in_time=now,
            prepaid_amount=prepaid,
            reserved_hours=hours,
            fee=prepaid,
            payment=payment,
        )
        if intent is not None:
            consume_intent(store, intent)
        set_occupied(store, spot.id, True, reservation_id=reservation.id)
        store.reservations[reservation.id] = reservation

    logger.info(f"[RESERVE] #{reservation.id} {vehicle_number} → {lot.name} spot {spot.spot_number} "
                f"({hours}h, ₹{prepaid} via {method})")
    return reservation


def release(store: ParkingStore, reservation_id) -> Reservation:
    with store.lock:
        reservation = store.reservations.get(reservation_id)
        if reservation is None or reservation.status != ACTIVE:
            raise NotFound("Active reservation not found")

        lot = store.lots[reservation.lot_id]
        now = store.clock()
        hours = billable_hours(reservation.check_in_time, now)
        final_fee = hours * lot.price_per_hour
        extra_due, refund_due = settle_balance(reservation.prepaid_amount, final_fee)

        reservation.check_out_time = now
        reservation.status = COMPLETED
        reservation.fee = final_fee
        reservation.extra_due = extra_due
        reservation.refund_due = refund_due
        set_occupied(store, reservation.spot_id, False)

    logger.info(f"[RELEASE] #{reservation.id} {reservation.vehicle_number}: {hours}h = ₹{final_fee} "
                f"(extra ₹{extra_due}, refund ₹{refund_due})")
    return reservation


def _with_lot(store: ParkingStore, reservation: Reservation, include_rate: bool) -> dict:
    lot = store.lots[reservation.lot_id]
    row = {**asdict(reservation), "lot_name": lot.name}
    if include_rate:
        row["price_per_hour"] = lot.price_per_hour
    return row


def list_active(store: ParkingStore) -> list[dict]:
    """Active reservations joined with lot name and hourly rate."""
    with store.lock:
        return [_with_lot(store, r, include_rate=True)
                for r in store.reservations.values() if r.status == ACTIVE]


def list_history(store: ParkingStore) -> list[dict]:
    """Completed reservations joined with lot name."""
    with store.lock:
        return [_with_lot(store, r, include_rate=False)
                for r in store.reservations.values() if r.status == COMPLETED]
