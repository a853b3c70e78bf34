# app/models/reservation.py
"""
Reservation record binding a vehicle to a spot.
active → completed on checkout (one-way). Completed reservations form the history.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ACTIVE = "active"
COMPLETED = "completed"


@dataclass
class Payment:
    method: str              # upi | card | cash | ...
    amount: int
    paid_at: datetime
    status: str = "paid"
    intent_id: Optional[int] = None   # upi only


@dataclass
class Reservation:
    id: int
    spot_id: str
    lot_id: int
    spot_number: int
    vehicle_number: str
    check_in_time: datetime
    prepaid_amount: int
    reserved_hours: int
    fee: int                 # prepaid while active, final fee after checkout
    payment: Payment
    status: str = ACTIVE
    check_out_time: Optional[datetime] = None
    extra_due: int = 0
    refund_due: int = 0

    def __repr__(self):
        return f"<Reservation {self.id} spot={self.spot_id} vehicle={self.vehicle_number} status={self.status}>"
