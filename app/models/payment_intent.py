# app/models/payment_intent.py
"""
Advance-payment intent for the UPI flow.
pending → paid (auto-settle timer) → consumed by exactly one reservation.
pending or unconsumed paid intents turn expired once expires_at passes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

PENDING = "pending"
PAID = "paid"
EXPIRED = "expired"


@dataclass
class PaymentIntent:
    id: int
    lot_id: int
    vehicle_number: str
    reserved_hours: int
    amount: int              # reserved_hours × lot rate, fixed at creation
    upi_uri: str
    created_at: datetime
    expires_at: datetime
    method: str = "upi"
    status: str = PENDING    # pending | paid | expired
    paid_at: Optional[datetime] = None
    consumed: bool = False

    def __repr__(self):
        return f"<PaymentIntent {self.id} status={self.status} amount={self.amount} consumed={self.consumed}>"
