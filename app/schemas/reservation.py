# app/schemas/reservation.py
from datetime import datetime
from typing import Optional

from app.schemas.base import CamelModel


class ReserveRequest(CamelModel):
    # Left optional so missing fields surface as the domain's InvalidInput
    lot_id: Optional[int] = None
    vehicle_number: Optional[str] = None
    reserved_hours: Optional[int] = None
    payment_method: Optional[str] = "upi"
    intent_id: Optional[int] = None


class ReleaseRequest(CamelModel):
    reservation_id: int


class PaymentOut(CamelModel):
    method: str
    status: str
    amount: int
    paid_at: datetime
    intent_id: Optional[int] = None


class ReservationOut(CamelModel):
    id: int
    spot_id: str
    lot_id: int
    spot_number: int
    vehicle_number: str
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    status: str          # active | completed
    prepaid_amount: int
    reserved_hours: int
    fee: int
    extra_due: int = 0
    refund_due: int = 0
    payment: PaymentOut


class ReservationResult(CamelModel):
    message: str
    reservation: ReservationOut


class ActiveReservationOut(ReservationOut):
    lot_name: str
    price_per_hour: int


class HistoryReservationOut(ReservationOut):
    lot_name: str
