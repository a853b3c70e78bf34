# app/schemas/payment.py
from datetime import datetime
from typing import Optional

from app.schemas.base import CamelModel


class UpiIntentCreate(CamelModel):
    lot_id: Optional[int] = None
    vehicle_number: Optional[str] = None
    reserved_hours: Optional[int] = None


class UpiIntentOut(CamelModel):
    intent_id: int
    upi_uri: str
    amount: int
    expires_at: datetime


class IntentStatusOut(CamelModel):
    id: int
    status: str          # pending | paid | expired
    method: str
    amount: int
    consumed: bool = False
