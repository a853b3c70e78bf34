# app/schemas/event.py
from datetime import datetime
from typing import Optional

from app.schemas.base import CamelModel


class EventOut(CamelModel):
    id: int
    type: str            # occupancy | battery_low | sensor
    ts: datetime
    lot_id: int
    spot_number: int
    is_occupied: Optional[bool] = None
    battery: Optional[int] = None
    healthy: Optional[bool] = None
