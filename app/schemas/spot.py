# app/schemas/spot.py
from datetime import datetime
from typing import Optional

from app.schemas.base import CamelModel


class SpotOut(CamelModel):
    id: str
    lot_id: int
    spot_number: int
    is_occupied: bool
    battery: float
    signal: float
    temp_c: float
    distance_cm: float
    sensor_healthy: bool
    last_seen: datetime
    reservation_id: Optional[int] = None
