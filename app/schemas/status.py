# app/schemas/status.py
from datetime import datetime

from app.schemas.base import CamelModel


class FleetStatusOut(CamelModel):
    last_update_at: datetime
    total_spots: int
    occupied_spots: int
    avg_battery: float
    unhealthy_sensors: int
