# app/models/event.py
"""
Telemetry feed entry kept in the event bus.
Only the fields of its own type are set; the rest stay None.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

OCCUPANCY = "occupancy"
BATTERY_LOW = "battery_low"
SENSOR = "sensor"


@dataclass(frozen=True)
class Event:
    id: int
    type: str                # occupancy | battery_low | sensor
    ts: datetime
    lot_id: int
    spot_number: int
    is_occupied: Optional[bool] = None   # occupancy
    battery: Optional[int] = None        # battery_low
    healthy: Optional[bool] = None       # sensor
