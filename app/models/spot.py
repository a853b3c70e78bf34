# app/models/spot.py
"""
One physical parking space and the latest readings of its sensor.
Created once at startup, never destroyed. Mutated only through
app.services.spot_registry while holding the store lock.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Spot:
    id: str                  # "<lot_id>-<spot_number>"
    lot_id: int
    spot_number: int
    is_occupied: bool
    battery: float           # % (5..100)
    signal: float            # % (5..100)
    temp_c: float
    distance_cm: float       # ultrasonic range: short when a car is parked
    last_seen: datetime
    sensor_healthy: bool = True
    low_battery_warned: bool = False
    reservation_id: Optional[int] = None   # set while an active reservation holds the spot

    def __repr__(self):
        return f"<Spot {self.id} occupied={self.is_occupied} battery={self.battery:.1f}>"
