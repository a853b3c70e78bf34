# app/models/lot.py
"""
Parking lot catalog entry.
Immutable after startup; availability is always computed from the spots.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Lot:
    id: int
    name: str
    total_spots: int
    price_per_hour: int      # ₹ per started hour
    icon: str = ""

    def __repr__(self):
        return f"<Lot {self.id} {self.name!r} spots={self.total_spots} rate={self.price_per_hour}>"
