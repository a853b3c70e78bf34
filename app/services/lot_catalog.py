# app/services/lot_catalog.py
"""Static lot catalog and per-lot availability."""

from app.models.lot import Lot
from app.store import ParkingStore

DEFAULT_LOTS = (
    Lot(id=1, name="Gwalior Fort Parking", total_spots=60, price_per_hour=50, icon="🏰"),
    Lot(id=2, name="DD Mall Parking", total_spots=80, price_per_hour=40, icon="🛍️"),
    Lot(id=3, name="Railway Station Parking", total_spots=70, price_per_hour=35, icon="🏛️"),
)


def list_lots(store: ParkingStore) -> list[dict]:
    """Every lot with availableSpots/occupiedSpots computed from its spots."""
    with store.lock:
        result = []
        for lot in store.lots.values():
            available = sum(1 for s in store.spots.values()
                            if s.lot_id == lot.id and not s.is_occupied)
            result.append({
                "id": lot.id,
                "name": lot.name,
                "icon": lot.icon,
                "total_spots": lot.total_spots,
                "price_per_hour": lot.price_per_hour,
                "available_spots": available,
                "occupied_spots": lot.total_spots - available,
            })
        return result
