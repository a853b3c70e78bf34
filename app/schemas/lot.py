# app/schemas/lot.py
from app.schemas.base import CamelModel


class LotOut(CamelModel):
    id: int
    name: str
    icon: str
    total_spots: int
    price_per_hour: int
    available_spots: int
    occupied_spots: int


class LotMetricsOut(CamelModel):
    total: int
    occupied: int
    unhealthy: int
    avg_battery: float
    avg_signal: float
    avg_temp: float


class LotSnapshotOut(LotMetricsOut):
    id: int
    name: str
