# app/routers/lots.py
"""Lots, their spots, and per-lot sensor metrics."""

from fastapi import APIRouter, Depends

from app.schemas.lot import LotMetricsOut, LotOut
from app.schemas.spot import SpotOut
from app.services.lot_catalog import list_lots
from app.services.metrics_service import lot_metrics
from app.services.spot_registry import list_by_lot
from app.store import ParkingStore, get_store

router = APIRouter()


@router.get("/lots", response_model=list[LotOut], summary="All lots with live availability")
def get_lots(store: ParkingStore = Depends(get_store)):
    return list_lots(store)


@router.get("/lots/{lot_id}/spots", response_model=list[SpotOut], summary="Spots of one lot")
def get_lot_spots(lot_id: int, store: ParkingStore = Depends(get_store)):
    """Unknown lots return an empty list."""
    return list_by_lot(store, lot_id)


@router.get("/lots/{lot_id}/metrics", response_model=LotMetricsOut, summary="Sensor aggregates for one lot")
def get_lot_metrics(lot_id: int, store: ParkingStore = Depends(get_store)):
    return lot_metrics(store, lot_id)
