# app/routers/status.py
from fastapi import APIRouter, Depends

from app.schemas.status import FleetStatusOut
from app.services.metrics_service import fleet_status
from app.store import ParkingStore, get_store

router = APIRouter()


@router.get("/status", response_model=FleetStatusOut, summary="Fleet-wide sensor status")
def get_fleet_status(store: ParkingStore = Depends(get_store)):
    return fleet_status(store)
