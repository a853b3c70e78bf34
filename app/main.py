# app/main.py
"""
FastAPI application entry point.
Includes middleware, global error handlers, all routers, and the
startup/shutdown wiring for the store, telemetry simulator and payment timers.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.routers import lots, payments, reservations, status as fleet_status, stream, health
from app.errors import ParkingError
from app.store import init_store, get_store
from app.services.payment_service import cancel_pending_settlements
from app.services.telemetry_simulator import TelemetrySimulator
from app.config import settings
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Smart Parking Station API",
    description="Spot availability, UPI-prepaid reservations and live IoT telemetry. In-memory.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboard may be served from another origin) ──────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Error Handler ─────────────────────────────────────────────────────
@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code} — {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Invalid request: {problems}", "code": "InvalidInput"},
    )


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(lots.router,         prefix="/api", tags=["🅿️  Lots & Spots"])
app.include_router(payments.router,     prefix="/api", tags=["💳 Payments"])
app.include_router(reservations.router, prefix="/api", tags=["🚗 Reservations"])
app.include_router(fleet_status.router, prefix="/api", tags=["📊 Fleet Status"])
app.include_router(stream.router,       prefix="/api", tags=["📡 Live Stream"])
app.include_router(health.router,       prefix="/api", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Smart Parking backend starting up...")
    store = init_store()
    app.state.simulator = None
    if settings.SIMULATOR_ENABLED:
        app.state.simulator = TelemetrySimulator(store)
        app.state.simulator.start()
    else:
        logger.warning("Telemetry simulator disabled (SIMULATOR_ENABLED=false)")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_HOST}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Smart Parking backend shutting down...")
    simulator = getattr(app.state, "simulator", None)
    if simulator is not None:
        await simulator.stop()
    cancelled = cancel_pending_settlements(get_store())
    if cancelled:
        logger.info(f"Cancelled {cancelled} pending payment settlements")


def run():
    """Console entry point: serve on BACKEND_HOST:BACKEND_PORT."""
    import uvicorn
    uvicorn.run("app.main:app", host=settings.BACKEND_HOST, port=settings.BACKEND_PORT)


if __name__ == "__main__":
    run()
