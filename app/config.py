"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 3000

    # ── Telemetry simulator ───────────────────────────────────────────────
    SIMULATOR_ENABLED: bool = True
    TELEMETRY_TICK_SECONDS: float = 5.0
    TELEMETRY_SAMPLE_RATIO: float = 0.08         # ~8% of the fleet per tick
    OCCUPANCY_FLIP_PROBABILITY: float = 0.3
    SENSOR_FAILURE_PROBABILITY: float = 0.03
    SENSOR_RECOVERY_PROBABILITY: float = 0.2
    BATTERY_LOW_THRESHOLD: float = 15.0          # battery_low fires below this
    BATTERY_REARM_THRESHOLD: float = 25.0        # warning re-arms above this

    # ── Event feed ────────────────────────────────────────────────────────
    EVENT_LOG_CAPACITY: int = 500
    STREAM_INTERVAL_SECONDS: float = 2.0
    STREAM_BATCH_SIZE: int = 50

    # ── UPI payments (demo auto-settle) ───────────────────────────────────
    UPI_AUTO_SETTLE_SECONDS: float = 8.0
    UPI_INTENT_TTL_MINUTES: int = 10
    UPI_PAYEE_VPA: str = "smartparking@upi"
    UPI_PAYEE_NAME: str = "Smart Parking"

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
