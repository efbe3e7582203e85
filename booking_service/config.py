from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Bookings priced strictly above this go through the credit check
    HIGH_VALUE_THRESHOLD: float = 50000

    # Simulated latency of the external credit check
    CREDIT_CHECK_DELAY_SECONDS: float = 5.0
    CREDIT_REJECTION_RATE: float = 0.3

    # --- Expiry sweep ---
    EXPIRY_SWEEP_INTERVAL_SECONDS: float = 60
    PENDING_TIMEOUT_SECONDS: float = 300

    # Load the ten sample bookings on startup
    SEED_DEMO_BOOKINGS: bool = True

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
