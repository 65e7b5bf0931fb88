# app/config.py

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from .env; ignore unknown keys so extra lines don't crash startup
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Database ---
    DATABASE_URL: str = "sqlite:///./appointments.db"
    DB_TIMEOUT_SECONDS: int = 15

    # --- Auth ---
    SECRET_KEY: str = "change-me-later"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Scheduling ---
    PAGE_SIZE: int = 20
    CANCELLATION_WINDOW_HOURS: int = 2

    # --- Job queue (arq) ---
    REDIS_URL: str = "redis://localhost:6379"
    OUTBOX_BATCH_SIZE: int = 50

    # --- Mail (worker side) ---
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 25
    MAIL_FROM: str = "no-reply@appointments.local"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"


# Singleton
settings = Settings()
