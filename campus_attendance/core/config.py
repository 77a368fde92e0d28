# campus_attendance/core/config.py

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Values come straight from the process environment (Docker Compose
    # passes the root .env through), so there is no env_file here.
    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Database URLs ---
    DATABASE_URL_LOCAL: str = "sqlite:///./campus_attendance.db"
    DATABASE_URL_PROD: Optional[str] = None

    # Create tables on startup (local development only; prod runs alembic)
    AUTO_CREATE_TABLES: bool = True

    LOG_LEVEL: str = "INFO"

    # --- Auth (tokens are issued by the external auth provider) ---
    JWT_SECRET: Optional[str] = None
    INTERNAL_API_KEY: Optional[str] = None

    # --- User lookup service ---
    USER_SERVICE_URL: Optional[str] = None
    USER_SERVICE_TIMEOUT_SECONDS: float = 5.0

    # --- QR attendance tokens ---
    # Must be set in prod. Without it the codec signs with a built-in
    # fallback secret and anyone who has read the source can forge codes.
    QR_SECRET: Optional[str] = None
    QR_TOKEN_TTL_HOURS: int = 24
    VISITOR_ID_PREFIX: str = "VIS"

    # --- Email (Resend) ---
    RESEND_API_KEY: Optional[str] = None
    RESEND_FROM_DOMAIN: str = "campus-events.local"
    SEND_CONFIRMATION_EMAILS: bool = True

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # --- Dynamic Properties ---
    @property
    def DATABASE_URL(self) -> str:
        return (
            self.DATABASE_URL_LOCAL if self.ENV == "local" else self.DATABASE_URL_PROD
        )

    @property
    def is_production(self) -> bool:
        return self.ENV == "prod"


# Create a single instance of the settings
settings = Settings()
