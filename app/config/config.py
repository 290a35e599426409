import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Delito Admin"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    TEST: bool = os.getenv("TEST", "false").lower() == "true"

    # Firebase service account
    FIREBASE_PROJECT_ID: str | None = os.getenv("FIREBASE_PROJECT_ID")
    FIREBASE_CLIENT_EMAIL: str | None = os.getenv("FIREBASE_CLIENT_EMAIL")
    FIREBASE_PRIVATE_KEY: str | None = os.getenv("FIREBASE_PRIVATE_KEY")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str | None = os.getenv("LOG_DIR")

    # LOGFIRE / SENTRY
    LOGFIRE_TOKEN: str | None = os.getenv("LOGFIRE_TOKEN")
    SENTRY_DSN: str | None = os.getenv("SENTRY_DSN")

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Delivery earnings sync
    SYNC_INTERVAL_HOURS: int = 6
    SYNC_RATE_LIMIT: str = "5/minute"

    @property
    def firebase_configured(self) -> bool:
        return bool(
            self.FIREBASE_PROJECT_ID
            and self.FIREBASE_CLIENT_EMAIL
            and self.FIREBASE_PRIVATE_KEY
        )

    @property
    def firebase_private_key(self) -> str | None:
        if self.FIREBASE_PRIVATE_KEY is None:
            return None
        return self.FIREBASE_PRIVATE_KEY.replace("\\n", "\n")


settings = Settings()
