"""Environment configuration for the blog event services."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SUBSCRIBER_URLS = ",".join(
    f"http://localhost:{port}/events" for port in (4000, 4001, 4002, 4003)
)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        # Event bus
        self.BUS_URL: str = os.getenv("BUS_URL", "http://localhost:4005/events")
        self.SUBSCRIBER_URLS: list[str] = _split_csv(
            os.getenv("SUBSCRIBER_URLS", DEFAULT_SUBSCRIBER_URLS)
        )
        self.DELIVERY_TIMEOUT_SECONDS: float = float(
            os.getenv("DELIVERY_TIMEOUT_SECONDS", "5.0")
        )
        self.DELIVERY_REPORT_HISTORY: int = int(
            os.getenv("DELIVERY_REPORT_HISTORY", "100")
        )

        # Moderation
        self.DISALLOWED_WORDS: list[str] = _split_csv(
            os.getenv("DISALLOWED_WORDS", "badword")
        )

        # Query service
        self.PENDING_EVENT_CAPACITY: int = int(
            os.getenv("PENDING_EVENT_CAPACITY", "1000")
        )
        self.PENDING_EVENT_TTL_SECONDS: float = float(
            os.getenv("PENDING_EVENT_TTL_SECONDS", "30")
        )
        self.PENDING_SWEEP_INTERVAL_SECONDS: float = float(
            os.getenv("PENDING_SWEEP_INTERVAL_SECONDS", "5")
        )
        self.QUERY_DATABASE_URL: str = os.getenv("QUERY_DATABASE_URL", "")
        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def validate(self) -> None:
        """Validate numeric settings."""
        if self.DELIVERY_TIMEOUT_SECONDS <= 0:
            raise ValueError("DELIVERY_TIMEOUT_SECONDS must be positive")
        if self.DELIVERY_REPORT_HISTORY <= 0:
            raise ValueError("DELIVERY_REPORT_HISTORY must be positive")
        if self.PENDING_EVENT_CAPACITY <= 0:
            raise ValueError("PENDING_EVENT_CAPACITY must be positive")
        if self.PENDING_EVENT_TTL_SECONDS <= 0:
            raise ValueError("PENDING_EVENT_TTL_SECONDS must be positive")
        if self.PENDING_SWEEP_INTERVAL_SECONDS <= 0:
            raise ValueError("PENDING_SWEEP_INTERVAL_SECONDS must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    return settings
