# ispdesk/config.py
"""
Application settings.

Values come from environment variables (or a .env file loaded at import time),
so the same process configuration is shared by the API, the scheduler and the
router adapters.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")
DEFAULT_DATABASE_FILE = os.path.join(DATA_DIR, "db", "ispdesk.sqlite")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "development"
    database_url: str | None = None
    encryption_key: str | None = None

    # "routeros_api" uses the real RouterOS API; "none" serves synthetic data only
    routeros_driver: str = "routeros_api"
    routeros_timeout: float = 10.0
    router_cache_ttl: int = 30

    scheduler_enabled: bool = True
    billing_interval_minutes: int = 60
    billing_run_on_startup: bool = True

    allowed_origins: str = "http://localhost:8000"

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        os.makedirs(os.path.dirname(DEFAULT_DATABASE_FILE), exist_ok=True)
        return f"sqlite:///{DEFAULT_DATABASE_FILE}"

    @property
    def driver_enabled(self) -> bool:
        return self.routeros_driver.lower() not in ("", "none", "mock")


@lru_cache
def get_settings() -> Settings:
    return Settings()
