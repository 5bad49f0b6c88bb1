from __future__ import annotations
import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration for the Search Console sync engine.
    Loads from .env file or environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(__file__), ".env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Process-wide secret used to decrypt stored credentials
    SECRET: str = ""

    # Environment tier Search Console credentials (plaintext)
    SEARCH_CONSOLE_CLIENT_EMAIL: str = ""
    SEARCH_CONSOLE_PRIVATE_KEY: str = ""

    # IANA zone used for the "fetched today" check
    CRON_TIMEZONE: str = "America/New_York"

    # Local storage for SC_<domain>.json snapshots and settings.json
    DATA_DIR: str = os.path.join(os.getcwd(), "data")

    # Search Analytics transport
    SC_REQUEST_TIMEOUT: int = 30
    SC_FETCH_WINDOWS_CONCURRENTLY: bool = False

    # Batch sync
    SC_CRON_MAX_WORKERS: int = 4

    @property
    def APP_SETTINGS_PATH(self) -> str:
        """App-wide settings file holding the global tier credentials"""
        return os.path.join(self.DATA_DIR, "settings.json")

settings = Settings()
