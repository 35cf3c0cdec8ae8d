"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "egs_bridge"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 7 * 24 * 60

    # SMTP (email is skipped entirely when smtp_user is empty)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = "placement@egsbridge.edu"
    email_timeout_seconds: int = 20

    # Reminder scheduler
    scheduler_enabled: bool = True
    reminder_time: str = "09:00"
    reminder_timezone: str = "Asia/Kolkata"
    scheduler_poll_seconds: int = 30
    failed_reminder_window_days: int = 7

    # App
    frontend_origins: Union[str, List[str]] = "http://localhost:3000,http://localhost:5173"
    log_level: str = "INFO"
    debug: bool = True

    @field_validator("frontend_origins", mode="before")
    def split_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if not v:
            return []
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def email_configured(self) -> bool:
        """Email is attempted only when SMTP credentials are present."""
        return bool(self.smtp_user)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
