"""Configuration management for the QR Local redirect service.

This module provides centralized configuration using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram: get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1: Import**::
    from qrlocal.config import get_settings

**Step 2: Get settings**::
    settings = get_settings()
    max_length = settings.MAX_ID_LENGTH

**Step 3: Override for a single process (CLI, tests)**::
    settings = Settings(MAX_ID_LENGTH=14, QR_ERROR_CORRECTION="H")

Key Behaviours
===============
- Settings are cached after first access.
- Environment variables (and a local ``.env``) override defaults.
- ``MAX_ID_LENGTH`` outside 1..20 or ``QR_VERSION`` outside 1..40 raise
  ValidationError at startup.

Classes:
    Settings:  Pydantic model for all configuration values.
"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from qrlocal.enums import ErrorCorrection, QRMode


class Settings(BaseSettings):
    APP_NAME: str = "qr-local"
    APP_ENV: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Display prefix for short URLs, e.g. "qr.local/abc2def"
    PUBLIC_DOMAIN: str = "qr.local"

    # Storage
    DATABASE_URL: str = "sqlite+aiosqlite:///./redirects.db"
    DATABASE_ECHO: bool = False

    # Optional redirect cache; disabled when unset
    REDIS_URL: str | None = None
    CACHE_TTL_SECONDS: int = 300

    # Identifier allocation
    MAX_ID_LENGTH: int = Field(7, ge=1, le=20)
    MAX_ALLOCATION_ATTEMPTS: int = Field(10, ge=1)

    # QR rendering
    QR_ERROR_CORRECTION: ErrorCorrection = ErrorCorrection.QUARTILE
    QR_VERSION: int | None = Field(None, ge=1, le=40)
    QR_MODE: QRMode = QRMode.ALPHANUMERIC
    QR_BOX_SIZE: int = Field(10, ge=1)
    QR_BORDER: int = Field(1, ge=0)

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("QR_ERROR_CORRECTION", mode="before")
    @classmethod
    def _upper_error_correction(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("QR_MODE", mode="before")
    @classmethod
    def _lower_mode(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def short_url(self, identifier: str) -> str:
        return f"{self.PUBLIC_DOMAIN}/{identifier}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
