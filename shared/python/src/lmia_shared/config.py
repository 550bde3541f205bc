"""
config.py — pydantic-settings Settings class.

All environment variables for the LMIA geocoder are declared here.
The pipeline, the geocoding providers, and the CLI import `settings`
from this module.

Usage:
    from lmia_shared.config import settings
    print(settings.geocoding_cache_file)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Turbo mode runs with a shorter default pacing delay when none is set.
TURBO_SLEEP_TIMER = 0.1


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Persistent stores
    # -------------------------------------------------------------------------
    geocoding_cache_file: Path = Field(default=Path("./outputs/cache/location_cache.csv"))
    geocoding_bogons_file: Path = Field(default=Path("./outputs/cache/bogons"))
    csv_unprocessed_dir: Path = Field(default=Path("./outputs/csv/unprocessed"))
    csv_processed_dir: Path = Field(default=Path("./outputs/csv/processed"))

    # -------------------------------------------------------------------------
    # Geocoding behaviour
    # -------------------------------------------------------------------------
    # None means "not set": the standard or turbo default applies.
    geocoding_sleep_timer: float | None = Field(default=None, ge=0)
    geocoding_turbo_mode: bool = Field(default=False)
    # Maximum premium-provider calls per run; 0 disables the cap.
    geocoding_premium_budget: int = Field(default=0, ge=0)
    geocoding_timeout: float = Field(default=10.0, gt=0)
    geocoding_user_agent: str = Field(default="lmia-geocoder/0.1 (+https://open.canada.ca)")

    # -------------------------------------------------------------------------
    # Provider credentials (absence = provider skipped)
    # -------------------------------------------------------------------------
    google_geocoding_api_key: str = Field(default="")
    mapbox_access_token: str = Field(default="")
    opencage_api_key: str = Field(default="")

    # -------------------------------------------------------------------------
    # Provider endpoints
    # -------------------------------------------------------------------------
    nominatim_url: str = Field(default="https://nominatim.openstreetmap.org/search")
    geocoder_ca_url: str = Field(default="https://geocoder.ca")
    google_geocoding_url: str = Field(
        default="https://maps.googleapis.com/maps/api/geocode/json"
    )
    mapbox_geocoding_url: str = Field(
        default="https://api.mapbox.com/geocoding/v5/mapbox.places"
    )
    opencage_url: str = Field(default="https://api.opencagedata.com/geocode/v1/json")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def effective_sleep_timer(self) -> float:
        if self.geocoding_sleep_timer is not None:
            return self.geocoding_sleep_timer
        return TURBO_SLEEP_TIMER if self.geocoding_turbo_mode else 1.0

    def configured_providers(self) -> dict[str, bool]:
        """Report which premium credentials are present, never their values."""
        return {
            "google": bool(self.google_geocoding_api_key),
            "mapbox": bool(self.mapbox_access_token),
            "opencage": bool(self.opencage_api_key),
        }

    @field_validator(
        "nominatim_url",
        "geocoder_ca_url",
        "google_geocoding_url",
        "mapbox_geocoding_url",
        "opencage_url",
        mode="before",
    )
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v

    @field_validator(
        "google_geocoding_api_key", "mapbox_access_token", "opencage_api_key", mode="before"
    )
    @classmethod
    def strip_credentials(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton: import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
