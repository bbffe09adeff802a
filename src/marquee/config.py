"""Process settings via pydantic-settings. Loads from environment and .env file.

These are the knobs of the running service. The advert content itself
(ad groups, welcome message, translations) lives in the JSON document at
``marquee_config_path`` and is reloadable at runtime; see
``marquee.core.store``.
"""

from __future__ import annotations

import pathlib

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent

# Source engine servers tick at 64 Hz; overlay durations are counted in ticks.
DEFAULT_TICK_RATE = 64


class Settings(BaseSettings):
    """Marquee service configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Environment
    marquee_env: str = "development"
    marquee_log_level: str = "INFO"

    # Files
    marquee_config_path: str = "configs/marquee.json"
    marquee_geoip_db_path: str = "GeoLite2-Country.mmdb"

    # Engine timing
    marquee_tick_rate: int = Field(default=DEFAULT_TICK_RATE, ge=1, le=1000)
    marquee_auto_start: bool = True

    # Overrides applied on top of every loaded document
    marquee_ip_override: str = ""
    marquee_server_name_override: str = ""
    marquee_server_subname_override: str = ""

    # Relay host defaults (what the game server bridge reports until told otherwise)
    marquee_map_name: str = ""
    marquee_ip: str = "127.0.0.1"
    marquee_port: int = 27015
    marquee_max_participants: int = Field(default=64, ge=1)
    marquee_outbox_size: int = Field(default=2048, ge=1)

    # Admin
    marquee_admin_token: str = ""

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _require_admin_token_in_production(self) -> Settings:
        """Admin endpoints reload live config; never expose them unauthenticated in production."""
        if self.marquee_env == "production" and not self.marquee_admin_token:
            msg = (
                "MARQUEE_ADMIN_TOKEN must be set in production. "
                "Generate one with: python -c "
                '"import secrets; print(secrets.token_urlsafe(32))"'
            )
            raise ValueError(msg)
        return self

    @property
    def tick_interval_seconds(self) -> float:
        """Wall-clock seconds between two host ticks."""
        return 1.0 / self.marquee_tick_rate

    def resolved_config_path(self) -> pathlib.Path:
        """Absolute path of the advert document (relative paths anchor at the project root)."""
        path = pathlib.Path(self.marquee_config_path)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path

    def resolved_geoip_db_path(self) -> pathlib.Path:
        """Absolute path of the GeoLite2 country database."""
        path = pathlib.Path(self.marquee_geoip_db_path)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path
