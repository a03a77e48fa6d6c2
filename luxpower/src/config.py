"""
Ingest job configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Values come from the process environment or a ``.env`` file in the working
directory; there are no hardcoded URLs or credentials.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from luxpower.src.errors import ConfigError

_REQUIRED_MESSAGE = "value is required"


class LuxpowerSettings(BaseSettings):
    """Configuration for one fetch-and-store run.

    Attributes:
        account_name: LuxPower portal login name.
        account_password: LuxPower portal password.
        station_number: Inverter serial number sent as ``serialNum``.
        luxpower_url: Portal base URL, e.g. ``https://eu.luxpowertek.com``.
            Stored without a trailing slash.
        database_url: PostgreSQL/TimescaleDB connection URL.
        log_level: Root log level name (default ``INFO``).
        dry_run: When true, skip the network fetch and the insert; a
            zero-valued snapshot is logged instead.
    """

    account_name: str
    account_password: str
    station_number: str
    luxpower_url: str
    database_url: str
    log_level: str = "INFO"
    dry_run: bool = False

    @field_validator(
        "account_name",
        "account_password",
        "station_number",
        "luxpower_url",
        "database_url",
    )
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only values."""
        if not v.strip():
            raise ValueError(_REQUIRED_MESSAGE)
        return v

    @field_validator("luxpower_url")
    @classmethod
    def luxpower_url_must_be_absolute(cls, v: str) -> str:
        """Validate that LUXPOWER_URL parses as an absolute http(s) URL."""
        try:
            url = httpx.URL(v.strip())
        except httpx.InvalidURL as exc:
            raise ValueError(f"not a valid URL ({exc})") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an absolute http:// or https:// URL")
        return str(url).rstrip("/")

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate LOG_LEVEL against the stdlib level names."""
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level '{v}'")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}


def load_settings() -> LuxpowerSettings:
    """Load settings from the environment, failing fast on bad values.

    Returns:
        LuxpowerSettings: The validated, immutable configuration.

    Raises:
        ConfigError: If any variable is missing or invalid. The message lists
            each offending variable by its environment name, in field order.
    """
    try:
        return LuxpowerSettings()
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            name = str(error["loc"][0]).upper() if error["loc"] else "?"
            if error["type"] == "missing":
                message = _REQUIRED_MESSAGE
            else:
                message = error["msg"].removeprefix("Value error, ")
            problems.append(f"{name}: {message}")
        raise ConfigError("; ".join(problems)) from exc
