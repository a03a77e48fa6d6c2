"""
Exception hierarchy for the LuxPower ingest pipeline.

Each pipeline stage raises exactly one of these types so the entrypoint
can report which stage failed. All of them derive from LuxpowerError.

CHANGELOG:
- 2026-10-17: Initial creation
"""


class LuxpowerError(Exception):
    """Base exception for every pipeline failure."""


class ConfigError(LuxpowerError):
    """A required environment variable is missing or invalid."""


class DatabaseConnectionError(LuxpowerError):
    """The storage backend could not be reached."""


class MigrationError(LuxpowerError):
    """A schema bootstrap statement failed."""


class AuthError(LuxpowerError):
    """Login to the LuxPower portal was rejected or set no session."""


class NetworkError(LuxpowerError):
    """An HTTP request could not be sent or completed."""


class HttpStatusError(NetworkError):
    """The portal answered with an HTTP error status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(LuxpowerError):
    """The runtime response body was not the expected JSON object."""


class WriteError(LuxpowerError):
    """Inserting the snapshot row failed (including duplicate keys)."""
