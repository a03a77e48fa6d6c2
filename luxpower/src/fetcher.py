"""
Live telemetry fetcher for one LuxPower station.

Posts the station serial number to the portal's inverter runtime endpoint
and decodes the JSON reply into a TelemetrySnapshot. Logs in first when the
session client holds no session cookie. Errors are never swallowed: every
failure propagates to the caller as a LuxpowerError subclass.

CHANGELOG:
- 2026-10-17: Reject the portal's {"success": false} error envelope
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from luxpower.src.errors import DecodeError
from luxpower.src.models import TelemetrySnapshot

if TYPE_CHECKING:
    from luxpower.src.client import SessionClient

logger = logging.getLogger(__name__)

RUNTIME_PATH = "/api/inverter/getInverterRuntime"
"""Portal endpoint returning the live runtime values for one inverter."""


# ---------------------------------------------------------------------------
# Pure decoder
# ---------------------------------------------------------------------------


def decode_runtime(body: bytes | str) -> TelemetrySnapshot:
    """Decode a runtime response body into a TelemetrySnapshot.

    Keys the snapshot does not map are ignored; mapped keys that are absent
    or null decode as 0. Integers are matched strictly: numeric strings,
    booleans, and floats such as ``6.0`` are rejected.

    Args:
        body: Raw response body.

    Returns:
        The decoded snapshot.

    Raises:
        DecodeError: If the body is not a JSON object, is the portal's
            ``{"success": false}`` error envelope, or carries a non-integer
            value for a mapped key.
    """
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Runtime response is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise DecodeError(
            f"Runtime response is a JSON {type(payload).__name__}, expected an object"
        )

    if payload.get("success") is False:
        raise DecodeError(f"Portal reported failure: {payload.get('msg', 'no message')}")

    try:
        return TelemetrySnapshot.model_validate(payload)
    except ValidationError as exc:
        raise DecodeError(f"Runtime response has unexpected values: {exc}") from exc


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class TelemetryFetcher:
    """Fetches live readings for one station through a SessionClient.

    Args:
        client: Session client bound to the portal base URL.
        station_number: Inverter serial number sent as ``serialNum``.
    """

    def __init__(self, client: SessionClient, station_number: str) -> None:
        self._client = client
        self._station_number = station_number

    async def fetch_live(self, test_mode: bool = False) -> TelemetrySnapshot:
        """Return the current TelemetrySnapshot for the station.

        Args:
            test_mode: When True, return a zero-valued snapshot without any
                network activity.

        Raises:
            AuthError: If a needed login is rejected.
            NetworkError: If a request cannot be sent or returns an HTTP
                error status.
            DecodeError: If the runtime body cannot be decoded.
        """
        if test_mode:
            logger.info("Test mode: returning zero-valued snapshot")
            return TelemetrySnapshot()

        if not self._client.has_session():
            await self._client.authenticate()

        logger.info("Fetching runtime data for station %s", self._station_number)
        response = await self._client.post_form(
            RUNTIME_PATH,
            {"serialNum": self._station_number},
        )
        body = response.content
        logger.debug("Runtime response: HTTP %d, %d bytes", response.status_code, len(body))
        return decode_runtime(body)
