"""
Pydantic model for one live telemetry snapshot from a LuxPower inverter.

The LuxPower runtime endpoint uses terse keys (``ppv1``, ``pCharge``, ...).
They are declared once as field aliases so decoding is a plain
``model_validate`` call. Display and storage names are declared as static
maps alongside, so serialization never inspects the model at runtime.

CHANGELOG:
- 2026-10-17: Strict integers; JSON null decodes as 0
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TelemetrySnapshot(BaseModel):
    """A single instantaneous reading of inverter power flows.

    All values are integers; power values are in watts. A snapshot built
    with no arguments is the zero-valued snapshot. Instances are frozen and
    discarded after they are written.

    Attributes:
        pv1: PV string 1 input power.
        pv2: PV string 2 input power.
        pv3: PV string 3 input power.
        pv_total: Total PV input power (expected, not enforced, to be about
            ``pv1 + pv2 + pv3``).
        inverter_to_battery: Charge flow from inverter into the battery.
        battery_to_inverter: Discharge flow from battery into the inverter.
        battery_charge_percent: Battery state of charge, 0-100.
        inverter_to_load: Power delivered from the inverter to the house.
        grid_to_load: Power imported from the grid to the house.
        inverter_to_grid: Power exported from the inverter to the grid.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore", strict=True)

    pv1: int = Field(default=0, alias="ppv1")
    pv2: int = Field(default=0, alias="ppv2")
    pv3: int = Field(default=0, alias="ppv3")
    pv_total: int = Field(default=0, alias="ppv")
    inverter_to_battery: int = Field(default=0, alias="pCharge")
    battery_to_inverter: int = Field(default=0, alias="pDisCharge")
    battery_charge_percent: int = Field(default=0, alias="soc")
    inverter_to_load: int = Field(default=0, alias="pinv")
    grid_to_load: int = Field(default=0, alias="pToUser")
    inverter_to_grid: int = Field(default=0, alias="pToGrid")

    @field_validator("*", mode="before")
    @classmethod
    def null_is_zero(cls, v: object) -> object:
        """Decode a JSON null as 0, like an absent key."""
        return 0 if v is None else v

    @property
    def load(self) -> int:
        """Total house load, derived as inverter-to-load plus grid-to-load."""
        return self.inverter_to_load + self.grid_to_load

    def to_display_dict(self) -> dict[str, int]:
        """Return the snapshot keyed by human-readable display names."""
        return {key: getattr(self, name) for name, key in DISPLAY_KEYS.items()}

    def to_display_json(self) -> str:
        """Return a compact JSON rendering of :meth:`to_display_dict`."""
        return json.dumps(self.to_display_dict(), separators=(",", ":"))

    def to_row(self, station_number: str, ts: datetime) -> dict[str, object]:
        """Build the ``inverter_data`` row for this snapshot.

        Args:
            station_number: Station identifier stored with the row.
            ts: Capture timestamp (timezone-aware).

        Returns:
            Column name to value mapping, including the derived ``load``.
        """
        row: dict[str, object] = {"time": ts, "station_number": station_number}
        for name, column in COLUMN_NAMES.items():
            row[column] = getattr(self, name)
        row["load"] = self.load
        return row


DISPLAY_KEYS: dict[str, str] = {
    "pv1": "PhotoVoltaic1Watts",
    "pv2": "PhotoVoltaic2Watts",
    "pv3": "PhotoVoltaic3Watts",
    "pv_total": "PhotoVoltaicTotalWatts",
    "inverter_to_battery": "InverterToBattery",
    "battery_to_inverter": "BatteryToInverter",
    "battery_charge_percent": "BatteryChargePercent",
    "inverter_to_load": "InverterToLoad",
    "grid_to_load": "GridToLoad",
    "inverter_to_grid": "InverterToGrid",
}
"""Maps TelemetrySnapshot field name -> display key for logs and dry runs."""

COLUMN_NAMES: dict[str, str] = {
    "battery_charge_percent": "battery_charge_percent",
    "pv1": "pv_1",
    "pv2": "pv_2",
    "pv3": "pv_3",
    "pv_total": "pv_total",
    "inverter_to_battery": "battery_charge",
    "battery_to_inverter": "battery_discharge",
    "inverter_to_load": "inverter_to_load",
    "inverter_to_grid": "inverter_to_grid",
    "grid_to_load": "grid_to_load",
}
"""Maps TelemetrySnapshot field name -> ``inverter_data`` column name."""
