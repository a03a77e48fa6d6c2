"""
SQLAlchemy ORM model for the inverter_data hypertable.

One row per captured snapshot. The table has no primary key in the
database: TimescaleDB requires unique constraints to include the
partitioning column, so uniqueness is a unique index on
(time, station_number). The ORM mapping uses the same pair as its
identity.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

import datetime

from sqlalchemy import DateTime, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

TABLE_NAME = "inverter_data"
UNIQUE_INDEX_NAME = "ix_inverter_time_station"


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all ingest ORM models."""

    pass


class InverterData(Base):
    """One LuxPower telemetry snapshot as stored in TimescaleDB.

    Attributes:
        time: Capture timestamp (partitioning column).
        station_number: Inverter serial number.
        battery_charge_percent: Battery state of charge, 0-100.
        pv_1: PV string 1 power in watts.
        pv_2: PV string 2 power in watts.
        pv_3: PV string 3 power in watts.
        pv_total: Total PV power in watts.
        battery_charge: Inverter-to-battery power in watts.
        battery_discharge: Battery-to-inverter power in watts.
        inverter_to_load: Inverter-to-house power in watts.
        inverter_to_grid: Export power in watts.
        grid_to_load: Import power in watts.
        load: House load, inverter_to_load + grid_to_load.
    """

    __tablename__ = TABLE_NAME
    __table_args__ = (
        Index(UNIQUE_INDEX_NAME, "time", "station_number", unique=True),
    )

    time: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    station_number: Mapped[str] = mapped_column(Text, nullable=False)
    battery_charge_percent: Mapped[int] = mapped_column(Integer, nullable=False)
    pv_1: Mapped[int] = mapped_column(Integer, nullable=False)
    pv_2: Mapped[int] = mapped_column(Integer, nullable=False)
    pv_3: Mapped[int] = mapped_column(Integer, nullable=False)
    pv_total: Mapped[int] = mapped_column(Integer, nullable=False)
    battery_charge: Mapped[int] = mapped_column(Integer, nullable=False)
    battery_discharge: Mapped[int] = mapped_column(Integer, nullable=False)
    inverter_to_load: Mapped[int] = mapped_column(Integer, nullable=False)
    inverter_to_grid: Mapped[int] = mapped_column(Integer, nullable=False)
    grid_to_load: Mapped[int] = mapped_column(Integer, nullable=False)
    load: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"primary_key": [time, station_number]}

    def __repr__(self) -> str:
        """Return string representation of the InverterData row."""
        return (
            f"InverterData(station_number={self.station_number!r}, "
            f"time={self.time!r}, pv_total={self.pv_total!r})"
        )
