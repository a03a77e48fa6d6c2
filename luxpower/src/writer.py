"""
Persistence writer for LuxPower telemetry snapshots.

Inserts exactly one inverter_data row per call, stamped with the current
UTC time and the station number. The insert is a plain INSERT with no
ON CONFLICT clause: a second row for the same (time, station_number) is
rejected by the unique index and surfaces as a WriteError.

CHANGELOG:
- 2026-10-17: Word IntegrityError by SQLSTATE; rollback failures no longer mask it
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from luxpower.src.db.models import InverterData
from luxpower.src.db.session import rollback_quietly
from luxpower.src.errors import WriteError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncConnection

    from luxpower.src.models import TelemetrySnapshot

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
"""PostgreSQL SQLSTATE for unique_violation."""


def _is_unique_violation(exc: IntegrityError) -> bool:
    """Return True if the driver reports SQLSTATE 23505 for ``exc``."""
    code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return code == UNIQUE_VIOLATION


async def write_snapshot(
    conn: AsyncConnection,
    snapshot: TelemetrySnapshot,
    station_number: str,
    *,
    ts: datetime | None = None,
) -> datetime:
    """Insert one snapshot row and commit.

    The derived ``load`` column is computed from the snapshot here; it is
    never taken from the portal response.

    Args:
        conn: Open async connection to an already-bootstrapped database.
        snapshot: The snapshot to persist.
        station_number: Station identifier stored with the row.
        ts: Capture timestamp. Defaults to the current UTC time at the
            moment of the call.

    Returns:
        datetime: The timestamp the row was written with.

    Raises:
        WriteError: If the insert or commit fails, including a duplicate
            (time, station_number) key. The transaction is rolled back.
    """
    if ts is None:
        ts = datetime.now(tz=UTC)

    stmt = pg_insert(InverterData).values(**snapshot.to_row(station_number, ts))

    try:
        await conn.execute(stmt)
        await conn.commit()
    except IntegrityError as exc:
        await rollback_quietly(conn)
        if _is_unique_violation(exc):
            raise WriteError(
                f"Row for station {station_number} at {ts.isoformat()} "
                f"already exists: {exc.orig}"
            ) from exc
        raise WriteError(
            f"Constraint violation inserting into {InverterData.__tablename__}: {exc.orig}"
        ) from exc
    except SQLAlchemyError as exc:
        await rollback_quietly(conn)
        raise WriteError(f"Insert into {InverterData.__tablename__} failed: {exc}") from exc

    logger.info(
        "Wrote snapshot for station %s at %s (pv_total=%d, load=%d, soc=%d%%)",
        station_number,
        ts.isoformat(),
        snapshot.pv_total,
        snapshot.load,
        snapshot.battery_charge_percent,
    )
    return ts
