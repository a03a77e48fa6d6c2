"""
Idempotent schema bootstrap for the inverter_data hypertable.

Runs on every process start before the first write:
    1. Enable the timescaledb extension.
    2. Create inverter_data if absent (DDL generated from the ORM table).
    3. Convert it to a hypertable on ``time``, but only when the
       timescaledb catalog does not already list it.
    4. Ensure the unique index on (time, station_number).

Every statement is safe to re-run. The hypertable step is the only one
without an IF NOT EXISTS form, hence the catalog count guard.

CHANGELOG:
- 2026-10-17: A failed rollback no longer replaces the MigrationError
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Index, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.schema import CreateIndex, CreateTable

from luxpower.src.db.models import TABLE_NAME, UNIQUE_INDEX_NAME, InverterData
from luxpower.src.db.session import rollback_quietly
from luxpower.src.errors import MigrationError

logger = logging.getLogger(__name__)

CREATE_EXTENSION_SQL = "CREATE EXTENSION IF NOT EXISTS timescaledb"

HYPERTABLE_COUNT_SQL = (
    "SELECT COUNT(*) FROM timescaledb_information.hypertables "
    "WHERE hypertable_name = :table_name"
)

CREATE_HYPERTABLE_SQL = f"SELECT create_hypertable('{TABLE_NAME}', by_range('time'))"


def _unique_index() -> Index:
    """Return the (time, station_number) unique Index from the ORM table."""
    for index in InverterData.__table__.indexes:
        if index.name == UNIQUE_INDEX_NAME:
            return index
    raise LookupError(f"{UNIQUE_INDEX_NAME} is not declared on {TABLE_NAME}")


async def _execute(
    conn: AsyncConnection,
    step: str,
    statement: Any,
    params: dict[str, Any] | None = None,
) -> Any:
    """Execute one bootstrap statement, wrapping failures in MigrationError."""
    if isinstance(statement, str):
        statement = text(statement)
    try:
        if params is None:
            return await conn.execute(statement)
        return await conn.execute(statement, params)
    except SQLAlchemyError as exc:
        await rollback_quietly(conn)
        raise MigrationError(f"Schema bootstrap failed at '{step}': {exc}") from exc


async def bootstrap_schema(conn: AsyncConnection) -> bool:
    """Ensure the extension, table, hypertable, and unique index exist.

    Args:
        conn: Open async connection; the bootstrap commits on success.

    Returns:
        bool: True if the table was converted to a hypertable during this
        call, False if it already was one.

    Raises:
        MigrationError: If any statement fails. The transaction is rolled
            back before raising.
    """
    await _execute(conn, "enable timescaledb extension", CREATE_EXTENSION_SQL)
    await _execute(
        conn,
        "create table",
        CreateTable(InverterData.__table__, if_not_exists=True),
    )

    result = await _execute(
        conn,
        "check hypertable catalog",
        HYPERTABLE_COUNT_SQL,
        {"table_name": TABLE_NAME},
    )
    converted = False
    if result.scalar_one() == 0:
        await _execute(conn, "create hypertable", CREATE_HYPERTABLE_SQL)
        converted = True
        logger.info("Converted %s to a hypertable on 'time'", TABLE_NAME)
    else:
        logger.debug("%s is already a hypertable, skipping conversion", TABLE_NAME)

    await _execute(
        conn,
        "create unique index",
        CreateIndex(_unique_index(), if_not_exists=True),
    )

    try:
        await conn.commit()
    except SQLAlchemyError as exc:
        raise MigrationError(f"Schema bootstrap commit failed: {exc}") from exc

    logger.info("Schema bootstrap complete for %s", TABLE_NAME)
    return converted
