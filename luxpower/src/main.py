"""
One-shot entrypoint for the LuxPower-to-TimescaleDB ingest job.

Runs the pipeline once, strictly in sequence:
load config -> connect -> bootstrap schema -> build session client ->
fetch live telemetry (logging in if needed) -> write one row -> exit.

Each stage raises its own LuxpowerError subclass; nothing below main()
terminates the process. main() logs the failure and returns exit code 1.
Periodic polling is the job of an external scheduler (cron, systemd timer).

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-17: Cleanup failures are logged, never raised over the stage error
- 2026-10-17: Add DRY_RUN mode (zero snapshot, no insert)
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import sys
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from luxpower.src.client import SessionClient
from luxpower.src.config import load_settings
from luxpower.src.db.bootstrap import bootstrap_schema
from luxpower.src.db.session import close_quietly, connect, create_engine, dispose_quietly
from luxpower.src.errors import LuxpowerError
from luxpower.src.fetcher import TelemetryFetcher
from luxpower.src.writer import write_snapshot

if TYPE_CHECKING:
    import httpx
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from luxpower.src.config import LuxpowerSettings
    from luxpower.src.models import TelemetrySnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the ingest job.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _masked_secret(value: str | None) -> str:
    """Return a short non-reversible fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def _masked_database_url(value: str) -> str:
    """Return the database URL with any password replaced by ``***``."""
    try:
        return make_url(value).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable>"


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: LuxpowerSettings) -> None:
    """Log a config summary at startup, excluding secrets.

    The account password is reduced to a fingerprint and the database URL
    password is masked.

    Args:
        settings: The loaded LuxpowerSettings.
    """
    logger.info(
        "Ingest job starting with config: "
        "luxpower_url=%s, account_name=%s, station_number=%s, "
        "database_url=%s, log_level=%s, dry_run=%s, password_masked=%s",
        settings.luxpower_url,
        settings.account_name,
        settings.station_number,
        _masked_database_url(settings.database_url),
        settings.log_level,
        settings.dry_run,
        _masked_secret(settings.account_password),
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclass
class PipelineContext:
    """Everything one run needs, passed explicitly instead of held globally.

    Attributes:
        settings: Validated configuration.
        client: Session client owning the portal cookie jar.
        fetcher: Telemetry fetcher bound to ``client``.
        conn: Open connection to the bootstrapped database.
    """

    settings: LuxpowerSettings
    client: SessionClient
    fetcher: TelemetryFetcher
    conn: AsyncConnection


async def fetch_and_store(ctx: PipelineContext) -> TelemetrySnapshot:
    """Fetch one live snapshot and write it, unless running dry.

    Args:
        ctx: The run's pipeline context.

    Returns:
        TelemetrySnapshot: The snapshot that was fetched.
    """
    snapshot = await ctx.fetcher.fetch_live(test_mode=ctx.settings.dry_run)
    logger.info("Live data: %s", snapshot.to_display_json())

    if ctx.settings.dry_run:
        logger.info("Dry run: skipping insert")
    else:
        await write_snapshot(ctx.conn, snapshot, ctx.settings.station_number)
    return snapshot


async def run_once(
    settings: LuxpowerSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    engine: AsyncEngine | None = None,
) -> TelemetrySnapshot:
    """Run the whole pipeline once.

    Args:
        settings: Validated configuration.
        transport: Optional httpx transport for the portal client.
        engine: Optional pre-built engine. When omitted, one is created from
            ``settings.database_url`` and disposed before returning.

    Returns:
        TelemetrySnapshot: The snapshot that was fetched (and written).

    Raises:
        LuxpowerError: The first failing stage's error.
    """
    owns_engine = engine is None
    if engine is None:
        engine = create_engine(settings.database_url)

    try:
        conn = await connect(engine)
        try:
            await bootstrap_schema(conn)
            async with SessionClient(
                settings.luxpower_url,
                settings.account_name,
                settings.account_password,
                transport=transport,
            ) as client:
                ctx = PipelineContext(
                    settings=settings,
                    client=client,
                    fetcher=TelemetryFetcher(client, settings.station_number),
                    conn=conn,
                )
                return await fetch_and_store(ctx)
        finally:
            await close_quietly(conn)
    finally:
        if owns_engine:
            await dispose_quietly(engine)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> int:
    """Synchronous entrypoint: returns the process exit code."""
    configure_logging()

    try:
        settings = load_settings()
    except LuxpowerError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    logging.getLogger().setLevel(settings.log_level)
    log_config_summary(settings)

    try:
        asyncio.run(run_once(settings))
    except LuxpowerError as exc:
        logger.error("Ingest run failed: %s: %s", type(exc).__name__, exc, exc_info=True)
        return 1

    logger.info("Ingest run complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
