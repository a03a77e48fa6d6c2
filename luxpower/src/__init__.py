"""
LuxPower-to-TimescaleDB ingest package.

Logs into the LuxPower web portal, fetches the live inverter runtime
snapshot for one station, and stores it as a single row in the
``inverter_data`` TimescaleDB hypertable. Runs once per invocation;
periodic polling is left to an external scheduler.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""
