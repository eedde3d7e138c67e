# ==============================================================================
# Status Command
# ==============================================================================
"""
Status command for the beacon collector CLI.

Checks the backing services the configured storage mode needs and prints
them either as a box panel or as JSON.
"""

import json as json_module
from concurrent.futures import ThreadPoolExecutor
from typing import Annotated, Any

import typer

from beacon.cli.shared import (
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _section_header,
    _status_badge,
)
from beacon.utils.config import Settings, get_settings


# ==============================================================================
# Data Collection
# ==============================================================================


def _check_postgresql(settings: Settings) -> dict[str, Any]:
    from beacon.infrastructure.repositories import check_postgresql_connection
    from beacon.utils.db import check_schema_exists

    connected = check_postgresql_connection(settings)
    schema_ready = False
    if connected:
        try:
            schema_ready = check_schema_exists(settings)
        except Exception:
            schema_ready = False
    return {
        "status": "connected" if connected else "unreachable",
        "host": settings.postgres.host,
        "schema": settings.postgres.schema_name,
        "schema_ready": schema_ready,
    }


def _check_opensearch(settings: Settings) -> dict[str, Any]:
    if settings.collector.storage_mode != "opensearch":
        return {"status": "disabled"}

    from beacon.infrastructure.search import check_opensearch_connection

    connected = check_opensearch_connection(settings)
    return {
        "status": "connected" if connected else "unreachable",
        "host": settings.opensearch.host,
        "events_index": settings.opensearch.events_index,
    }


def _check_valkey(settings: Settings) -> dict[str, Any]:
    if not settings.valkey.enabled:
        return {"status": "disabled"}

    from beacon.infrastructure.cache import check_valkey_connection

    connected = check_valkey_connection()
    return {
        "status": "connected" if connected else "unreachable",
        "host": settings.valkey.host,
    }


def collect_status(settings: Settings | None = None) -> dict[str, Any]:
    """Check all services concurrently."""
    settings = settings or get_settings()
    with ThreadPoolExecutor(max_workers=3) as executor:
        pg = executor.submit(_check_postgresql, settings)
        os_ = executor.submit(_check_opensearch, settings)
        vk = executor.submit(_check_valkey, settings)
        return {
            "storage_mode": settings.collector.storage_mode,
            "postgresql": pg.result(),
            "opensearch": os_.result(),
            "valkey": vk.result(),
        }


# ==============================================================================
# Output
# ==============================================================================


def _service_line(icon: str, name: str, data: dict[str, Any]) -> str:
    status = data["status"]
    badge = _status_badge(status, status == "connected", status == "disabled")
    host = f"  {C.DIM}{data['host']}{C.RESET}" if data.get("host") else ""
    return f"  {icon} {name:<12}{badge}{host}"


def _print_status_box(data: dict[str, Any]) -> None:
    print()
    print(_box_header("Beacon Collector Status"))
    print(_box_line(f"  Storage mode: {C.WHITE}{data['storage_mode']}{C.RESET}"))
    print(_section_header("Services"))
    print(_box_line(_service_line(I.DATABASE, "PostgreSQL", data["postgresql"])))
    if data["postgresql"]["status"] == "connected":
        ready = data["postgresql"]["schema_ready"]
        schema = data["postgresql"]["schema"]
        label = "ready" if ready else "missing (run 'beacon db init')"
        print(_box_line(f"      Schema {C.WHITE}{schema}{C.RESET}: {label}"))
    print(_box_line(_service_line(I.SEARCH, "OpenSearch", data["opensearch"])))
    print(_box_line(_service_line(I.CACHE, "Valkey", data["valkey"])))
    print(_box_bottom())
    print()


def show_status(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output status as JSON")
    ] = False,
) -> None:
    """Show the health of the services the collector depends on."""
    data = collect_status()
    if json_output:
        print(json_module.dumps(data, indent=2))
        return
    _print_status_box(data)
