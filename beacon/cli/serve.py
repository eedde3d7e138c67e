# ==============================================================================
# Serve Command
# ==============================================================================
"""
Run the collector HTTP API with uvicorn.
"""

import logging
from typing import Annotated, Optional

import typer

from beacon.utils.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Bind port")] = None,
    workers: Annotated[
        Optional[int], typer.Option("--workers", "-w", help="Worker processes")
    ] = None,
    init_schema: Annotated[
        bool, typer.Option("--init-schema", help="Create the schema before serving")
    ] = False,
) -> None:
    """Start the beacon collector (POST /api/send)."""
    import uvicorn

    settings = get_settings()
    level = "DEBUG" if settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if init_schema:
        from beacon.utils.db import ensure_schema

        ensure_schema(settings)

    uvicorn.run(
        "beacon.api.server:create_app",
        factory=True,
        host=host or settings.server.host,
        port=port or settings.server.port,
        workers=workers or settings.server.workers,
        log_level=level.lower(),
    )
