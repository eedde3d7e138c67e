# ==============================================================================
# Database Commands
# ==============================================================================
"""
Schema management commands for the beacon collector CLI.

PostgreSQL always holds the website table. In opensearch storage mode the
event and session data indices are created as well.
"""

from typing import Annotated

import typer

from beacon.cli.shared import C, print_fail, print_ok
from beacon.utils.config import Settings, get_settings


def _ensure_indices(settings: Settings) -> None:
    from opensearchpy.exceptions import OpenSearchException

    from beacon.infrastructure.search import OpenSearchStore

    store = OpenSearchStore(settings)
    try:
        store.open()
        created = store.ensure_indices()
    except OpenSearchException as e:
        print_fail("Failed to create OpenSearch indices", str(e))
        raise typer.Exit(1)
    finally:
        store.close()

    if created:
        print_ok(f"Created indices {C.WHITE}{', '.join(created)}{C.RESET}")
    else:
        print_ok("OpenSearch indices already exist")


# ==============================================================================
# Commands
# ==============================================================================


def db_init() -> None:
    """Create the collector schema if it does not exist (idempotent)."""
    from beacon.infrastructure.repositories import check_postgresql_connection
    from beacon.utils.db import ensure_schema

    settings = get_settings()
    schema = settings.postgres.schema_name

    print()
    if not check_postgresql_connection(settings):
        print_fail("Cannot connect to PostgreSQL", f"{settings.postgres.host}:{settings.postgres.port}")
        raise typer.Exit(1)

    try:
        created = ensure_schema(settings)
    except RuntimeError as e:
        print_fail("Schema initialization failed", str(e))
        raise typer.Exit(1)

    if created:
        print_ok(f"Schema {C.WHITE}{schema}{C.RESET} created")
    else:
        print_ok(f"Schema {C.WHITE}{schema}{C.RESET} already exists")

    if settings.collector.storage_mode == "opensearch":
        _ensure_indices(settings)
    print()


def db_reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Drop and recreate the collector schema.

    WARNING: deletes all websites, sessions, events and session data.

    Examples:
        beacon db reset       # With confirmation prompt
        beacon db reset -y    # Skip confirmation
    """
    from beacon.infrastructure.repositories import check_postgresql_connection
    from beacon.utils.db import reset_schema

    settings = get_settings()
    schema = settings.postgres.schema_name

    if not confirm:
        typer.confirm(
            f"This will DELETE all data in schema '{schema}'. Are you sure?",
            abort=True,
        )

    print()
    if not check_postgresql_connection(settings):
        print_fail("Cannot connect to PostgreSQL", f"{settings.postgres.host}:{settings.postgres.port}")
        raise typer.Exit(1)

    try:
        reset_schema(settings)
    except RuntimeError as e:
        print_fail("Schema reset failed", str(e))
        raise typer.Exit(1)
    print_ok(f"Schema {C.WHITE}{schema}{C.RESET} reset")
    print()
