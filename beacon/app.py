# ==============================================================================
# Beacon Collector CLI
# ==============================================================================
"""
Command-line interface for the beacon collector.

Usage:
    beacon --help
    beacon serve
    beacon status
    beacon config show
    beacon db init
    beacon db reset -y
    beacon token decode TOKEN
"""

import logging
import warnings

# Suppress noisy warnings before any imports
warnings.filterwarnings("ignore", category=DeprecationWarning)
logging.getLogger("opensearch").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
import os

import typer

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="beacon",
    help="Beacon collector CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Serve command is imported from beacon.cli.serve
from beacon.cli.serve import serve

app.command("serve")(serve)

# Status command is imported from beacon.cli.status
from beacon.cli.status import show_status

app.command("status")(show_status)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from beacon.cli.config import config_show

config_app.command("show")(config_show)

db_app = typer.Typer(
    help="Database schema operations",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")

from beacon.cli.db import db_init, db_reset

db_app.command("init")(db_init)
db_app.command("reset")(db_reset)

token_app = typer.Typer(
    help="Continuation token inspection",
    no_args_is_help=True,
)
app.add_typer(token_app, name="token")

from beacon.cli.token import token_decode

token_app.command("decode")(token_decode)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
