# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the beacon collector CLI.
"""

import json
from typing import Annotated

import typer

from beacon.cli.shared import C
from beacon.utils.config import get_settings


def _mask(value: str | None) -> str:
    return "********" if value else "(not set)"


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()
    collector = settings.collector

    if json_output:
        config = {
            "collector": {
                "app_secret": collector.app_secret,
                "storage_mode": collector.storage_mode,
                "disable_bot_check": collector.disable_bot_check,
                "remove_trailing_slash": collector.remove_trailing_slash,
                "ignore_ip": collector.blocked_networks,
                "client_ip_header": collector.client_ip_header,
                "visit_timeout_seconds": collector.visit_timeout_seconds,
                "token_max_age_seconds": collector.token_max_age_seconds,
                "cache_header": collector.cache_header,
            },
            "postgresql": {
                "host": settings.postgres.host,
                "port": settings.postgres.port,
                "database": settings.postgres.database,
                "schema": settings.postgres.schema_name,
                "user": settings.postgres.user,
                "password": settings.postgres.password,
                "sslmode": settings.postgres.sslmode,
            },
            "opensearch": {
                "host": settings.opensearch.host,
                "port": settings.opensearch.port,
                "ssl_enabled": settings.opensearch.use_ssl,
                "verify_certs": settings.opensearch.verify_certs,
                "user": settings.opensearch.user,
                "password": settings.opensearch.password,
                "events_index": settings.opensearch.events_index,
                "session_data_index": settings.opensearch.session_data_index,
            },
            "valkey": {
                "enabled": settings.valkey.enabled,
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
                "lookup_ttl_seconds": settings.valkey.lookup_ttl_seconds,
                "key_prefix": settings.valkey.key_prefix,
            },
            "server": {
                "host": settings.server.host,
                "port": settings.server.port,
                "workers": settings.server.workers,
            },
        }
        print(json.dumps(config, indent=2))
        return

    # Human-readable output
    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Collector{C.RESET}")
    print(f"  Secret:     {C.WHITE}{_mask(collector.app_secret)}{C.RESET}")
    print(f"  Storage:    {C.WHITE}{collector.storage_mode}{C.RESET}")
    bot_check = "disabled" if collector.disable_bot_check else "enabled"
    print(f"  Bot check:  {C.WHITE}{bot_check}{C.RESET}")
    slash = "removed" if collector.remove_trailing_slash else "kept"
    print(f"  Trailing /: {C.WHITE}{slash}{C.RESET}")
    ignored = ", ".join(collector.blocked_networks) or "(none)"
    print(f"  Ignore IP:  {C.WHITE}{ignored}{C.RESET}")
    print(f"  Visit:      {C.WHITE}{collector.visit_timeout_seconds // 60} minutes{C.RESET}")
    print(f"  Header:     {C.WHITE}{collector.cache_header}{C.RESET}")
    print()

    print(f"{C.CYAN}PostgreSQL{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.postgres.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.postgres.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.postgres.database}{C.RESET}")
    print(f"  Schema:     {C.WHITE}{settings.postgres.schema_name}{C.RESET}")
    print(f"  User:       {C.WHITE}{settings.postgres.user}{C.RESET}")
    print(f"  SSL:        {C.WHITE}{settings.postgres.sslmode}{C.RESET}")
    print()

    if collector.storage_mode == "opensearch":
        print(f"{C.CYAN}OpenSearch{C.RESET}")
        print(f"  Host:       {C.WHITE}{settings.opensearch.host}{C.RESET}")
        print(f"  Port:       {C.WHITE}{settings.opensearch.port}{C.RESET}")
        opensearch_ssl = "enabled" if settings.opensearch.use_ssl else "disabled"
        print(f"  SSL:        {C.WHITE}{opensearch_ssl}{C.RESET}")
        print(f"  User:       {C.WHITE}{settings.opensearch.user}{C.RESET}")
        print(f"  Events:     {C.WHITE}{settings.opensearch.events_index}{C.RESET}")
        print(f"  Data:       {C.WHITE}{settings.opensearch.session_data_index}{C.RESET}")
        print()

    print(f"{C.CYAN}Valkey{C.RESET}")
    valkey_status = "enabled" if settings.valkey.enabled else "disabled"
    print(f"  Status:     {C.WHITE}{valkey_status}{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.valkey.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.valkey.port}{C.RESET}")
    print(f"  TTL:        {C.WHITE}{settings.valkey.lookup_ttl_seconds}s{C.RESET}")
    print()

    print(f"{C.CYAN}Server{C.RESET}")
    print(f"  Bind:       {C.WHITE}{settings.server.host}:{settings.server.port}{C.RESET}")
    print(f"  Workers:    {C.WHITE}{settings.server.workers}{C.RESET}")
    print()
