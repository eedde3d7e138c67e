# ==============================================================================
# Token Commands
# ==============================================================================
"""
Inspect continuation tokens issued by this deployment.
"""

import json
from datetime import datetime, timezone
from typing import Annotated

import typer

from beacon.cli.shared import C, print_fail
from beacon.core.identity import hash_value
from beacon.core.token import decode_token
from beacon.infrastructure.factory import get_secret
from beacon.utils.config import get_settings


def token_decode(
    token: Annotated[str, typer.Argument(help="Value of the continuation token header")],
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output claims as JSON")
    ] = False,
) -> None:
    """Verify a continuation token with the configured secret and show its claims."""
    settings = get_settings()
    claims = decode_token(
        token,
        hash_value(get_secret(settings)),
        max_age=settings.collector.token_max_age_seconds,
    )
    if claims is None:
        print_fail("Token is invalid, expired or signed with another secret")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(claims.to_token_claims(), indent=2))
        return

    issued = datetime.fromtimestamp(claims.iat, tz=timezone.utc)
    print()
    print(f"  Website:  {C.WHITE}{claims.website_id}{C.RESET}")
    print(f"  Session:  {C.WHITE}{claims.session_id}{C.RESET}")
    print(f"  Visit:    {C.WHITE}{claims.visit_id}{C.RESET}")
    print(f"  Issued:   {C.WHITE}{issued.isoformat()}{C.RESET}")
    print()
