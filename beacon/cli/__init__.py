# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for the beacon collector.

Commands are organized into separate modules for maintainability:
- shared.py: Colors, box drawing and report helpers
- serve.py: Run the HTTP API
- status.py: Service health
- config.py: Show configuration
- db.py: Schema init/reset
- token.py: Continuation token inspection
"""

from beacon.cli.shared import (
    BOX_WIDTH,
    B,
    Box,
    C,
    Colors,
    I,
    Icons,
    print_fail,
    print_ok,
)

__all__ = [
    "BOX_WIDTH",
    "B",
    "Box",
    "C",
    "Colors",
    "I",
    "Icons",
    "print_fail",
    "print_ok",
]
