# ==============================================================================
# HTTP API
# ==============================================================================
"""
FastAPI surface of the collector (POST /api/send, GET /health).
"""

from beacon.api.server import create_app, get_collector

__all__ = [
    "create_app",
    "get_collector",
]
