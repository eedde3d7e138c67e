# ==============================================================================
# Beacon Collector
# ==============================================================================
"""
Web analytics beacon collector.

Receives pageview, custom event and identity beacons, resolves the website,
session and visit they belong to, and persists them to PostgreSQL or
OpenSearch.
"""

__version__ = "0.1.0"
