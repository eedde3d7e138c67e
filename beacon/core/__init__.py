# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Domain logic of the beacon collector.

This module contains:
- Domain models (Beacon, CacheClaims, SessionRecord, EventRecord, ...)
- Identity derivation, continuation tokens, visit windows, URL normalization

The Collector orchestrator lives in beacon.core.collector; it is not
re-exported here because it depends on the ABCs in beacon.base, which in turn
use these models.
"""

from beacon.core.identity import derive_id, derive_session_id, derive_visit_id
from beacon.core.models import (
    Beacon,
    BeaconPayload,
    BeaconType,
    CacheClaims,
    ClientInfo,
    EventRecord,
    EventType,
    IdentityRecord,
    SessionRecord,
    Website,
)
from beacon.core.token import TokenCodec, decode_token, encode_token
from beacon.core.urls import NormalizedUrl, normalize, safe_decode_uri
from beacon.core.visit import VisitState, VisitWindow, VisitWindowResolver

__all__ = [
    "Beacon",
    "BeaconPayload",
    "BeaconType",
    "CacheClaims",
    "ClientInfo",
    "EventRecord",
    "EventType",
    "IdentityRecord",
    "NormalizedUrl",
    "SessionRecord",
    "TokenCodec",
    "VisitState",
    "VisitWindow",
    "VisitWindowResolver",
    "Website",
    "decode_token",
    "derive_id",
    "derive_session_id",
    "derive_visit_id",
    "encode_token",
    "normalize",
    "safe_decode_uri",
]
