# ==============================================================================
# Structured Data Flattening
# ==============================================================================
"""
Flatten arbitrary beacon data into typed key/value items.

Nested objects become dotted keys ({"a": {"b": 1}} -> "a.b"). Lists are kept
whole and stored as JSON text.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any

ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")


class DataType(IntEnum):
    STRING = 1
    NUMBER = 2
    BOOLEAN = 3
    DATE = 4
    ARRAY = 5


@dataclass(frozen=True)
class DataItem:
    key: str
    value: Any
    data_type: DataType

    @property
    def string_value(self) -> str | None:
        if self.data_type == DataType.NUMBER:
            return None
        if self.data_type == DataType.BOOLEAN:
            return "true" if self.value else "false"
        if self.data_type == DataType.ARRAY:
            return json.dumps(self.value, default=str)
        if self.data_type == DataType.DATE:
            return self.value.isoformat()
        return None if self.value is None else str(self.value)

    @property
    def number_value(self) -> float | int | None:
        return self.value if self.data_type == DataType.NUMBER else None

    @property
    def date_value(self) -> datetime | None:
        return self.value if self.data_type == DataType.DATE else None


def _parse_date(value: str) -> datetime | None:
    if not ISO_DATETIME.match(value):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def classify(value: Any) -> tuple[Any, DataType]:
    """Return (normalized value, type) for a leaf value."""
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return value, DataType.BOOLEAN
    if isinstance(value, (int, float)):
        return value, DataType.NUMBER
    if isinstance(value, (list, tuple)):
        return list(value), DataType.ARRAY
    if isinstance(value, str):
        parsed = _parse_date(value)
        if parsed is not None:
            return parsed, DataType.DATE
    return value, DataType.STRING


def flatten_data(data: dict[str, Any], prefix: str = "") -> list[DataItem]:
    """Flatten a (possibly nested) dict into DataItems, in key order."""
    items: list[DataItem] = []
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            items.extend(flatten_data(value, full_key))
            continue
        normalized, data_type = classify(value)
        items.append(DataItem(key=full_key, value=normalized, data_type=data_type))
    return items
