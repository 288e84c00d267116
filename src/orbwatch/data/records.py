"""Validation helpers for inbound feed records.

Feed payloads arrive as loosely-typed JSON. These helpers check the
fields the engine relies on and convert them to plain Python values, so
that malformed records are rejected at the boundary instead of leaking
``None`` or strings into the typed entities.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


def require_mapping(record: Any) -> Mapping[str, Any]:
    """Return ``record`` if it is a JSON object.

    Raises:
        ValueError: If the record is null, a number, a list or any other non-object.
    """
    if not isinstance(record, Mapping):
        raise ValueError(f"Expected an object record, got {type(record).__name__}")
    return record


def require_str(record: Mapping[str, Any], key: str) -> str:
    """Return a non-empty string field.

    Raises:
        ValueError: If the field is missing, not a string, or blank.
    """
    value = record.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Missing or invalid field {key!r}: {value!r}")
    return value.strip()


def require_float(record: Mapping[str, Any], *keys: str) -> float:
    """Return the first present field among ``keys`` as a finite float.

    Raises:
        ValueError: If none of the fields is present or the value is not a finite number.
    """
    for key in keys:
        if key in record and record[key] is not None:
            return _to_float(record[key], key)
    raise ValueError(f"Missing required field {keys[0]!r}")


def optional_float(record: Mapping[str, Any], key: str) -> float | None:
    """Return a numeric field, or None if it is absent or null."""
    if record.get(key) is None:
        return None
    return _to_float(record[key], key)


def optional_str(record: Mapping[str, Any], *keys: str) -> str | None:
    """Return the first non-blank field among ``keys`` as a string, or None."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into a timezone-aware UTC datetime.

    Accepts a trailing ``Z`` and naive values (assumed UTC).

    Raises:
        ValueError: If the value is not a parseable timestamp.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid timestamp: {value!r}") from None
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def unpack_warning_payload(payload: Any) -> tuple[int, list[Mapping[str, Any]]]:
    """Split a warning feed payload into (warning_count, conjunction records).

    The feed normally answers ``{"warningCount": n, "conjunctions": [...]}``;
    a bare list is accepted as the conjunction list.

    Raises:
        ValueError: If the payload has neither shape.
    """
    if isinstance(payload, list):
        records = payload
        count = len(records)
    elif isinstance(payload, Mapping):
        records = payload.get("conjunctions")
        if records is None:
            records = []
        if not isinstance(records, list):
            raise ValueError(f"'conjunctions' must be a list, got {type(records).__name__}")
        raw_count = payload.get("warningCount", len(records))
        try:
            count = int(raw_count)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid warningCount %r", raw_count)
            count = len(records)
    else:
        raise ValueError(f"Unexpected warning payload type: {type(payload).__name__}")

    kept = [r for r in records if isinstance(r, Mapping)]
    if len(kept) != len(records):
        logger.warning("Dropped %d non-object conjunction records", len(records) - len(kept))
    return count, kept


def _to_float(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Field {key!r} must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Field {key!r} must be numeric, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"Field {key!r} must be finite, got {value!r}")
    return number
