"""VMetrics — Raw Record Normalizer.

Maps heterogeneous upstream rows onto CanonicalRecord using the synonym
table. Missing or unusable values resolve to 0; nothing here raises.
"""

import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from vmetrics.engine.synonyms import (
    NUMERIC_SYNONYMS,
    STATUS_CODES,
    TEXT_SYNONYMS,
    UNKNOWN_STATUS_CODE,
)
from vmetrics.models.records import CanonicalRecord

_MISSING = object()


def _lookup(raw: Mapping[str, Any], key: str) -> Any:
    """Follow a dotted key through nested mappings."""
    node: Any = raw
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def to_finite_float(value: Any) -> Optional[float]:
    """Return value as a finite float, or None if it is not a usable number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def resolve_first(raw: Mapping[str, Any], keys: Sequence[str]) -> float:
    """First finite numeric value among keys, else 0.0."""
    for key in keys:
        number = to_finite_float(_lookup(raw, key))
        if number is not None:
            return number
    return 0.0


def resolve_text(raw: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    """First non-blank scalar among keys, as stripped text."""
    for key in keys:
        value = _lookup(raw, key)
        if value is _MISSING or value is None or isinstance(value, Mapping):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _resolve_status(raw: Mapping[str, Any]) -> str:
    value: Any = _MISSING
    for key in TEXT_SYNONYMS["status"]:
        value = _lookup(raw, key)
        if value is not _MISSING and value is not None:
            break
    if isinstance(value, bool) or value is _MISSING or value is None:
        return "active"
    if isinstance(value, int):
        return STATUS_CODES.get(value, UNKNOWN_STATUS_CODE)
    text = str(value).strip().lower()
    if text.isdigit():
        return STATUS_CODES.get(int(text), UNKNOWN_STATUS_CODE)
    return text or "active"


def normalize(raw: Mapping[str, Any]) -> CanonicalRecord:
    """Normalize one upstream row."""
    numbers = {
        field: resolve_first(raw, keys) for field, keys in NUMERIC_SYNONYMS.items()
    }
    return CanonicalRecord(
        **numbers,
        id=resolve_text(raw, TEXT_SYNONYMS["id"]) or "",
        name=resolve_text(raw, TEXT_SYNONYMS["name"]) or "",
        source=resolve_text(raw, TEXT_SYNONYMS["source"]) or "",
        status=_resolve_status(raw),
        date=resolve_text(raw, TEXT_SYNONYMS["date"]),
    )


def normalize_many(raws: Iterable[Any]) -> List[CanonicalRecord]:
    """Normalize a response body's rows, skipping entries that are not mappings."""
    return [normalize(raw) for raw in raws if isinstance(raw, Mapping)]
