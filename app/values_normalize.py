"""Type-directed coercion of raw form input into stored entry values."""

from __future__ import annotations

import math
from typing import Any, Callable, Dict

Value = Any
Normalizer = Callable[[Any], Value]


def stringify(value: Any) -> str:
    """Text form of a stored value, shared by text fields, search and export."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_number(raw: str) -> int | float | None:
    text = raw.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        parsed = float(text)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def _normalize_checkbox(raw: Any) -> bool:
    if raw is None:
        return False
    return bool(raw)


def _normalize_number(raw: Any) -> int | float | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return raw if math.isfinite(raw) else None
    if isinstance(raw, str):
        return _parse_number(raw)
    return None


def _normalize_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return stringify(raw)


NORMALIZERS: Dict[str, Normalizer] = {
    "checkbox": _normalize_checkbox,
    "number": _normalize_number,
    "text": _normalize_text,
    "textarea": _normalize_text,
    "date": _normalize_text,
    "time": _normalize_text,
    "email": _normalize_text,
    "phone": _normalize_text,
    "select": _normalize_text,
}


def normalize_value(field: dict, raw: Any) -> Value:
    """Coerce ``raw`` to the canonical value for ``field``'s type.

    Never raises: unparseable numbers collapse to None, unknown types are
    treated as text.
    """
    ftype = field.get("type") if isinstance(field, dict) else None
    return NORMALIZERS.get(ftype, _normalize_text)(raw)


def default_value(field: dict) -> Value:
    return normalize_value(field, None)


def normalize_values(fields: list[dict], values: dict | None) -> dict:
    source = values if isinstance(values, dict) else {}
    normalized: dict = {}
    for field in fields:
        key = field.get("key")
        if not isinstance(key, str):
            continue
        normalized[key] = normalize_value(field, source.get(key))
    return normalized
