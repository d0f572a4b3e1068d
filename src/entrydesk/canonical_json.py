"""Canonical JSON encoding for persisted blobs."""

from __future__ import annotations

import json
import math
from typing import Any


class CanonicalJsonTypeError(TypeError):
    """Raised when a blob holds a value JSON cannot represent."""


def _check(obj: Any, path: str = "$") -> None:
    if obj is None or isinstance(obj, (str, bool, int)):
        return
    if isinstance(obj, float):
        if not math.isfinite(obj):
            raise ValueError(f"Non-finite float at {path}: {obj!r}")
        return
    if isinstance(obj, dict):
        for key, value in obj.items():
            if not isinstance(key, str):
                raise CanonicalJsonTypeError(f"Unsupported key type at {path}: {type(key).__name__}")
            _check(value, f"{path}.{key}")
        return
    if isinstance(obj, (list, tuple)):
        for idx, item in enumerate(obj):
            _check(item, f"{path}[{idx}]")
        return
    raise CanonicalJsonTypeError(f"Unsupported type at {path}: {type(obj).__name__}")


def canonical_dumps(obj: Any) -> str:
    """Serialize ``obj`` with sorted keys, compact separators and no NaN/Infinity.

    List order is preserved, which keeps field and entry ordering stable across
    a save/load cycle.
    """
    _check(obj)
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number in blob: {name}")


def canonical_loads(text: str | bytes) -> Any:
    """Parse a blob written by :func:`canonical_dumps`.

    ``NaN`` and ``Infinity`` literals are rejected so a hand-edited blob cannot
    smuggle non-finite numbers into entry values.
    """
    if isinstance(text, (bytes, bytearray)):
        text = text.decode("utf-8")
    return json.loads(text, parse_constant=_reject_constant)
