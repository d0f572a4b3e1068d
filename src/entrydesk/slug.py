"""Storage key helpers."""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def create_slug(value: str) -> str:
    """Lowercase ``value``, strip accents and join word runs with ``-``.

    >>> create_slug("Primary contact")
    'primary-contact'
    >>> create_slug("  Café / Bar ")
    'cafe-bar'
    """
    if not isinstance(value, str):
        return ""
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG.sub("-", ascii_value.lower()).strip("-")


def ensure_unique_key(base_key: str, existing_keys: Iterable[str]) -> str:
    existing = set(existing_keys)
    if base_key not in existing:
        return base_key
    counter = 1
    candidate = f"{base_key}-{counter}"
    while candidate in existing:
        counter += 1
        candidate = f"{base_key}-{counter}"
    return candidate
