"""Entry Desk kernel utilities."""

from .canonical_json import CanonicalJsonTypeError, canonical_dumps, canonical_loads
from .ids import create_id
from .slug import create_slug, ensure_unique_key

__all__ = [
    "CanonicalJsonTypeError",
    "canonical_dumps",
    "canonical_loads",
    "create_id",
    "create_slug",
    "ensure_unique_key",
]
