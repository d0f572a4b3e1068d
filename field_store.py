"""Ordered in-memory store of field definitions."""

from __future__ import annotations

import copy
from typing import Any, Dict, List

from entrydesk.slug import create_slug, ensure_unique_key


FieldDef = Dict[str, Any]

FIELD_TYPES = ("text", "textarea", "number", "date", "time", "email", "phone", "select", "checkbox")

PATCHABLE_KEYS = ("label", "key", "placeholder", "help_text", "required", "options")


class FieldStore:
    """Holds the active field definitions in display order.

    The store never touches entries. Cascades that follow a key rename or a
    delete are applied by the workspace in the same state transition.
    """

    def __init__(self, fields: List[FieldDef] | None = None) -> None:
        self._fields: List[FieldDef] = copy.deepcopy(fields) if fields else []

    def list(self) -> list[FieldDef]:
        return [copy.deepcopy(f) for f in self._fields]

    def get(self, field_id: str) -> FieldDef | None:
        for field in self._fields:
            if field.get("id") == field_id:
                return copy.deepcopy(field)
        return None

    def keys(self) -> list[str]:
        return [f.get("key") for f in self._fields if isinstance(f.get("key"), str)]

    def derive_key(self, label: str) -> str:
        base_key = create_slug(label) or f"field-{len(self._fields) + 1}"
        return ensure_unique_key(base_key, self.keys())

    def add_field(self, definition: FieldDef) -> FieldDef:
        field = copy.deepcopy(definition)
        self._fields.append(field)
        return copy.deepcopy(field)

    def update_field(self, field_id: str, patch: dict) -> tuple[FieldDef, FieldDef] | None:
        """Apply ``patch`` and return ``(before, after)``, or None for an unknown id."""
        for idx, field in enumerate(self._fields):
            if field.get("id") != field_id:
                continue
            before = copy.deepcopy(field)
            updated = dict(field)
            for name in PATCHABLE_KEYS:
                if name not in patch:
                    continue
                value = copy.deepcopy(patch[name])
                if value is None and name in ("placeholder", "help_text", "options"):
                    updated.pop(name, None)
                else:
                    updated[name] = value
            self._fields[idx] = updated
            return before, copy.deepcopy(updated)
        return None

    def delete_field(self, field_id: str) -> FieldDef | None:
        for idx, field in enumerate(self._fields):
            if field.get("id") == field_id:
                del self._fields[idx]
                return copy.deepcopy(field)
        return None
