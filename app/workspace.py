"""Application state for the data-entry workspace.

One ``Workspace`` owns the field schema, the entry collection and the
submission state machine. Every mutation runs inside ``_transaction`` so a
field rename and the migration of every entry land together, then both blobs
are written in a single ``save_many`` call.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Dict, List

from entry_store import Clock, EntryStore
from field_store import FieldStore
from app.entries_search import filter_entries
from app.entries_validation import validate_entry
from app.export_csv import export_csv
from app.fields_validation import build_field, clean_field_patch, is_field_definition
from app.stores import ENTRIES_BLOB, FIELDS_BLOB, PersistenceError
from app.values_normalize import default_value, normalize_values


logger = logging.getLogger("entrydesk.workspace")

MODE_CREATING = "creating"
MODE_EDITING = "editing"

DEFAULT_FIELDS: List[dict] = [
    {
        "id": "field-company",
        "label": "Company",
        "key": "company",
        "type": "text",
        "required": True,
        "placeholder": "Acme Incorporated",
        "help_text": "Company or organization associated with this record.",
    },
    {
        "id": "field-contact",
        "label": "Primary contact",
        "key": "primary-contact",
        "type": "text",
        "required": True,
        "placeholder": "Jane Doe",
        "help_text": "Full name of the main point of contact.",
    },
    {
        "id": "field-email",
        "label": "Email address",
        "key": "email",
        "type": "email",
        "required": True,
        "placeholder": "jane@example.com",
    },
    {
        "id": "field-status",
        "label": "Status",
        "key": "status",
        "type": "select",
        "required": True,
        "options": ["New", "In Review", "Approved", "Archived"],
        "help_text": "Track the current state of this record.",
    },
    {
        "id": "field-notes",
        "label": "Notes",
        "key": "notes",
        "type": "textarea",
        "required": False,
        "placeholder": "Add context, blockers, next steps…",
    },
]


def _hydrate_fields(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return copy.deepcopy(DEFAULT_FIELDS)
    fields = []
    seen_keys: set[str] = set()
    for idx, item in enumerate(raw):
        if not is_field_definition(item):
            logger.warning("hydrate_skip_field index=%s", idx)
            continue
        if item["key"] in seen_keys:
            logger.warning("hydrate_skip_field index=%s duplicate_key=%s", idx, item["key"])
            continue
        seen_keys.add(item["key"])
        fields.append(dict(item))
    return fields


def _hydrate_entries(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return []
    entries = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("id"), str):
            logger.warning("hydrate_skip_entry index=%s", idx)
            continue
        created_at = item.get("created_at") if isinstance(item.get("created_at"), str) else ""
        updated_at = item.get("updated_at") if isinstance(item.get("updated_at"), str) else created_at
        values = item.get("values") if isinstance(item.get("values"), dict) else {}
        entries.append({"id": item["id"], "created_at": created_at, "updated_at": updated_at, "values": values})
    return entries


class Workspace:
    def __init__(self, blobs, clock: Clock | None = None) -> None:
        self._blobs = blobs
        self._clock = clock
        self._editing_entry_id: str | None = None
        self._draft: Dict[str, Any] | None = None
        self._fields = FieldStore(_hydrate_fields(self._load(FIELDS_BLOB)))
        self._entries = EntryStore(_hydrate_entries(self._load(ENTRIES_BLOB)), clock=clock)
        logger.info("workspace_hydrated fields=%s entries=%s", len(self._fields.list()), self._entries.count())

    def _load(self, key: str) -> Any | None:
        try:
            return self._blobs.load(key)
        except PersistenceError as exc:
            logger.warning("blob_load_failed key=%s error=%s", key, exc)
            return None

    def _persist(self, reason: str) -> None:
        try:
            self._blobs.save_many({FIELDS_BLOB: self._fields.list(), ENTRIES_BLOB: self._entries.list()})
        except PersistenceError as exc:
            logger.warning("blob_save_failed reason=%s error=%s", reason, exc)

    @contextmanager
    def _transaction(self, reason: str):
        fields_before = self._fields.list()
        entries_before = self._entries.list()
        try:
            yield
        except Exception:
            self._fields = FieldStore(fields_before)
            self._entries = EntryStore(entries_before, clock=self._clock)
            raise
        self._persist(reason)

    # -- read views -------------------------------------------------------

    def fields(self) -> list[dict]:
        return self._fields.list()

    def entries(self) -> list[dict]:
        return self._entries.list()

    def get_entry(self, entry_id: str) -> dict | None:
        return self._entries.get(entry_id)

    @property
    def mode(self) -> str:
        return MODE_EDITING if self._editing_entry_id else MODE_CREATING

    @property
    def editing_entry_id(self) -> str | None:
        return self._editing_entry_id

    def search(self, query: str | None = None) -> list[dict]:
        return filter_entries(self._entries.list(), self._fields.list(), query)

    def export(self) -> str | None:
        entries = self._entries.list()
        if not entries:
            return None
        return export_csv(self._fields.list(), entries)

    # -- field schema -----------------------------------------------------

    def add_field(self, definition: dict) -> dict:
        with self._transaction("add_field"):
            field = self._fields.add_field(definition)
        logger.info("field_added id=%s key=%s type=%s", field.get("id"), field.get("key"), field.get("type"))
        return field

    def create_field(self, draft: dict) -> dict:
        issues, field = build_field(draft, self._fields)
        if issues:
            return {"ok": False, "errors": issues, "field": None}
        return {"ok": True, "errors": [], "field": self.add_field(field)}

    def update_field(self, field_id: str, patch: dict) -> dict:
        current = self._fields.get(field_id)
        if current is None:
            return {"ok": True, "errors": [], "changed": False, "field": None}
        issues, clean = clean_field_patch(current, patch, self._fields)
        if issues:
            return {"ok": False, "errors": issues, "changed": False, "field": None}
        with self._transaction("update_field"):
            before, after = self._fields.update_field(field_id, clean)
            old_key, new_key = before.get("key"), after.get("key")
            if new_key != old_key:
                fallback = default_value(after)

                def _migrate(values: dict) -> dict:
                    value = values.pop(old_key, None)
                    values[new_key] = fallback if value is None else value
                    return values

                self._entries.map_values(_migrate)
                logger.info("field_key_migrated id=%s from=%s to=%s entries=%s", field_id, old_key, new_key, self._entries.count())
        return {"ok": True, "errors": [], "changed": True, "field": after}

    def delete_field(self, field_id: str) -> dict:
        if self._fields.get(field_id) is None:
            return {"ok": True, "deleted": False}
        with self._transaction("delete_field"):
            removed = self._fields.delete_field(field_id)
            key = removed.get("key")

            def _drop(values: dict) -> dict:
                values.pop(key, None)
                return values

            self._entries.map_values(_drop)
        logger.info("field_deleted id=%s key=%s", field_id, key)
        return {"ok": True, "deleted": True}

    # -- submission state machine -----------------------------------------

    def form_values(self) -> dict:
        """Values the entry form should display right now."""
        if self._draft is not None:
            return normalize_values(self._fields.list(), self._draft)
        initial = None
        if self._editing_entry_id:
            entry = self._entries.get(self._editing_entry_id)
            initial = entry.get("values") if entry else None
        return normalize_values(self._fields.list(), initial)

    def begin_edit(self, entry_id: str) -> bool:
        if self._entries.get(entry_id) is None:
            return False
        self._editing_entry_id = entry_id
        self._draft = None
        return True

    def cancel_edit(self) -> None:
        self._editing_entry_id = None
        self._draft = None

    def submit(self, values: dict | None) -> dict:
        fields = self._fields.list()
        cleaned = normalize_values(fields, values)
        errors = validate_entry(fields, cleaned)
        if errors:
            self._draft = cleaned
            logger.info("entry_invalid mode=%s fields=%s", self.mode, sorted(errors))
            return {"ok": False, "outcome": "invalid", "field_errors": errors, "entry": None}

        target_id = self._editing_entry_id
        if target_id is None:
            with self._transaction("create_entry"):
                entry = self._entries.create(cleaned)
            self.cancel_edit()
            logger.info("entry_created id=%s", entry["id"])
            return {"ok": True, "outcome": "created", "field_errors": {}, "entry": entry}

        if self._entries.get(target_id) is None:
            self.cancel_edit()
            logger.info("entry_update_target_missing id=%s", target_id)
            return {"ok": False, "outcome": "not_found", "field_errors": {}, "entry": None}
        with self._transaction("update_entry"):
            entry = self._entries.replace_values(target_id, cleaned)
        self.cancel_edit()
        logger.info("entry_updated id=%s", target_id)
        return {"ok": True, "outcome": "updated", "field_errors": {}, "entry": entry}

    # -- single-step entry operations -------------------------------------

    def duplicate_entry(self, entry_id: str) -> dict | None:
        if self._entries.get(entry_id) is None:
            return None
        with self._transaction("duplicate_entry"):
            copy_entry = self._entries.duplicate(entry_id)
        logger.info("entry_duplicated source=%s id=%s", entry_id, copy_entry["id"])
        return copy_entry

    def delete_entry(self, entry_id: str) -> bool:
        if self._entries.get(entry_id) is None:
            return False
        with self._transaction("delete_entry"):
            self._entries.delete(entry_id)
        if self._editing_entry_id == entry_id:
            self.cancel_edit()
        logger.info("entry_deleted id=%s", entry_id)
        return True

    def clear_entries(self) -> int:
        if self._entries.count() == 0:
            return 0
        with self._transaction("clear_entries"):
            removed = self._entries.clear()
        self.cancel_edit()
        logger.info("entries_cleared count=%s", removed)
        return removed
