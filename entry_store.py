"""Ordered in-memory store of captured entries."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from entrydesk.ids import create_id


Entry = Dict[str, Any]
EntryValues = Dict[str, Any]
Clock = Callable[[], str]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EntryStore:
    """Entries newest-first, as they were created.

    Value maps are keyed by field storage key and may hold keys that no active
    field uses any more, or miss keys of fields added later.
    """

    def __init__(self, entries: List[Entry] | None = None, clock: Clock | None = None) -> None:
        self._entries: List[Entry] = copy.deepcopy(entries) if entries else []
        self._clock = clock or _now

    def now(self) -> str:
        return self._clock()

    def list(self) -> list[Entry]:
        return [copy.deepcopy(e) for e in self._entries]

    def count(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Entry | None:
        for entry in self._entries:
            if entry.get("id") == entry_id:
                return copy.deepcopy(entry)
        return None

    def create(self, values: EntryValues) -> Entry:
        now = self.now()
        entry = {
            "id": create_id("entry"),
            "created_at": now,
            "updated_at": now,
            "values": copy.deepcopy(values),
        }
        self._entries.insert(0, entry)
        return copy.deepcopy(entry)

    def replace_values(self, entry_id: str, values: EntryValues) -> Entry | None:
        for idx, entry in enumerate(self._entries):
            if entry.get("id") != entry_id:
                continue
            created_at = entry.get("created_at") or ""
            updated_at = max(self.now(), created_at)
            replacement = {**entry, "updated_at": updated_at, "values": copy.deepcopy(values)}
            self._entries[idx] = replacement
            return copy.deepcopy(replacement)
        return None

    def duplicate(self, entry_id: str) -> Entry | None:
        source = self.get(entry_id)
        if source is None:
            return None
        return self.create(source.get("values") or {})

    def delete(self, entry_id: str) -> bool:
        for idx, entry in enumerate(self._entries):
            if entry.get("id") == entry_id:
                del self._entries[idx]
                return True
        return False

    def clear(self) -> int:
        removed = len(self._entries)
        self._entries = []
        return removed

    def map_values(self, fn: Callable[[EntryValues], EntryValues]) -> None:
        """Rewrite every entry's value map; timestamps are left alone."""
        self._entries = [{**entry, "values": fn(dict(entry.get("values") or {}))} for entry in self._entries]
