"""Free-text filtering over entries."""

from __future__ import annotations

from app.values_normalize import stringify


def sort_by_updated(entries: list[dict]) -> list[dict]:
    # sorted() is stable with reverse=True, so ties keep collection order
    return sorted(entries, key=lambda e: e.get("updated_at") or "", reverse=True)


def entry_matches(entry: dict, fields: list[dict], needle: str) -> bool:
    for meta in ("id", "created_at", "updated_at"):
        value = entry.get(meta)
        if isinstance(value, str) and needle in value.lower():
            return True
    values = entry.get("values") if isinstance(entry.get("values"), dict) else {}
    for field in fields:
        value = values.get(field.get("key"))
        if value is None:
            continue
        if needle in stringify(value).lower():
            return True
    return False


def filter_entries(entries: list[dict], fields: list[dict], query: str | None) -> list[dict]:
    ordered = sort_by_updated(entries)
    needle = (query or "").strip().lower()
    if not needle:
        return ordered
    return [entry for entry in ordered if entry_matches(entry, fields, needle)]
