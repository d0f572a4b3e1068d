"""Field definition checks: designer drafts, patches and stored definitions."""

from __future__ import annotations

from typing import Any, Dict

from entrydesk.ids import create_id
from entrydesk.slug import create_slug
from field_store import FIELD_TYPES, FieldStore


Issue = Dict[str, Any]


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_options(raw: Any) -> list[str]:
    """Accept a list of strings or a comma separated string."""
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, list):
        items = [item for item in raw if isinstance(item, str)]
    else:
        return []
    return [item.strip() for item in items if item.strip()]


def build_field(draft: dict, store: FieldStore) -> tuple[list[Issue], dict | None]:
    """Turn a designer draft into a definition with a unique storage key."""
    issues: list[Issue] = []
    if not isinstance(draft, dict):
        return [_issue("FIELD_INVALID", "Field draft must be an object")], None
    label = _clean_text(draft.get("label"))
    if not label:
        issues.append(_issue("LABEL_REQUIRED", "Field label is required", "label"))
    ftype = draft.get("type") or "text"
    if ftype not in FIELD_TYPES:
        issues.append(_issue("TYPE_INVALID", f"type must be one of {list(FIELD_TYPES)}", "type"))
    options = parse_options(draft.get("options")) if ftype == "select" else None
    if ftype == "select" and not options:
        issues.append(_issue("OPTIONS_REQUIRED", "Select fields need at least one option", "options"))
    if issues:
        return issues, None

    field = {
        "id": create_id("field"),
        "label": label,
        "key": store.derive_key(label),
        "type": ftype,
        "required": bool(draft.get("required")),
    }
    placeholder = _clean_text(draft.get("placeholder"))
    if placeholder:
        field["placeholder"] = placeholder
    help_text = _clean_text(draft.get("help_text"))
    if help_text:
        field["help_text"] = help_text
    if options:
        field["options"] = options
    return [], field


def clean_field_patch(field: dict, patch: dict, store: FieldStore) -> tuple[list[Issue], dict]:
    """Keep the patchable attributes of ``patch``, trimmed and checked.

    ``id`` and ``type`` are immutable and silently ignored. Placeholder and
    help text that trim to nothing come back as None, which clears them.
    """
    issues: list[Issue] = []
    clean: dict = {}
    if not isinstance(patch, dict):
        return [_issue("PATCH_INVALID", "Field patch must be an object")], clean

    if "label" in patch:
        label = _clean_text(patch.get("label"))
        if label:
            clean["label"] = label
    for name in ("placeholder", "help_text"):
        if name in patch:
            clean[name] = _clean_text(patch.get(name))
    if "required" in patch:
        clean["required"] = bool(patch.get("required"))
    if "options" in patch and field.get("type") == "select":
        options = parse_options(patch.get("options"))
        if not options:
            issues.append(_issue("OPTIONS_REQUIRED", "Select fields need at least one option", "options"))
        else:
            clean["options"] = options
    if "key" in patch:
        key = create_slug(patch.get("key")) if isinstance(patch.get("key"), str) else ""
        if not key:
            issues.append(_issue("KEY_INVALID", "Storage key must contain letters or digits", "key"))
        elif key != field.get("key"):
            taken = {f.get("key") for f in store.list() if f.get("id") != field.get("id")}
            if key in taken:
                issues.append(_issue("KEY_CONFLICT", f"Storage key already in use: {key}", "key", {"key": key}))
            else:
                clean["key"] = key
    return issues, clean


def is_field_definition(item: Any) -> bool:
    """Shape check used when hydrating stored definitions."""
    if not isinstance(item, dict):
        return False
    if not isinstance(item.get("id"), str) or not item.get("id"):
        return False
    if not isinstance(item.get("key"), str) or not item.get("key"):
        return False
    if item.get("type") not in FIELD_TYPES:
        return False
    if item.get("type") == "select":
        options = item.get("options")
        if not isinstance(options, list) or not options:
            return False
    return isinstance(item.get("label"), str)
