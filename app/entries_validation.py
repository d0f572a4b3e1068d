"""Required-field checks for entry submissions."""

from __future__ import annotations

from app.values_normalize import normalize_value

REQUIRED_MESSAGE = "This field is required."
CHECKBOX_REQUIRED_MESSAGE = "This checkbox must be selected."


def validate_entry(fields: list[dict], values: dict | None) -> dict[str, str]:
    """Return ``{field_key: message}`` for every required field left empty.

    Fields are checked independently so every problem is reported at once.
    An empty map means the submission may proceed.
    """
    source = values if isinstance(values, dict) else {}
    errors: dict[str, str] = {}
    for field in fields:
        if not field.get("required"):
            continue
        key = field.get("key")
        if not isinstance(key, str):
            continue
        value = normalize_value(field, source.get(key))
        if field.get("type") == "checkbox":
            if not value:
                errors[key] = CHECKBOX_REQUIRED_MESSAGE
            continue
        if value is None or value == "":
            errors[key] = REQUIRED_MESSAGE
    return errors


def field_errors_to_issues(errors: dict[str, str]) -> list[dict]:
    return [
        {"code": "REQUIRED_FIELD", "message": message, "path": key, "detail": None}
        for key, message in errors.items()
    ]
