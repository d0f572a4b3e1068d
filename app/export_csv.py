"""CSV export of entries in field order."""

from __future__ import annotations

import csv
import io

from app.values_normalize import stringify

EXPORT_FILENAME = "data-entries.csv"


def export_csv(fields: list[dict], entries: list[dict]) -> str:
    """Header row of field labels, then one row per entry.

    Values are written in field order; keys without an active field are not
    exported and missing values become empty cells.
    """
    out = io.StringIO(newline="")
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow([field.get("label") or field.get("key") or "" for field in fields])
    for entry in entries:
        values = entry.get("values") if isinstance(entry.get("values"), dict) else {}
        writer.writerow([stringify(values.get(field.get("key"))) for field in fields])
    return out.getvalue()

