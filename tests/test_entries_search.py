import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)
from app.entries_search import filter_entries
from app.export_csv import export_csv


FIELDS = [
    {"key": "company", "label": "Company", "type": "text"},
    {"key": "amount", "label": "Amount", "type": "number"},
    {"key": "active", "label": "Active", "type": "checkbox"},
]


def _entry(entry_id: str, updated_at: str, **values) -> dict:
    return {"id": entry_id, "created_at": "2026-01-01T00:00:00.000Z", "updated_at": updated_at, "values": values}


class TestEntriesSearch(unittest.TestCase):
    def setUp(self) -> None:
        self.entries = [
            _entry("entry-a", "2026-01-02T00:00:00.000Z", company="Acme", amount=12),
            _entry("entry-b", "2026-01-05T00:00:00.000Z", company="Globex", active=True),
            _entry("entry-c", "2026-01-02T00:00:00.000Z", company="Initech", legacy="hidden"),
        ]

    def test_empty_query_returns_all_newest_first(self) -> None:
        for query in (None, "", "   "):
            result = filter_entries(self.entries, FIELDS, query)
            self.assertEqual([e["id"] for e in result], ["entry-b", "entry-a", "entry-c"])

    def test_ties_keep_collection_order(self) -> None:
        reordered = [self.entries[2], self.entries[0]]
        result = filter_entries(reordered, FIELDS, "")
        self.assertEqual([e["id"] for e in result], ["entry-c", "entry-a"])

    def test_case_insensitive_value_match(self) -> None:
        result = filter_entries(self.entries, FIELDS, "  GLOBEX ")
        self.assertEqual([e["id"] for e in result], ["entry-b"])

    def test_numbers_and_booleans_match_string_form(self) -> None:
        self.assertEqual([e["id"] for e in filter_entries(self.entries, FIELDS, "12")], ["entry-a"])
        self.assertEqual([e["id"] for e in filter_entries(self.entries, FIELDS, "true")], ["entry-b"])

    def test_matches_metadata(self) -> None:
        self.assertEqual([e["id"] for e in filter_entries(self.entries, FIELDS, "entry-c")], ["entry-c"])
        self.assertEqual(len(filter_entries(self.entries, FIELDS, "2026-01-01")), 3)

    def test_orphaned_keys_are_not_searched(self) -> None:
        self.assertEqual(filter_entries(self.entries, FIELDS, "hidden"), [])

    def test_no_match(self) -> None:
        self.assertEqual(filter_entries(self.entries, FIELDS, "zzz-nothing"), [])


class TestExportCsv(unittest.TestCase):
    def test_header_and_rows_in_field_order(self) -> None:
        entries = [
            _entry("e1", "2026-01-01T00:00:00.000Z", amount=4.0, company="Acme, Inc.", active=False),
            _entry("e2", "2026-01-01T00:00:00.000Z", company="Globex", extra="x"),
        ]
        out = export_csv(FIELDS, entries)
        lines = out.splitlines()
        self.assertEqual(lines[0], "Company,Amount,Active")
        self.assertEqual(lines[1], '"Acme, Inc.",4,false')
        self.assertEqual(lines[2], "Globex,,")

    def test_header_only_without_entries(self) -> None:
        self.assertEqual(export_csv(FIELDS, []), "Company,Amount,Active\n")


if __name__ == "__main__":
    unittest.main()
