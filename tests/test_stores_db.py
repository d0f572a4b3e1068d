import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)
from contextlib import contextmanager
from unittest import mock

import psycopg2

import app.stores_db as stores_db
from app.stores import ENTRIES_BLOB, FIELDS_BLOB, PersistenceError


class TestDbBlobStore(unittest.TestCase):
    def setUp(self) -> None:
        self.conn = object()
        self.executed: list[tuple[str, list]] = []

        @contextmanager
        def _fake_conn():
            yield self.conn

        def _fake_execute(conn, sql, params=None, query_name=None):
            self.executed.append((query_name, params))
            return 1

        self.patches = [
            mock.patch.object(stores_db, "get_conn", _fake_conn),
            mock.patch.object(stores_db, "execute", _fake_execute),
        ]
        for patcher in self.patches:
            patcher.start()
        self.store = stores_db.DbBlobStore()

    def tearDown(self) -> None:
        for patcher in self.patches:
            patcher.stop()

    def test_save_many_upserts_each_blob_on_one_connection(self) -> None:
        self.store.save_many({FIELDS_BLOB: [{"id": "f1"}], ENTRIES_BLOB: []})
        names = [name for name, _ in self.executed]
        self.assertEqual(names, ["kv_blobs.create_table", "kv_blobs.upsert", "kv_blobs.upsert"])
        self.assertEqual(self.executed[1][1], [FIELDS_BLOB, '[{"id":"f1"}]'])

    def test_load_missing_returns_none(self) -> None:
        with mock.patch.object(stores_db, "fetch_one", return_value=None):
            self.assertIsNone(self.store.load(FIELDS_BLOB))

    def test_load_returns_decoded_value(self) -> None:
        with mock.patch.object(stores_db, "fetch_one", return_value={"value": [{"id": "e1"}]}):
            self.assertEqual(self.store.load(ENTRIES_BLOB), [{"id": "e1"}])

    def test_load_text_value_is_parsed(self) -> None:
        with mock.patch.object(stores_db, "fetch_one", return_value={"value": '[{"id":"e1"}]'}):
            self.assertEqual(self.store.load(ENTRIES_BLOB), [{"id": "e1"}])

    def test_driver_errors_become_persistence_errors(self) -> None:
        with mock.patch.object(stores_db, "fetch_one", side_effect=psycopg2.OperationalError("down")):
            with self.assertRaises(PersistenceError):
                self.store.load(FIELDS_BLOB)

    def test_schema_created_once(self) -> None:
        self.store.save_many({ENTRIES_BLOB: []})
        self.store.save_many({ENTRIES_BLOB: []})
        names = [name for name, _ in self.executed]
        self.assertEqual(names.count("kv_blobs.create_table"), 1)


if __name__ == "__main__":
    unittest.main()
