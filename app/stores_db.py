"""Postgres-backed blob store."""

from __future__ import annotations

from typing import Any, Dict

import psycopg2

from app.db import execute, fetch_one, get_conn
from app.stores import PersistenceError
from entrydesk.canonical_json import canonical_dumps, canonical_loads


_SCHEMA_SQL = """
create table if not exists kv_blobs (
    key text primary key,
    value jsonb not null,
    updated_at timestamptz not null default now()
)
"""


class DbBlobStore:
    """Blobs as jsonb rows in ``kv_blobs``.

    ``save_many`` writes every blob on one connection, so both collections
    commit or roll back together.
    """

    def __init__(self) -> None:
        self._schema_ready = False

    def _ensure_schema(self, conn) -> None:
        if self._schema_ready:
            return
        execute(conn, _SCHEMA_SQL, query_name="kv_blobs.create_table")
        self._schema_ready = True

    def load(self, key: str) -> Any | None:
        try:
            with get_conn() as conn:
                self._ensure_schema(conn)
                row = fetch_one(
                    conn,
                    "select value from kv_blobs where key=%s",
                    [key],
                    query_name="kv_blobs.get",
                )
        except psycopg2.Error as exc:
            raise PersistenceError(f"Failed to read blob {key}: {exc}") from exc
        if not row:
            return None
        value = row.get("value")
        if isinstance(value, str):
            try:
                value = canonical_loads(value)
            except ValueError as exc:
                raise PersistenceError(f"Corrupt blob {key}: {exc}") from exc
        return value

    def save_many(self, blobs: Dict[str, Any]) -> None:
        try:
            encoded = {key: canonical_dumps(value) for key, value in blobs.items()}
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Blob not serializable: {exc}") from exc
        try:
            with get_conn() as conn:
                self._ensure_schema(conn)
                for key, data in encoded.items():
                    execute(
                        conn,
                        """
                        insert into kv_blobs (key, value, updated_at)
                        values (%s, %s::jsonb, now())
                        on conflict (key) do update set value=excluded.value, updated_at=excluded.updated_at
                        """,
                        [key, data],
                        query_name="kv_blobs.upsert",
                    )
        except psycopg2.Error as exc:
            raise PersistenceError(f"Failed to write blobs {sorted(blobs)}: {exc}") from exc
