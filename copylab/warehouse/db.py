"""DuckDB-backed durable key-value store.

One table holds every key. Writes replace the whole value for a key, so a
reader never sees a partially written assignment map.
"""

from pathlib import Path

import duckdb

DEFAULT_DB_PATH = "data/copylab.duckdb"

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key VARCHAR PRIMARY KEY,
    value VARCHAR NOT NULL
)
"""


def get_connection(path: str = DEFAULT_DB_PATH) -> duckdb.DuckDBPyConnection:
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(path)


def init_db(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(SCHEMA)


class DuckDBStorage:
    """Durable storage scope backed by a DuckDB database file.

    Pass ":memory:" for a throwaway database (useful in tests).
    """

    def __init__(self, path: str = DEFAULT_DB_PATH, conn: duckdb.DuckDBPyConnection | None = None):
        self.path = path
        self._conn = conn if conn is not None else get_connection(path)
        init_db(self._conn)

    def get_item(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", [key]
        ).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
            [key, value],
        )

    def remove_item(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    def close(self) -> None:
        self._conn.close()
