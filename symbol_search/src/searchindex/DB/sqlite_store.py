# searchindex/DB/sqlite_store.py
from __future__ import annotations
import logging
import os
import sqlite3
import threading
from typing import Optional

from .. import config as CFG
from ..errors import LoadFailure
from ..partition import Partition, bucket_order, parse_bucket_id

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS shards (
  bucket_id TEXT PRIMARY KEY,
  index_name TEXT NOT NULL,
  ordinal INTEGER NOT NULL,
  payload TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS sections (
  index_name TEXT PRIMARY KEY,
  alphabet TEXT NOT NULL
);
"""


class SQLiteSource:
    """
    A packed bundle of shard documents in one SQLite file.
    Payloads are stored verbatim, so parsing (and its diagnostics) still
    happens in the ShardStore exactly as for a directory of files.
    """
    def __init__(self, db_path: str) -> None:
        self.db_path = os.path.abspath(db_path)
        # shard loads run on worker threads; one connection guarded by a lock
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            self.conn.executescript(_SCHEMA)

    @classmethod
    def build_from_source(cls, source, db_path: str) -> "SQLiteSource":
        """Copy every shard (and partition alphabet) of `source` into a new bundle."""
        db_path = os.path.abspath(db_path)
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        tmp = f"{db_path}.tmp"
        if os.path.exists(tmp):
            os.remove(tmp)

        try:
            conn = sqlite3.connect(tmp)
            try:
                conn.executescript(_SCHEMA)
                n = 0
                for index_name in source.indexes():
                    conn.execute(
                        "INSERT OR REPLACE INTO sections(index_name, alphabet) VALUES (?,?)",
                        (index_name, source.partition(index_name).alphabet),
                    )
                    for bucket_id in source.bucket_ids(index_name):
                        payload = source.fetch(bucket_id)
                        if payload is None:
                            continue
                        _, ordinal = parse_bucket_id(bucket_id)
                        conn.execute(
                            "INSERT OR REPLACE INTO shards(bucket_id, index_name, ordinal, payload) "
                            "VALUES (?,?,?,?)",
                            (bucket_id, index_name, ordinal, payload),
                        )
                        n += 1
                conn.commit()
            finally:
                conn.close()
        except Exception:
            # a half-written bundle is never left next to the target
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        os.replace(tmp, db_path)
        log.info("Packed %d shards into %s", n, db_path)
        return cls(db_path)

    def fetch(self, bucket_id: str) -> Optional[str]:
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT payload FROM shards WHERE bucket_id = ?", (bucket_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise LoadFailure(bucket_id, str(e)) from e
        return row[0] if row else None

    def bucket_ids(self, index_name: str) -> list[str]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT bucket_id FROM shards WHERE index_name = ?", (index_name,)
            ).fetchall()
        return sorted((r[0] for r in rows), key=bucket_order)

    def partition(self, index_name: str) -> Partition:
        with self._lock:
            row = self.conn.execute(
                "SELECT alphabet FROM sections WHERE index_name = ?", (index_name,)
            ).fetchone()
        return Partition(index_name, row[0] if row else CFG.DEFAULT_ALPHABET)

    def indexes(self) -> list[str]:
        with self._lock:
            rows = self.conn.execute("SELECT index_name FROM sections ORDER BY index_name").fetchall()
        return [r[0] for r in rows]

    def close(self) -> None:
        with self._lock:
            self.conn.close()
