"""
Local Store - durable key-value cache mirroring the remote tables.

``LocalCache`` is a string key-value store (one SQLite table). ``LocalStore``
keeps each schema table as one JSON-serialized collection under the table
name and offers the same CRUD surface as ``RemoteStore``.
"""
import json
import logging
from typing import Dict, List, Optional, Any

from sqlalchemy import text
from sqlalchemy.engine import Engine

from .schema import table_columns, validate_columns

logger = logging.getLogger(__name__)


class LocalCache:
    """String key-value storage backed by a local SQLite file"""

    def __init__(self, engine: Engine):
        self.engine = engine
        with self.engine.begin() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS local_cache (
                    cache_key TEXT PRIMARY KEY,
                    cache_value TEXT NOT NULL
                )
            """))

    def get(self, key: str) -> Optional[str]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT cache_value FROM local_cache WHERE cache_key = :key"),
                {'key': key}
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("""
                INSERT INTO local_cache (cache_key, cache_value)
                VALUES (:key, :value)
                ON CONFLICT(cache_key) DO UPDATE SET cache_value = excluded.cache_value
            """), {'key': key, 'value': value})

    def keys(self) -> List[str]:
        with self.engine.connect() as conn:
            return [row[0] for row in conn.execute(text("SELECT cache_key FROM local_cache"))]


def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    if not filters:
        return True
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, (list, tuple, set)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class LocalStore:
    """CRUD over JSON collections held in the local cache"""

    def __init__(self, cache: LocalCache):
        self.cache = cache

    def load_collection(self, table: str) -> List[Dict[str, Any]]:
        table_columns(table)
        raw = self.cache.get(table)
        if not raw:
            return []
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt local collection '{table}', starting empty: {e}")
            return []

    def save_collection(self, table: str, rows: List[Dict[str, Any]]) -> None:
        table_columns(table)
        self.cache.set(table, json.dumps(rows, default=str))

    def read(self, table: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        if filters:
            validate_columns(table, filters.keys())
        rows = [dict(row) for row in self.load_collection(table) if _matches(row, filters)]
        if order_by:
            validate_columns(table, [order_by])
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by) or ''))
        return rows

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        validate_columns(table, row.keys())
        rows = self.load_collection(table)
        rows.append(dict(row))
        self.save_collection(table, rows)
        return dict(row)

    def insert_many(self, table: str, new_rows: List[Dict[str, Any]]) -> int:
        if not new_rows:
            return 0
        for row in new_rows:
            validate_columns(table, row.keys())
        rows = self.load_collection(table)
        rows.extend(dict(row) for row in new_rows)
        self.save_collection(table, rows)
        return len(new_rows)

    def update(self, table: str, filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError(f"Refusing to update every row of {table}")
        validate_columns(table, list(filters.keys()) + list(patch.keys()))
        rows = self.load_collection(table)
        count = 0
        for row in rows:
            if _matches(row, filters):
                row.update(patch)
                count += 1
        if count:
            self.save_collection(table, rows)
        return count

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError(f"Refusing to delete every row of {table}")
        validate_columns(table, filters.keys())
        rows = self.load_collection(table)
        kept = [row for row in rows if not _matches(row, filters)]
        removed = len(rows) - len(kept)
        if removed:
            self.save_collection(table, kept)
        return removed
