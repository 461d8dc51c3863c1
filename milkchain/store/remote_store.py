"""
Remote Store - generic CRUD over the hosted relational database.

All statements go through SQLAlchemy ``text()`` with bound parameters.
Table and column names are checked against the schema before they are
interpolated.
"""
import logging
from typing import Dict, List, Optional, Any, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

from .schema import table_columns, validate_columns

logger = logging.getLogger(__name__)


def build_where_clause(table: str, filters: Optional[Dict[str, Any]],
                       param_prefix: str = 'f') -> Tuple[str, Dict[str, Any]]:
    """Build a parameterized WHERE clause from equality filters.

    A list or tuple value becomes an IN clause; an empty list matches nothing.
    """
    if not filters:
        return "", {}

    validate_columns(table, filters.keys())

    conditions = []
    params: Dict[str, Any] = {}
    for column, value in filters.items():
        if isinstance(value, (list, tuple, set)):
            values = list(value)
            if not values:
                conditions.append("1=0")
                continue
            names = []
            for i, item in enumerate(values):
                name = f"{param_prefix}_{column}_{i}"
                params[name] = item
                names.append(f":{name}")
            conditions.append(f"{column} IN ({','.join(names)})")
        elif value is None:
            conditions.append(f"{column} IS NULL")
        else:
            name = f"{param_prefix}_{column}"
            params[name] = value
            conditions.append(f"{column} = :{name}")

    return " WHERE " + " AND ".join(conditions), params


class RemoteStore:
    """CRUD target backed by the remote database"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def read(self, table: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        columns = table_columns(table)
        where, params = build_where_clause(table, filters)
        order = ""
        if order_by:
            validate_columns(table, [order_by])
            order = f" ORDER BY {order_by}"

        query = text(f"SELECT {', '.join(columns)} FROM {table}{where}{order}")
        with self.engine.connect() as conn:
            result = conn.execute(query, params)
            return [dict(row._mapping) for row in result]

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        validate_columns(table, row.keys())
        columns = list(row.keys())
        query = text(
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + col for col in columns)})"
        )
        with self.engine.begin() as conn:
            conn.execute(query, row)

        logger.debug(f"Inserted {table} row {row.get('id')}")
        return dict(row)

    def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        columns = list(rows[0].keys())
        validate_columns(table, columns)
        query = text(
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + col for col in columns)})"
        )
        with self.engine.begin() as conn:
            conn.execute(query, rows)
        return len(rows)

    def update(self, table: str, filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError(f"Refusing to update every row of {table}")
        if not patch:
            return 0
        validate_columns(table, patch.keys())
        where, params = build_where_clause(table, filters)

        assignments = []
        for column, value in patch.items():
            name = f"p_{column}"
            params[name] = value
            assignments.append(f"{column} = :{name}")

        query = text(f"UPDATE {table} SET {', '.join(assignments)}{where}")
        with self.engine.begin() as conn:
            result = conn.execute(query, params)
            return result.rowcount

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError(f"Refusing to delete every row of {table}")
        where, params = build_where_clause(table, filters)
        query = text(f"DELETE FROM {table}{where}")
        with self.engine.begin() as conn:
            result = conn.execute(query, params)
            return result.rowcount
