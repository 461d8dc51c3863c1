"""
Store schema for MilkChain.

One definition serves both stores: the remote relational tables and the
table-name keys of the local cache. DDL sticks to types that Postgres and
SQLite both accept so the same bootstrap runs against either.
"""
import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class UnknownTableError(KeyError):
    """Raised when a table name is not part of the store schema"""
    pass


TABLES: Dict[str, List[Tuple[str, str]]] = {
    'suppliers': [
        ('id', 'TEXT PRIMARY KEY'),
        ('name', 'TEXT NOT NULL'),
        ('email', 'TEXT'),
        ('username', 'TEXT'),
        ('password', 'TEXT'),
        ('phone', 'TEXT'),
        ('address', 'TEXT'),
        ('license_number', 'TEXT'),
        ('total_capacity', 'DOUBLE PRECISION'),
        ('status', "TEXT NOT NULL DEFAULT 'pending'"),
        ('registration_date', 'TEXT'),
    ],
    'customers': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('name', 'TEXT NOT NULL'),
        ('email', 'TEXT'),
        ('phone', 'TEXT'),
        ('address', 'TEXT'),
        ('daily_quantity', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
        ('status', "TEXT NOT NULL DEFAULT 'active'"),
    ],
    'delivery_partners': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('name', 'TEXT NOT NULL'),
        ('email', 'TEXT'),
        ('phone', 'TEXT'),
        ('vehicle_number', 'TEXT'),
        ('status', "TEXT NOT NULL DEFAULT 'active'"),
        ('password', 'TEXT'),
        ('daily_allocation', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
        ('remaining_quantity', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
    ],
    'farmers': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('name', 'TEXT NOT NULL'),
        ('email', 'TEXT'),
        ('phone', 'TEXT'),
        ('address', 'TEXT'),
        ('user_id', 'TEXT'),
        ('password', 'TEXT'),
        ('status', "TEXT NOT NULL DEFAULT 'active'"),
    ],
    'deliveries': [
        ('id', 'TEXT PRIMARY KEY'),
        ('customer_id', 'TEXT NOT NULL'),
        ('delivery_partner_id', 'TEXT NOT NULL'),
        ('supplier_id', 'TEXT'),
        ('quantity', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
        ('suggested_quantity', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
        ('delivery_date', 'TEXT NOT NULL'),
        ('status', "TEXT NOT NULL DEFAULT 'pending'"),
        ('scheduled_time', 'TEXT'),
        ('completed_time', 'TEXT'),
        ('notes', 'TEXT'),
    ],
    'daily_allocations': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('delivery_partner_id', 'TEXT NOT NULL'),
        ('allocation_date', 'TEXT NOT NULL'),
        ('allocated_quantity', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
        ('remaining_quantity', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
        ('status', "TEXT NOT NULL DEFAULT 'allocated'"),
        ('created_at', 'TEXT NOT NULL'),
    ],
    'pickup_logs': [
        ('id', 'TEXT PRIMARY KEY'),
        ('farmer_id', 'TEXT NOT NULL'),
        ('supplier_id', 'TEXT'),
        ('delivery_partner_id', 'TEXT'),
        ('quantity', 'DOUBLE PRECISION NOT NULL DEFAULT 0'),
        ('quality_grade', "TEXT DEFAULT 'A'"),
        ('fat_content', 'DOUBLE PRECISION DEFAULT 0'),
        ('price_per_liter', 'DOUBLE PRECISION DEFAULT 0'),
        ('total_amount', 'DOUBLE PRECISION DEFAULT 0'),
        ('pickup_date', 'TEXT NOT NULL'),
        ('pickup_time', 'TEXT'),
        ('status', "TEXT DEFAULT 'completed'"),
        ('notes', 'TEXT'),
        ('created_at', 'TEXT'),
    ],
    'customer_assignments': [
        ('id', 'TEXT PRIMARY KEY'),
        ('delivery_partner_id', 'TEXT NOT NULL'),
        ('customer_id', 'TEXT NOT NULL'),
        ('created_at', 'TEXT'),
    ],
    'products': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('name', 'TEXT NOT NULL'),
        ('description', 'TEXT'),
        ('unit', 'TEXT'),
        ('price', 'DOUBLE PRECISION'),
        ('status', "TEXT DEFAULT 'active'"),
    ],
    'orders': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('customer_id', 'TEXT'),
        ('product_id', 'TEXT'),
        ('quantity', 'DOUBLE PRECISION'),
        ('total_amount', 'DOUBLE PRECISION'),
        ('order_date', 'TEXT'),
        ('status', "TEXT DEFAULT 'pending'"),
    ],
    'supplier_pricing': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('quality_grade', 'TEXT'),
        ('price_per_liter', 'DOUBLE PRECISION'),
        ('effective_date', 'TEXT'),
    ],
    'monthly_invoices': [
        ('id', 'TEXT PRIMARY KEY'),
        ('supplier_id', 'TEXT'),
        ('customer_id', 'TEXT'),
        ('month', 'INTEGER'),
        ('year', 'INTEGER'),
        ('total_quantity', 'DOUBLE PRECISION'),
        ('total_amount', 'DOUBLE PRECISION'),
        ('status', "TEXT DEFAULT 'pending'"),
        ('created_at', 'TEXT'),
    ],
}


def table_columns(table: str) -> List[str]:
    """Column names of a schema table"""
    if table not in TABLES:
        raise UnknownTableError(table)
    return [name for name, _ in TABLES[table]]


def validate_columns(table: str, columns) -> None:
    """Reject column names outside the schema before they reach SQL"""
    known = set(table_columns(table))
    unknown = [col for col in columns if col not in known]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


def create_schema(engine: Engine) -> None:
    """Create every schema table that does not exist yet"""
    with engine.begin() as conn:
        for table, columns in TABLES.items():
            column_sql = ",\n    ".join(f"{name} {ddl}" for name, ddl in columns)
            conn.execute(text(f"CREATE TABLE IF NOT EXISTS {table} (\n    {column_sql}\n)"))
    logger.info(f"Schema ready ({len(TABLES)} tables)")
