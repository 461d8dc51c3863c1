"""
Mirrored Repository - single CRUD interface over the remote and local stores.

Every write is attempted against the remote store first and then applied to
the local mirror unconditionally. A remote failure is logged and counted,
never raised: the local mirror is what the dashboards read.
"""
import logging
import uuid
from typing import Dict, List, Optional, Any

from sqlalchemy.exc import SQLAlchemyError

from .local_store import LocalStore
from .remote_store import RemoteStore
from .schema import TABLES

logger = logging.getLogger(__name__)

ID_PREFIXES = {
    'suppliers': 'supplier',
    'customers': 'customer',
    'delivery_partners': 'dp',
    'farmers': 'farmer',
    'deliveries': 'delivery',
    'daily_allocations': 'allocation',
    'pickup_logs': 'pickup',
    'customer_assignments': 'assignment',
    'products': 'product',
    'orders': 'order',
    'supplier_pricing': 'pricing',
    'monthly_invoices': 'invoice',
}


def new_id(table: str) -> str:
    """Client-side identifier shared by both stores"""
    return f"{ID_PREFIXES.get(table, 'row')}-{uuid.uuid4().hex[:12]}"


class MirroredRepository:
    """Remote-first writes with an always-updated local mirror"""

    def __init__(self, local: LocalStore, remote: Optional[RemoteStore] = None):
        self.local = local
        self.remote = remote
        self.failed_remote_writes = 0

    @property
    def remote_available(self) -> bool:
        return self.remote is not None

    @property
    def mode(self) -> str:
        return 'remote' if self.remote_available else 'local'

    def _remote_write(self, operation: str, table: str, call) -> None:
        if self.remote is None:
            return
        try:
            call()
        except SQLAlchemyError as e:
            self.failed_remote_writes += 1
            logger.warning(
                f"Remote {operation} on {table} failed, keeping local copy only: {e}"
            )

    # ==================== CRUD ====================

    def read(self, table: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.local.read(table, filters, order_by)

    def get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        rows = self.local.read(table, {'id': row_id})
        return rows[0] if rows else None

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(row)
        if not row.get('id'):
            row['id'] = new_id(table)

        self._remote_write('insert', table, lambda: self.remote.insert(table, row))
        return self.local.insert(table, row)

    def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        prepared = []
        for row in rows:
            row = dict(row)
            if not row.get('id'):
                row['id'] = new_id(table)
            prepared.append(row)
        if not prepared:
            return []

        self._remote_write('insert', table, lambda: self.remote.insert_many(table, prepared))
        self.local.insert_many(table, prepared)
        return prepared

    def update(self, table: str, filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        self._remote_write('update', table, lambda: self.remote.update(table, filters, patch))
        return self.local.update(table, filters, patch)

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        self._remote_write('delete', table, lambda: self.remote.delete(table, filters))
        return self.local.delete(table, filters)

    # ==================== SYNC ====================

    def refresh(self, tables: Optional[List[str]] = None) -> Dict[str, int]:
        """Pull remote rows into the local mirror.

        Remote rows replace local rows with the same id. Local rows the remote
        store has never seen (earlier failed writes) are kept.
        Returns the number of rows mirrored per table.
        """
        if self.remote is None:
            return {}

        summary = {}
        for table in tables or list(TABLES.keys()):
            try:
                remote_rows = self.remote.read(table)
            except SQLAlchemyError as e:
                logger.warning(f"Could not refresh {table} from remote, keeping local mirror: {e}")
                continue

            remote_ids = {row['id'] for row in remote_rows}
            unsynced = [row for row in self.local.load_collection(table) if row.get('id') not in remote_ids]
            if unsynced:
                logger.info(f"{table}: keeping {len(unsynced)} local row(s) missing from remote")

            self.local.save_collection(table, remote_rows + unsynced)
            summary[table] = len(remote_rows) + len(unsynced)

        logger.info(f"Refreshed local mirror from remote: {summary}")
        return summary
