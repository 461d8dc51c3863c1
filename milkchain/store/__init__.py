"""
Store Module
============
Remote relational store, local key-value mirror and the repository that
writes to both.

Components:
- schema: table definitions shared by both stores, bootstrap DDL
- remote_store: SQLAlchemy CRUD against the hosted database
- local_store: JSON collections in a local SQLite key-value cache
- repository: remote-first writes, local mirror reads
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .schema import TABLES, UnknownTableError, create_schema, table_columns
from .remote_store import RemoteStore
from .local_store import LocalCache, LocalStore
from .repository import MirroredRepository, new_id
from ..db import get_db_engine, get_local_engine

logger = logging.getLogger(__name__)


def build_repository(local_path: Optional[str] = None) -> MirroredRepository:
    """Build the repository selected by configuration.

    The remote store is attached only when configured and reachable at
    startup; otherwise the session runs on the local mirror alone.
    """
    local = LocalStore(LocalCache(get_local_engine(local_path)))

    remote = None
    engine = get_db_engine()
    if engine is not None:
        try:
            create_schema(engine)
            remote = RemoteStore(engine)
        except SQLAlchemyError as e:
            logger.warning(f"Remote store unreachable, running local-only: {e}")

    repository = MirroredRepository(local, remote)
    if remote is not None:
        repository.refresh()
    return repository


__all__ = [
    'TABLES',
    'UnknownTableError',
    'create_schema',
    'table_columns',
    'RemoteStore',
    'LocalCache',
    'LocalStore',
    'MirroredRepository',
    'new_id',
    'build_repository',
]
