# milkchain/db.py

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .config import config

logger = logging.getLogger(__name__)

_remote_engine: Optional[Engine] = None
_local_engine: Optional[Engine] = None


def get_db_engine() -> Optional[Engine]:
    """Get the remote database engine, or None when running local-only"""
    global _remote_engine

    if _remote_engine is not None:
        return _remote_engine

    if not config.is_remote_enabled():
        logger.info("Remote database disabled - using local cache only")
        return None

    url = config.get_database_url()
    _remote_engine = create_engine(
        url,
        pool_size=config.get_app_setting('DB_POOL_SIZE', 5),
        pool_recycle=config.get_app_setting('DB_POOL_RECYCLE', 3600),
        pool_pre_ping=True,
    )
    logger.info("Remote database engine created")
    return _remote_engine


def get_local_engine(path: Optional[str] = None) -> Engine:
    """Get the SQLite engine backing the local cache"""
    global _local_engine

    if path is not None:
        return create_engine(f"sqlite:///{path}")

    if _local_engine is None:
        cache_path = config.get_app_setting('LOCAL_CACHE_PATH')
        _local_engine = create_engine(f"sqlite:///{cache_path}")
        logger.info(f"Local cache engine created at {cache_path}")
    return _local_engine
