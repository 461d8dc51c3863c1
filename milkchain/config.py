# milkchain/config.py

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Any, Optional
from urllib.parse import quote_plus

# Initialize logger
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent

VALID_STORE_MODES = ('auto', 'remote', 'local')


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and "DATABASE" in st.secrets
    except Exception:
        return False


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Centralized configuration management for MilkChain"""

    def __init__(self):
        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        # Common configuration
        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        db_secrets = dict(st.secrets["DATABASE"])
        self.db_config = {
            "url": db_secrets.get("URL"),
            "host": db_secrets.get("HOST"),
            "port": int(db_secrets.get("PORT", 5432)),
            "user": db_secrets.get("USER"),
            "password": db_secrets.get("PASSWORD"),
            "database": db_secrets.get("NAME", "postgres")
        }

        logger.info("☁️  Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local environment"""
        # Load .env file
        load_dotenv()

        # Missing values are allowed: they select local-only mode
        self.db_config = {
            "url": os.getenv("DATABASE_URL"),
            "host": os.getenv("DB_HOST"),
            "port": int(os.getenv("DB_PORT", "5432")),
            "user": os.getenv("DB_USER"),
            "password": os.getenv("DB_PASSWORD"),
            "database": os.getenv("DB_NAME", "postgres")
        }

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific configuration"""
        store_mode = os.getenv("STORE_MODE", "auto").strip().lower()
        if store_mode not in VALID_STORE_MODES:
            logger.warning(f"Unknown STORE_MODE '{store_mode}', falling back to 'auto'")
            store_mode = "auto"

        self.app_config = {
            # Storage
            "STORE_MODE": store_mode,
            "LOCAL_CACHE_PATH": os.getenv("LOCAL_CACHE_PATH") or str(PROJECT_ROOT / "milkchain_cache.db"),

            # Session management
            "SESSION_TIMEOUT_HOURS": int(os.getenv("SESSION_TIMEOUT_HOURS", "8")),

            # Business logic
            "DEDUPE_GENERATED_DELIVERIES": _env_flag("DEDUPE_GENERATED_DELIVERIES"),
            "DEFAULT_SCHEDULED_TIME": os.getenv("DEFAULT_SCHEDULED_TIME", "08:00 AM"),

            # Performance
            "DB_POOL_SIZE": int(os.getenv("DB_POOL_SIZE", "5")),
            "DB_POOL_RECYCLE": int(os.getenv("DB_POOL_RECYCLE", "3600")),

            # Built-in admin account
            "ADMIN_EMAIL": os.getenv("ADMIN_EMAIL", "admin@milkchain.com"),
            "ADMIN_PASSWORD": os.getenv("ADMIN_PASSWORD", "admin123"),
        }

    def _log_config_status(self):
        """Log configuration status for debugging"""
        logger.info("─" * 55)
        logger.info("📊 DATABASE CONFIGURATION")

        if self.db_config.get('url'):
            logger.info("   ✅ Using DATABASE_URL")
        elif all([self.db_config.get('host'), self.db_config.get('user'), self.db_config.get('password')]):
            logger.info(f"   ✅ Host: {self.db_config['host']}:{self.db_config['port']}")
            logger.info(f"   ✅ Database: {self.db_config['database']}")
            logger.info(f"   ✅ User: {self.db_config['user']}")
            logger.info(f"   ✅ Password: {'*' * 8} (configured)")
        else:
            logger.warning("   ⚠️  Remote database not configured - local cache only")

        logger.info("─" * 55)
        logger.info("💾 STORAGE")
        logger.info(f"   Mode: {self.app_config['STORE_MODE']}")
        logger.info(f"   Local cache: {self.app_config['LOCAL_CACHE_PATH']}")
        logger.info("─" * 55)

    def get_database_url(self) -> Optional[str]:
        """Remote database URL, or None when the remote store is not configured"""
        if self.db_config.get('url'):
            return self.db_config['url']

        host = self.db_config.get('host')
        user = self.db_config.get('user')
        password = self.db_config.get('password')
        if not all([host, user, password]):
            return None

        return (
            f"postgresql+psycopg2://{quote_plus(user)}:{quote_plus(password)}"
            f"@{host}:{self.db_config.get('port', 5432)}/{self.db_config.get('database', 'postgres')}"
        )

    def is_remote_enabled(self) -> bool:
        """Whether the remote store should be used for this session"""
        if self.app_config['STORE_MODE'] == 'local':
            return False
        return self.get_database_url() is not None

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting"""
        return self.app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if a feature is enabled"""
        return bool(self.app_config.get(feature.upper(), False))


# Create singleton instance
config = Config()

APP_CONFIG = config.app_config


# Export all
__all__ = [
    'config',
    'Config',
    'APP_CONFIG',
    'PROJECT_ROOT',
]
