"""
Process-wide service instances for the Streamlit pages.
"""
import logging

import streamlit as st

from .auth import AuthManager
from .directory import DirectoryService
from .reconciliation import ReconciliationService, DashboardData
from .store import build_repository, MirroredRepository

logger = logging.getLogger(__name__)


@st.cache_resource
def get_repository() -> MirroredRepository:
    repository = build_repository()
    logger.info(f"Repository ready in {repository.mode} mode")
    return repository


@st.cache_resource
def get_reconciliation_service() -> ReconciliationService:
    return ReconciliationService(get_repository())


def get_directory_service() -> DirectoryService:
    return get_reconciliation_service().directory


@st.cache_resource
def get_dashboard_data() -> DashboardData:
    return DashboardData(get_reconciliation_service())


@st.cache_resource
def get_auth() -> AuthManager:
    return AuthManager(get_repository())
