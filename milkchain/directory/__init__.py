"""
Directory Module
================
Suppliers, customers, delivery partners, farmers and pickup logs.
"""

from .directory_service import DirectoryService, normalize_phone
from .directory_validators import DirectoryValidator

__all__ = [
    'DirectoryService',
    'DirectoryValidator',
    'normalize_phone',
]
