"""Agregador de settings base.

Re-exporta todas as settings base para uso externo.
"""

from __future__ import annotations

from config.settings.base.core import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.base.storage import (
    CalendarStoreBackend,
    StorageSettings,
    SyncLockBackend,
    get_storage_settings,
)

__all__ = [
    # Core
    "BaseSettings",
    # Types
    "CalendarStoreBackend",
    "Environment",
    # Storage
    "StorageSettings",
    "SyncLockBackend",
    "get_base_settings",
    "get_storage_settings",
]
