"""Agregador de settings do servico de agenda.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    CalendarStoreBackend,
    Environment,
    StorageSettings,
    SyncLockBackend,
    get_base_settings,
    get_storage_settings,
)

# Calendar settings
from config.settings.calendar import (
    CalendarSettings,
    ReminderSetting,
    get_calendar_settings,
)

# Provider constants
from config.settings.google_calendar import (
    DEFAULT_GOOGLE_SCOPES,
    GOOGLE_AUTH_URL,
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    PRIMARY_CALENDAR_ID,
)

# Infrastructure settings
from config.settings.infra import (
    FirestoreSettings,
    get_firestore_settings,
)

__all__ = [
    # Constants
    "DEFAULT_GOOGLE_SCOPES",
    "GOOGLE_AUTH_URL",
    "GOOGLE_TOKEN_URL",
    "GOOGLE_USERINFO_URL",
    "PRIMARY_CALENDAR_ID",
    # Base
    "BaseSettings",
    # Calendar
    "CalendarSettings",
    "CalendarStoreBackend",
    "Environment",
    # Infrastructure
    "FirestoreSettings",
    "ReminderSetting",
    "StorageSettings",
    "SyncLockBackend",
    "get_base_settings",
    "get_calendar_settings",
    "get_firestore_settings",
    "get_storage_settings",
]
