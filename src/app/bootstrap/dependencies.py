"""Factories de stores e lock — criação de implementações concretas.

Backends escolhidos por StorageSettings (CALENDAR_STORE_BACKEND e
SYNC_LOCK_BACKEND).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.stores import (
    FirestoreAppointmentStore,
    FirestoreCalendarIntegrationStore,
    MemoryAppointmentStore,
    MemoryCalendarIntegrationStore,
    MemorySyncLock,
    RedisSyncLock,
)
from config.settings import get_base_settings, get_firestore_settings, get_storage_settings

if TYPE_CHECKING:
    from app.protocols import (
        AppointmentStoreProtocol,
        CalendarIntegrationStoreProtocol,
        SyncLockProtocol,
    )

logger = logging.getLogger(__name__)


def _warn_memory_backend(kind: str) -> None:
    environment = get_base_settings().environment
    if environment != "development":
        logger.warning(
            "memory_backend_in_non_dev",
            extra={"component": "bootstrap", "backend": "memory", "store": kind,
                   "environment": environment},
        )


# ──────────────────────────────────────────────────────────────────────────────
# Calendar Integration Store Factory
# ──────────────────────────────────────────────────────────────────────────────


def create_integration_store() -> CalendarIntegrationStoreProtocol:
    """Cria store de CalendarIntegration.

    - "memory": MemoryCalendarIntegrationStore (dev only)
    - "firestore": FirestoreCalendarIntegrationStore (staging/production)
    """
    backend = get_storage_settings().store_backend

    if backend == "firestore":
        store: CalendarIntegrationStoreProtocol = FirestoreCalendarIntegrationStore(
            create_firestore_client(),
            get_firestore_settings().collection_integrations,
        )
        logger.info("integration_store_created", extra={"backend": "firestore"})
        return store

    _warn_memory_backend("integrations")
    store = MemoryCalendarIntegrationStore()
    logger.info("integration_store_created", extra={"backend": "memory"})
    return store


# ──────────────────────────────────────────────────────────────────────────────
# Appointment Store Factory
# ──────────────────────────────────────────────────────────────────────────────


def create_appointment_store() -> AppointmentStoreProtocol:
    """Cria store de agendamentos (memory|firestore)."""
    backend = get_storage_settings().store_backend

    if backend == "firestore":
        store: AppointmentStoreProtocol = FirestoreAppointmentStore(
            create_firestore_client(),
            get_firestore_settings().collection_appointments,
        )
        logger.info("appointment_store_created", extra={"backend": "firestore"})
        return store

    _warn_memory_backend("appointments")
    store = MemoryAppointmentStore()
    logger.info("appointment_store_created", extra={"backend": "memory"})
    return store


# ──────────────────────────────────────────────────────────────────────────────
# Sync Lock Factory
# ──────────────────────────────────────────────────────────────────────────────


def create_sync_lock() -> SyncLockProtocol:
    """Cria lock por agendamento.

    - "memory": MemorySyncLock (um processo)
    - "redis": RedisSyncLock (várias instâncias)
    """
    storage = get_storage_settings()

    if storage.lock_backend == "redis":
        lock: SyncLockProtocol = RedisSyncLock(
            create_async_redis_client(),
            ttl_seconds=storage.lock_ttl_seconds,
            wait_seconds=storage.lock_wait_seconds,
        )
        logger.info("sync_lock_created", extra={"backend": "redis"})
        return lock

    _warn_memory_backend("sync_lock")
    lock = MemorySyncLock()
    logger.info("sync_lock_created", extra={"backend": "memory"})
    return lock
