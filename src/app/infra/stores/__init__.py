"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - firestore_calendar_store: Integrações e agendamentos no Firestore
    - redis_sync_lock: Lock distribuído por agendamento (Redis)
    - memory_stores: Stores e lock em memória para desenvolvimento/testes
"""

from __future__ import annotations

from app.infra.stores.firestore_calendar_store import (
    FirestoreAppointmentStore,
    FirestoreCalendarIntegrationStore,
)
from app.infra.stores.memory_stores import (
    MemoryAppointmentStore,
    MemoryCalendarIntegrationStore,
    MemorySyncLock,
)
from app.infra.stores.redis_sync_lock import RedisSyncLock

__all__ = [
    # Firestore
    "FirestoreAppointmentStore",
    "FirestoreCalendarIntegrationStore",
    # Memory (dev/test)
    "MemoryAppointmentStore",
    "MemoryCalendarIntegrationStore",
    "MemorySyncLock",
    # Redis
    "RedisSyncLock",
]
