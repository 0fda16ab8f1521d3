"""Settings de persistência e lock de sincronização.

Escolhe os backends de CalendarIntegration/Appointment e do lock
por agendamento usado para impedir criação duplicada de eventos.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from config.settings.base.core import BaseSettings, _parse_environment

CalendarStoreBackend = Literal["memory", "firestore"]
SyncLockBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class StorageSettings:
    """Configurações de backends de armazenamento.

    Attributes:
        store_backend: Backend de integrações e agendamentos (memory|firestore)
        lock_backend: Backend do lock por agendamento (memory|redis)
        lock_ttl_seconds: Expiração do lock distribuído
        lock_wait_seconds: Espera máxima para adquirir o lock distribuído
    """

    store_backend: CalendarStoreBackend = "memory"
    lock_backend: SyncLockBackend = "memory"
    lock_ttl_seconds: int = 120
    lock_wait_seconds: float = 35.0

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de armazenamento.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.store_backend not in {"memory", "firestore"}:
            errors.append(f"CALENDAR_STORE_BACKEND inválido: {self.store_backend}")

        if self.lock_backend not in {"memory", "redis"}:
            errors.append(f"SYNC_LOCK_BACKEND inválido: {self.lock_backend}")

        if self.store_backend == "memory" and not base.is_development:
            errors.append(
                "CALENDAR_STORE_BACKEND=memory proibido em staging/production. "
                "Use Firestore."
            )

        if self.lock_backend == "memory" and not base.is_development:
            errors.append(
                "SYNC_LOCK_BACKEND=memory proibido em staging/production. "
                "Use Redis."
            )

        if self.lock_backend == "redis" and not base.redis_url:
            errors.append("SYNC_LOCK_BACKEND=redis requer REDIS_URL configurado")

        if self.store_backend == "firestore" and not base.gcp_project:
            errors.append("CALENDAR_STORE_BACKEND=firestore requer GCP_PROJECT configurado")

        if self.lock_ttl_seconds <= 0:
            errors.append("SYNC_LOCK_TTL_SECONDS deve ser > 0")

        if self.lock_wait_seconds < 0:
            errors.append("SYNC_LOCK_WAIT_SECONDS deve ser >= 0")

        return errors


def _load_storage_from_env() -> StorageSettings:
    """Carrega StorageSettings de variáveis de ambiente.

    Sem backend explícito: memória em development, Firestore/Redis nos demais.
    """
    deployed = _parse_environment(os.getenv("ENVIRONMENT", "development")) != "development"
    store_str = os.getenv("CALENDAR_STORE_BACKEND", "firestore" if deployed else "memory").lower()
    store_backend: CalendarStoreBackend = (
        store_str if store_str in ("memory", "firestore") else "memory"
    )
    lock_str = os.getenv("SYNC_LOCK_BACKEND", "redis" if deployed else "memory").lower()
    lock_backend: SyncLockBackend = lock_str if lock_str in ("memory", "redis") else "memory"
    return StorageSettings(
        store_backend=store_backend,
        lock_backend=lock_backend,
        lock_ttl_seconds=int(os.getenv("SYNC_LOCK_TTL_SECONDS", "120")),
        lock_wait_seconds=float(os.getenv("SYNC_LOCK_WAIT_SECONDS", "35")),
    )


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Retorna instância cacheada de StorageSettings."""
    return _load_storage_from_env()
