"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
Sem await entre leitura e escrita, cada método é atômico no event loop.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from app.domain.calendar_integration import CalendarProvider
from app.protocols.calendar_store import (
    AppointmentStoreProtocol,
    CalendarIntegrationStoreProtocol,
)
from app.protocols.sync_lock import SyncLockProtocol
from fsm.states import AppointmentSyncStatus, IntegrationStatus
from utils.errors import AppointmentNotFoundError, IntegrationNotFoundError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Collection

    from app.domain.appointment import Appointment, AppointmentStatus
    from app.domain.calendar_integration import CalendarIntegration


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _sort_key(appointment: Appointment) -> datetime:
    if appointment.start_time is None:
        return datetime.max.replace(tzinfo=UTC)
    return _as_utc(appointment.start_time)


class MemoryCalendarIntegrationStore(CalendarIntegrationStoreProtocol):
    """Store de integrações em memória — apenas para dev/test."""

    def __init__(self) -> None:
        # (user_id, provider) -> integração; replace sobrescreve a chave inteira
        self._by_owner: dict[tuple[str, CalendarProvider], CalendarIntegration] = {}

    def _find_by_id(self, integration_id: str) -> CalendarIntegration:
        for integration in self._by_owner.values():
            if integration.id == integration_id:
                return integration
        raise IntegrationNotFoundError(f"Integração não encontrada: {integration_id}")

    async def get_active(
        self,
        user_id: str,
        provider: CalendarProvider = CalendarProvider.GOOGLE,
    ) -> CalendarIntegration | None:
        integration = self._by_owner.get((user_id, provider))
        if integration is None or not integration.is_active:
            return None
        return integration.model_copy(deep=True)

    async def replace(self, integration: CalendarIntegration) -> CalendarIntegration:
        stored = integration.model_copy(deep=True)
        self._by_owner[(stored.user_id, stored.provider)] = stored
        return stored.model_copy(deep=True)

    async def update_tokens(
        self,
        integration_id: str,
        *,
        access_token: str,
        token_expiry: datetime,
        refresh_token: str | None = None,
    ) -> None:
        integration = self._find_by_id(integration_id)
        integration.access_token = access_token
        integration.token_expiry = token_expiry
        if refresh_token:
            integration.refresh_token = refresh_token
        integration.updated_at = datetime.now(UTC)

    async def mark_error(self, integration_id: str, message: str) -> None:
        integration = self._find_by_id(integration_id)
        integration.sync_status = IntegrationStatus.ERROR
        integration.last_error = message
        integration.updated_at = datetime.now(UTC)

    async def mark_synced(self, integration_id: str, synced_at: datetime) -> None:
        integration = self._find_by_id(integration_id)
        integration.last_sync_at = synced_at
        integration.updated_at = datetime.now(UTC)

    async def deactivate(
        self,
        user_id: str,
        provider: CalendarProvider = CalendarProvider.GOOGLE,
    ) -> bool:
        integration = self._by_owner.get((user_id, provider))
        if integration is None or not integration.is_active:
            return False
        integration.is_active = False
        integration.sync_status = IntegrationStatus.DISABLED
        integration.updated_at = datetime.now(UTC)
        return True


class MemoryAppointmentStore(AppointmentStoreProtocol):
    """Store de agendamentos em memória — apenas para dev/test."""

    def __init__(self, appointments: Collection[Appointment] = ()) -> None:
        self._store: dict[str, Appointment] = {}
        for appointment in appointments:
            self.save(appointment)

    def save(self, appointment: Appointment) -> None:
        """Grava agendamento completo (cadastro fica fora do motor de sync)."""
        self._store[appointment.id] = appointment.model_copy(deep=True)

    def _require(self, appointment_id: str) -> Appointment:
        appointment = self._store.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)
        return appointment

    async def get(self, appointment_id: str) -> Appointment | None:
        appointment = self._store.get(appointment_id)
        return appointment.model_copy(deep=True) if appointment else None

    async def find_by_patient(
        self,
        patient_id: str,
        statuses: Collection[AppointmentStatus],
    ) -> list[Appointment]:
        matches = [
            a for a in self._store.values()
            if a.patient_id == patient_id and a.status in statuses
        ]
        return [a.model_copy(deep=True) for a in sorted(matches, key=_sort_key)]

    async def find_by_date_range(
        self,
        start: datetime,
        end: datetime,
        statuses: Collection[AppointmentStatus],
        user_id: str | None = None,
    ) -> list[Appointment]:
        lower, upper = _as_utc(start), _as_utc(end)
        matches = [
            a for a in self._store.values()
            if a.start_time is not None
            and lower <= _as_utc(a.start_time) <= upper
            and a.status in statuses
            and (user_id is None or a.user_id == user_id)
        ]
        return [a.model_copy(deep=True) for a in sorted(matches, key=_sort_key)]

    async def mark_synced(
        self,
        appointment_id: str,
        remote_event_id: str,
        synced_at: datetime,
    ) -> None:
        appointment = self._require(appointment_id)
        appointment.remote_event_id = remote_event_id
        appointment.sync_status = AppointmentSyncStatus.SYNCED
        appointment.sync_error = None
        appointment.last_sync_at = synced_at

    async def mark_failed(
        self,
        appointment_id: str,
        error: str,
        remote_event_id: str | None = None,
    ) -> None:
        appointment = self._require(appointment_id)
        if remote_event_id:
            appointment.remote_event_id = remote_event_id
        appointment.sync_status = AppointmentSyncStatus.FAILED
        appointment.sync_error = error

    async def clear_remote_event(self, appointment_id: str) -> None:
        appointment = self._require(appointment_id)
        appointment.remote_event_id = None
        appointment.sync_status = AppointmentSyncStatus.PENDING
        appointment.sync_error = None

    async def reset_sync_for_user(self, user_id: str) -> int:
        count = 0
        for appointment in self._store.values():
            if appointment.user_id != user_id:
                continue
            appointment.remote_event_id = None
            appointment.sync_status = AppointmentSyncStatus.PENDING
            appointment.sync_error = None
            count += 1
        return count


class MemorySyncLock(SyncLockProtocol):
    """Lock por chave em memória — suficiente para um único processo."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Descarta o lock quando ninguém mais espera pela chave
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)

    def active_keys(self) -> set[str]:
        """Chaves com lock retido ou aguardado."""
        return set(self._locks)
