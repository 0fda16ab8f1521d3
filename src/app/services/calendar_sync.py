"""Maquina de sincronizacao de agendamentos com o calendario externo.

Fluxo de sync (sob lock do agendamento):
    1. Carrega agendamento e credencial valida do dono
    2. Sem remote_event_id -> create; com remote_event_id -> update
    3. Sucesso: SYNCED + last_sync_at; falha: FAILED + mensagem, re-raise

Nao ha retry automatico: repetir e decisao de quem chama. O id remoto so
e gravado depois de um create bem-sucedido, e o lock por agendamento
impede que duas chamadas concorrentes criem dois eventos.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from app.domain.calendar_event import ReminderOverride, RemoteEventPayload
from app.observability import get_correlation_id, record_latency, record_sync_outcome
from app.services.ical_serializer import check_serializable
from config.settings.google_calendar import PRIMARY_CALENDAR_ID
from fsm import create_fsm
from fsm.states import AppointmentSyncStatus
from utils.errors import AppointmentNotFoundError, CalendarError, InfrastructureError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.appointment import Appointment
    from app.domain.calendar_integration import CalendarIntegration
    from app.protocols.calendar_gateway import CalendarGatewayProtocol
    from app.protocols.calendar_store import (
        AppointmentStoreProtocol,
        CalendarIntegrationStoreProtocol,
    )
    from app.protocols.sync_lock import SyncLockProtocol
    from app.services.token_lifecycle import TokenLifecycleManager
    from config.settings.calendar import CalendarSettings

logger = logging.getLogger(__name__)

_COMPONENT = "calendar_sync"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Resultado de sync/unsync.

    Attributes:
        appointment_id: Agendamento processado
        action: created | updated | deleted | noop
        sync_status: Status persistido ao final
        remote_event_id: Id remoto apos a operacao (None depois de unsync)
    """

    appointment_id: str
    action: str
    sync_status: AppointmentSyncStatus
    remote_event_id: str | None = None


def build_remote_event_payload(
    appointment: Appointment,
    settings: CalendarSettings,
) -> RemoteEventPayload:
    """Converte agendamento em payload neutro de provedor."""
    start, end = check_serializable(appointment)
    attendees = (
        [appointment.patient.email]
        if appointment.patient is not None and appointment.patient.email
        else []
    )
    return RemoteEventPayload(
        title=appointment.title,
        description=appointment.description,
        location=appointment.location,
        start=start,
        end=end,
        timezone=settings.calendar_timezone,
        attendees=attendees,
        reminders=[
            ReminderOverride(method=reminder.method, minutes=reminder.minutes)
            for reminder in settings.reminders
        ],
    )


class SyncStateMachine:
    """Orquestra create/update/delete de eventos remotos por agendamento.

    Unico escritor dos campos de sync de Appointment.
    """

    def __init__(
        self,
        *,
        token_manager: TokenLifecycleManager,
        gateway: CalendarGatewayProtocol,
        appointment_store: AppointmentStoreProtocol,
        integration_store: CalendarIntegrationStoreProtocol,
        sync_lock: SyncLockProtocol,
        settings: CalendarSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._tokens = token_manager
        self._gateway = gateway
        self._appointments = appointment_store
        self._integrations = integration_store
        self._lock = sync_lock
        self._settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))
        token_manager.add_disconnect_listener(self.reset_for_user)

    async def sync(self, appointment_id: str) -> SyncResult:
        """Cria ou atualiza o evento remoto do agendamento.

        Se o create respondeu mas a gravacao local falhou, o id remoto vai
        junto com o FAILED e o proximo sync vira update.

        Raises:
            AppointmentNotFoundError: Agendamento inexistente
            NotAuthenticatedError: Dono sem integracao ativa (agendamento vai a FAILED)
            RefreshError | GatewayError | CalendarTimeoutError: idem, FAILED e re-raise
            SyncInProgressError: Lock distribuido ocupado alem do prazo
        """
        async with self._lock.hold(appointment_id):
            appointment = await self._require_appointment(appointment_id)
            remote_event_id = appointment.remote_event_id
            action = "updated" if remote_event_id else "created"
            try:
                payload = build_remote_event_payload(appointment, self._settings)
                integration = await self._tokens.get_valid_credential(appointment.user_id)
                remote_event_id = await self._write_remote(
                    integration, remote_event_id, payload, action
                )
                create_fsm(appointment.id, appointment.sync_status).transition(
                    AppointmentSyncStatus.SYNCED, trigger=f"event_{action}"
                )
                synced_at = self._clock()
                await self._appointments.mark_synced(appointment.id, remote_event_id, synced_at)
            except (CalendarError, InfrastructureError) as exc:
                await self._record_failure(appointment, exc, remote_event_id)
                raise

            await self._touch_integration(integration, synced_at)
            record_sync_outcome("sync", action)
            self._log("calendar_sync_succeeded", action="sync", result=action)
            return SyncResult(
                appointment_id=appointment.id,
                action=action,
                sync_status=AppointmentSyncStatus.SYNCED,
                remote_event_id=remote_event_id,
            )

    async def unsync(self, appointment_id: str) -> SyncResult:
        """Remove o evento remoto e volta o agendamento para PENDING.

        Falha no delete propaga sem alterar o estado local.
        """
        async with self._lock.hold(appointment_id):
            appointment = await self._require_appointment(appointment_id)
            if not appointment.remote_event_id:
                record_sync_outcome("unsync", "noop")
                return SyncResult(
                    appointment_id=appointment.id,
                    action="noop",
                    sync_status=appointment.sync_status,
                )

            integration = await self._tokens.get_valid_credential(appointment.user_id)
            started = time.perf_counter()
            await self._gateway.delete_event(
                integration.access_token,
                self._calendar_id(integration),
                appointment.remote_event_id,
            )
            record_latency(_COMPONENT, "delete_event", (time.perf_counter() - started) * 1000)

            fsm = create_fsm(appointment.id, appointment.sync_status)
            fsm.transition(AppointmentSyncStatus.PENDING, trigger="event_deleted")
            await self._appointments.clear_remote_event(appointment.id)
            record_sync_outcome("unsync", "deleted")
            self._log("calendar_unsync_succeeded", action="unsync", result="deleted")
            return SyncResult(
                appointment_id=appointment.id,
                action="deleted",
                sync_status=AppointmentSyncStatus.PENDING,
            )

    async def reset_for_user(self, user_id: str) -> int:
        """Limpa id remoto e volta para PENDING todos os agendamentos do usuario."""
        count = await self._appointments.reset_sync_for_user(user_id)
        self._log(
            "calendar_sync_reset_for_user",
            action="reset_for_user",
            result="ok",
            appointment_count=count,
        )
        return count

    async def _write_remote(
        self,
        integration: CalendarIntegration,
        remote_event_id: str | None,
        payload: RemoteEventPayload,
        action: str,
    ) -> str:
        calendar_id = self._calendar_id(integration)
        started = time.perf_counter()
        if remote_event_id:
            await self._gateway.update_event(
                integration.access_token, calendar_id, remote_event_id, payload
            )
        else:
            remote_event_id = await self._gateway.create_event(
                integration.access_token, calendar_id, payload
            )
        record_latency(_COMPONENT, f"{action}_event", (time.perf_counter() - started) * 1000)
        return remote_event_id

    async def _record_failure(
        self,
        appointment: Appointment,
        exc: Exception,
        remote_event_id: str | None,
    ) -> None:
        create_fsm(appointment.id, appointment.sync_status).transition(
            AppointmentSyncStatus.FAILED, trigger="sync_failed"
        )
        await self._appointments.mark_failed(
            appointment.id,
            str(exc) or type(exc).__name__,
            remote_event_id=remote_event_id,
        )
        record_sync_outcome("sync", "failed", metadata={"error_type": type(exc).__name__})
        self._log(
            "calendar_sync_failed",
            action="sync",
            result="failed",
            level=logging.WARNING,
            error_type=type(exc).__name__,
        )

    async def _touch_integration(self, integration: CalendarIntegration, synced_at: datetime) -> None:
        try:
            await self._integrations.mark_synced(integration.id, synced_at)
        except (CalendarError, InfrastructureError) as exc:
            # O agendamento ja esta SYNCED; apenas o carimbo da integracao falhou
            self._log(
                "calendar_integration_touch_failed",
                action="mark_synced",
                result="error",
                level=logging.WARNING,
                error_type=type(exc).__name__,
            )

    async def _require_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self._appointments.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)
        return appointment

    def _calendar_id(self, integration: CalendarIntegration) -> str:
        return integration.calendar_id or PRIMARY_CALENDAR_ID

    def _log(
        self,
        message: str,
        *,
        action: str,
        result: str,
        level: int = logging.INFO,
        **fields: object,
    ) -> None:
        logger.log(
            level,
            message,
            extra={
                "component": _COMPONENT,
                "action": action,
                "result": result,
                "correlation_id": get_correlation_id(),
                **fields,
            },
        )
