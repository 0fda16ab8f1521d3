"""Firestore Calendar Stores — integrações OAuth e campos de sync.

Integrações usam document id derivado de (user_id, provider), então
replace é um único set() e a unicidade vem da própria chave.
Agendamentos são criados por outros serviços; aqui só lemos e
atualizamos os campos de sincronização.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from google.api_core.exceptions import NotFound
from google.cloud.firestore import FieldFilter

from app.domain.appointment import Appointment
from app.domain.calendar_integration import CalendarIntegration, CalendarProvider
from app.protocols.calendar_store import (
    AppointmentStoreProtocol,
    CalendarIntegrationStoreProtocol,
)
from fsm.states import AppointmentSyncStatus, IntegrationStatus
from utils.errors import (
    AppointmentNotFoundError,
    FirestoreUnavailableError,
    IntegrationNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Collection

    from google.cloud.firestore import Client as FirestoreClient

    from app.domain.appointment import AppointmentStatus

logger = logging.getLogger(__name__)

INTEGRATIONS_COLLECTION = "calendar_integrations"
APPOINTMENTS_COLLECTION = "appointments"

# Limite de operações por WriteBatch do Firestore
_BATCH_LIMIT = 500


def integration_document_id(user_id: str, provider: CalendarProvider) -> str:
    return f"{user_id}_{provider.value}"


def _integration_to_document(integration: CalendarIntegration) -> dict[str, Any]:
    return {
        "id": integration.id,
        "user_id": integration.user_id,
        "provider": integration.provider.value,
        "access_token": integration.access_token,
        "refresh_token": integration.refresh_token,
        "token_expiry": integration.token_expiry,
        "is_active": integration.is_active,
        "sync_status": integration.sync_status.value,
        "last_error": integration.last_error,
        "last_sync_at": integration.last_sync_at,
        "calendar_id": integration.calendar_id,
        "calendar_name": integration.calendar_name,
        "email": integration.email,
        "created_at": integration.created_at,
        "updated_at": integration.updated_at,
    }


def _sort_key(appointment: Appointment) -> datetime:
    if appointment.start_time is None:
        return datetime.max.replace(tzinfo=UTC)
    start = appointment.start_time
    return start.replace(tzinfo=UTC) if start.tzinfo is None else start


class FirestoreCalendarIntegrationStore(CalendarIntegrationStoreProtocol):
    """Store de CalendarIntegration usando Firestore.

    Args:
        firestore_client: Cliente Firestore
        collection_name: Nome da collection (default: calendar_integrations)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = INTEGRATIONS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def _doc(self, user_id: str, provider: CalendarProvider) -> Any:
        return self._db.collection(self._collection).document(
            integration_document_id(user_id, provider)
        )

    async def get_active(
        self,
        user_id: str,
        provider: CalendarProvider = CalendarProvider.GOOGLE,
    ) -> CalendarIntegration | None:
        return await asyncio.to_thread(self._get_active_sync, user_id, provider)

    def _get_active_sync(
        self,
        user_id: str,
        provider: CalendarProvider,
    ) -> CalendarIntegration | None:
        try:
            doc = self._doc(user_id, provider).get()
        except Exception as exc:
            self._log_error("get_active", exc)
            raise FirestoreUnavailableError("Erro ao ler integração") from exc
        if not doc.exists:
            return None
        integration = CalendarIntegration.model_validate(doc.to_dict() or {})
        return integration if integration.is_active else None

    async def replace(self, integration: CalendarIntegration) -> CalendarIntegration:
        await asyncio.to_thread(self._replace_sync, integration)
        return integration

    def _replace_sync(self, integration: CalendarIntegration) -> None:
        try:
            # set() sem merge sobrescreve o documento inteiro numa única escrita
            self._doc(integration.user_id, integration.provider).set(
                _integration_to_document(integration)
            )
        except Exception as exc:
            self._log_error("replace", exc)
            raise FirestoreUnavailableError("Erro ao gravar integração") from exc
        logger.debug(
            "calendar_integration_replaced",
            extra={"component": "firestore_calendar_store", "integration_id": integration.id},
        )

    async def update_tokens(
        self,
        integration_id: str,
        *,
        access_token: str,
        token_expiry: datetime,
        refresh_token: str | None = None,
    ) -> None:
        fields: dict[str, Any] = {
            "access_token": access_token,
            "token_expiry": token_expiry,
        }
        if refresh_token:
            fields["refresh_token"] = refresh_token
        await asyncio.to_thread(self._update_by_id_sync, integration_id, fields)

    async def mark_error(self, integration_id: str, message: str) -> None:
        await asyncio.to_thread(
            self._update_by_id_sync,
            integration_id,
            {"sync_status": IntegrationStatus.ERROR.value, "last_error": message},
        )

    async def mark_synced(self, integration_id: str, synced_at: datetime) -> None:
        await asyncio.to_thread(
            self._update_by_id_sync,
            integration_id,
            {"last_sync_at": synced_at},
        )

    def _update_by_id_sync(self, integration_id: str, fields: dict[str, Any]) -> None:
        try:
            docs = list(
                self._db.collection(self._collection)
                .where(filter=FieldFilter("id", "==", integration_id))
                .limit(1)
                .stream()
            )
        except Exception as exc:
            self._log_error("update", exc)
            raise FirestoreUnavailableError("Erro ao localizar integração") from exc
        if not docs:
            raise IntegrationNotFoundError(f"Integração não encontrada: {integration_id}")
        try:
            docs[0].reference.update({**fields, "updated_at": datetime.now(UTC)})
        except Exception as exc:
            self._log_error("update", exc)
            raise FirestoreUnavailableError("Erro ao atualizar integração") from exc

    async def deactivate(
        self,
        user_id: str,
        provider: CalendarProvider = CalendarProvider.GOOGLE,
    ) -> bool:
        return await asyncio.to_thread(self._deactivate_sync, user_id, provider)

    def _deactivate_sync(self, user_id: str, provider: CalendarProvider) -> bool:
        doc_ref = self._doc(user_id, provider)
        try:
            doc = doc_ref.get()
            if not doc.exists or not (doc.to_dict() or {}).get("is_active", False):
                return False
            doc_ref.update(
                {
                    "is_active": False,
                    "sync_status": IntegrationStatus.DISABLED.value,
                    "updated_at": datetime.now(UTC),
                }
            )
        except Exception as exc:
            self._log_error("deactivate", exc)
            raise FirestoreUnavailableError("Erro ao desativar integração") from exc
        return True

    def _log_error(self, action: str, exc: Exception) -> None:
        logger.error(
            "calendar_integration_store_error",
            extra={
                "component": "firestore_calendar_store",
                "action": action,
                "error_type": type(exc).__name__,
            },
        )


class FirestoreAppointmentStore(AppointmentStoreProtocol):
    """Store de agendamentos usando Firestore.

    Args:
        firestore_client: Cliente Firestore
        collection_name: Nome da collection (default: appointments)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = APPOINTMENTS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def _from_doc(self, doc: Any) -> Appointment:
        return Appointment.model_validate({**(doc.to_dict() or {}), "id": doc.id})

    async def get(self, appointment_id: str) -> Appointment | None:
        return await asyncio.to_thread(self._get_sync, appointment_id)

    def _get_sync(self, appointment_id: str) -> Appointment | None:
        try:
            doc = self._db.collection(self._collection).document(appointment_id).get()
        except Exception as exc:
            self._log_error("get", exc)
            raise FirestoreUnavailableError("Erro ao ler agendamento") from exc
        return self._from_doc(doc) if doc.exists else None

    async def find_by_patient(
        self,
        patient_id: str,
        statuses: Collection[AppointmentStatus],
    ) -> list[Appointment]:
        return await asyncio.to_thread(self._find_by_patient_sync, patient_id, statuses)

    def _find_by_patient_sync(
        self,
        patient_id: str,
        statuses: Collection[AppointmentStatus],
    ) -> list[Appointment]:
        query = (
            self._db.collection(self._collection)
            .where(filter=FieldFilter("patient.id", "==", patient_id))
            .where(filter=FieldFilter("status", "in", [str(s) for s in statuses]))
        )
        appointments = self._stream("find_by_patient", query)
        return sorted(appointments, key=_sort_key)

    async def find_by_date_range(
        self,
        start: datetime,
        end: datetime,
        statuses: Collection[AppointmentStatus],
        user_id: str | None = None,
    ) -> list[Appointment]:
        return await asyncio.to_thread(
            self._find_by_date_range_sync, start, end, statuses, user_id
        )

    def _find_by_date_range_sync(
        self,
        start: datetime,
        end: datetime,
        statuses: Collection[AppointmentStatus],
        user_id: str | None,
    ) -> list[Appointment]:
        query = (
            self._db.collection(self._collection)
            .where(filter=FieldFilter("start_time", ">=", start))
            .where(filter=FieldFilter("start_time", "<=", end))
        )
        if user_id is not None:
            query = query.where(filter=FieldFilter("user.id", "==", user_id))
        # Status filtrado em memória para evitar índice composto com range
        allowed = set(statuses)
        appointments = [a for a in self._stream("find_by_date_range", query) if a.status in allowed]
        return sorted(appointments, key=_sort_key)

    def _stream(self, action: str, query: Any) -> list[Appointment]:
        try:
            return [self._from_doc(doc) for doc in query.stream()]
        except Exception as exc:
            self._log_error(action, exc)
            raise FirestoreUnavailableError("Erro ao consultar agendamentos") from exc

    async def mark_synced(
        self,
        appointment_id: str,
        remote_event_id: str,
        synced_at: datetime,
    ) -> None:
        await asyncio.to_thread(
            self._update_sync,
            appointment_id,
            {
                "remote_event_id": remote_event_id,
                "sync_status": AppointmentSyncStatus.SYNCED.value,
                "sync_error": None,
                "last_sync_at": synced_at,
            },
        )

    async def mark_failed(
        self,
        appointment_id: str,
        error: str,
        remote_event_id: str | None = None,
    ) -> None:
        fields: dict[str, Any] = {
            "sync_status": AppointmentSyncStatus.FAILED.value,
            "sync_error": error,
        }
        if remote_event_id:
            fields["remote_event_id"] = remote_event_id
        await asyncio.to_thread(self._update_sync, appointment_id, fields)

    async def clear_remote_event(self, appointment_id: str) -> None:
        await asyncio.to_thread(
            self._update_sync,
            appointment_id,
            {
                "remote_event_id": None,
                "sync_status": AppointmentSyncStatus.PENDING.value,
                "sync_error": None,
            },
        )

    def _update_sync(self, appointment_id: str, fields: dict[str, Any]) -> None:
        try:
            self._db.collection(self._collection).document(appointment_id).update(fields)
        except NotFound as exc:
            raise AppointmentNotFoundError(appointment_id) from exc
        except Exception as exc:
            self._log_error("update", exc)
            raise FirestoreUnavailableError("Erro ao atualizar agendamento") from exc

    async def reset_sync_for_user(self, user_id: str) -> int:
        return await asyncio.to_thread(self._reset_sync_for_user_sync, user_id)

    def _reset_sync_for_user_sync(self, user_id: str) -> int:
        reset_fields = {
            "remote_event_id": None,
            "sync_status": AppointmentSyncStatus.PENDING.value,
            "sync_error": None,
        }
        try:
            docs = list(
                self._db.collection(self._collection)
                .where(filter=FieldFilter("user.id", "==", user_id))
                .stream()
            )
            for offset in range(0, len(docs), _BATCH_LIMIT):
                batch = self._db.batch()
                for doc in docs[offset:offset + _BATCH_LIMIT]:
                    batch.update(doc.reference, reset_fields)
                batch.commit()
        except Exception as exc:
            self._log_error("reset_sync_for_user", exc)
            raise FirestoreUnavailableError("Erro ao resetar sync dos agendamentos") from exc
        return len(docs)

    def _log_error(self, action: str, exc: Exception) -> None:
        logger.error(
            "appointment_store_error",
            extra={
                "component": "firestore_appointment_store",
                "action": action,
                "error_type": type(exc).__name__,
            },
        )
