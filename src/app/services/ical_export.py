"""Exportacao .ics: seleciona agendamentos e delega ao serializador."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.domain.appointment import PATIENT_EXPORT_STATUSES, RANGE_EXPORT_STATUSES
from utils.errors import AppointmentNotFoundError, EmptyResultError

if TYPE_CHECKING:
    from datetime import datetime

    from app.protocols.calendar_store import AppointmentStoreProtocol
    from app.services.ical_serializer import ICalendarSerializer

logger = logging.getLogger(__name__)

ICS_CONTENT_TYPE = "text/calendar; charset=utf-8"


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Arquivo .ics pronto para download."""

    content: str
    filename: str
    content_type: str = ICS_CONTENT_TYPE


def range_filename(start: datetime, end: datetime, user_id: str | None = None) -> str:
    owner = f"-{user_id}" if user_id else ""
    return f"agendamentos{owner}-{start.date().isoformat()}-{end.date().isoformat()}.ics"


class ICalendarExporter:
    """Wrappers de exportacao por agendamento, paciente e periodo."""

    __slots__ = ("_appointments", "_serializer")

    def __init__(
        self,
        *,
        appointment_store: AppointmentStoreProtocol,
        serializer: ICalendarSerializer,
    ) -> None:
        self._appointments = appointment_store
        self._serializer = serializer

    async def export_appointment(self, appointment_id: str) -> ExportResult:
        appointment = await self._appointments.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)
        content = self._serializer.serialize_event(appointment)
        self._log("appointment", 1)
        return ExportResult(content=content, filename=f"agendamento-{appointment_id}.ics")

    async def export_patient(self, patient_id: str) -> ExportResult:
        """Agendamentos ativos (SCHEDULED/CONFIRMED) do paciente."""
        appointments = await self._appointments.find_by_patient(
            patient_id, PATIENT_EXPORT_STATUSES
        )
        if not appointments:
            raise EmptyResultError("Nenhum agendamento encontrado para este paciente")
        content = self._serializer.serialize_events(appointments)
        self._log("patient", len(appointments))
        return ExportResult(
            content=content,
            filename=f"agendamentos-paciente-{patient_id}.ics",
        )

    async def export_range(
        self,
        start: datetime,
        end: datetime,
        user_id: str | None = None,
    ) -> ExportResult:
        """Agendamentos SCHEDULED/CONFIRMED/COMPLETED com inicio em [start, end]."""
        appointments = await self._appointments.find_by_date_range(
            start, end, RANGE_EXPORT_STATUSES, user_id=user_id
        )
        if not appointments:
            raise EmptyResultError("Nenhum agendamento encontrado para este período")
        content = self._serializer.serialize_events(appointments)
        self._log("range", len(appointments))
        return ExportResult(content=content, filename=range_filename(start, end, user_id))

    def _log(self, scope: str, count: int) -> None:
        logger.info(
            "ics_export_generated",
            extra={
                "component": "ical_export",
                "action": f"export_{scope}",
                "result": "ok",
                "event_count": count,
            },
        )
