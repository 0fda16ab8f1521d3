"""Modelos de dominio para agendamento com calendario.

Esses contratos ficam no dominio para compartilhar dados entre servicos
sem acoplar regras de negocio a detalhes de provider externo. O motor
de sincronizacao le os campos de agenda e escreve apenas os quatro
campos de sync (remote_event_id, sync_status, sync_error, last_sync_at).
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from fsm.states import AppointmentSyncStatus


class AppointmentStatus(StrEnum):
    """Ciclo de vida de agendamento (fora do motor de sync)."""

    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


# Status exportados por paciente e por periodo
PATIENT_EXPORT_STATUSES: frozenset[AppointmentStatus] = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
})
RANGE_EXPORT_STATUSES: frozenset[AppointmentStatus] = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
})


class AppointmentUser(BaseModel):
    """Profissional dono do agendamento (ORGANIZER)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identificador do usuario dono da agenda.")
    name: str = Field(default="", description="Nome exibido do profissional.")
    email: str | None = Field(default=None, description="Email do profissional.")


class AppointmentPatient(BaseModel):
    """Paciente vinculado ao agendamento (ATTENDEE)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identificador do paciente.")
    full_name: str = Field(default="", description="Nome completo do paciente.")
    email: str | None = Field(default=None, description="Email do paciente.")


class Appointment(BaseModel):
    """Agendamento com os campos relevantes para sync e exportacao."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identificador unico do agendamento.")
    title: str = Field(default="", description="Titulo exibido no evento.")
    description: str | None = Field(default=None, description="Descricao livre.")
    location: str | None = Field(default=None, description="Local da consulta.")
    start_time: datetime | None = Field(default=None, description="Inicio da consulta.")
    end_time: datetime | None = Field(default=None, description="Fim da consulta.")
    status: AppointmentStatus = Field(
        default=AppointmentStatus.SCHEDULED,
        description="Status de agenda do atendimento.",
    )
    user: AppointmentUser = Field(..., description="Profissional dono da agenda.")
    patient: AppointmentPatient | None = Field(
        default=None,
        description="Paciente vinculado, quando houver.",
    )
    remote_event_id: str | None = Field(
        default=None,
        description="Id do evento no calendario externo.",
    )
    sync_status: AppointmentSyncStatus = Field(
        default=AppointmentSyncStatus.PENDING,
        description="Estado de sincronizacao com o calendario externo.",
    )
    sync_error: str | None = Field(default=None, description="Ultimo erro de sync.")
    last_sync_at: datetime | None = Field(
        default=None,
        description="Momento do ultimo sync bem-sucedido.",
    )

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def patient_id(self) -> str | None:
        return self.patient.id if self.patient else None


__all__ = [
    "PATIENT_EXPORT_STATUSES",
    "RANGE_EXPORT_STATUSES",
    "Appointment",
    "AppointmentPatient",
    "AppointmentStatus",
    "AppointmentUser",
]
