"""Contratos de evento remoto trocados com o gateway de calendario."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic

from pydantic import BaseModel, ConfigDict, Field


class ReminderOverride(BaseModel):
    """Lembrete explicito enviado ao provedor."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    method: str = Field(..., description="email ou popup.")
    minutes: int = Field(..., ge=0, description="Antecedencia em minutos.")


class RemoteEventPayload(BaseModel):
    """Campos de um evento remoto, independentes do provedor."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Titulo do evento.")
    description: str | None = Field(default=None)
    location: str | None = Field(default=None)
    start: datetime = Field(..., description="Inicio do evento.")
    end: datetime = Field(..., description="Fim do evento.")
    timezone: str = Field(..., description="Timezone IANA aplicada a start/end.")
    attendees: list[str] = Field(default_factory=list, description="Emails convidados.")
    reminders: list[ReminderOverride] = Field(default_factory=list)


class RemoteCalendar(BaseModel):
    """Calendario disponivel na conta externa."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identificador do calendario.")
    summary: str = Field(default="", description="Nome exibido.")
    primary: bool = Field(default=False)
    time_zone: str | None = Field(default=None)
    access_role: str | None = Field(default=None)


__all__ = ["ReminderOverride", "RemoteCalendar", "RemoteEventPayload"]
