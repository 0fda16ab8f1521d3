"""Settings de integracao com Google Calendar.

Centralizar a leitura de env aqui evita espalhar parse de configuracao
pela aplicacao e reduz risco de divergencia entre servicos. A mesma
instancia alimenta o cliente OAuth, o gateway, o serializador iCalendar
e a maquina de sincronizacao.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.settings.google_calendar import DEFAULT_GOOGLE_SCOPES

_UTC_OFFSET_PATTERN = re.compile(r"^[+-](?:[01]\d|2[0-3])[0-5]\d$")


class ReminderSetting(BaseModel):
    """Lembrete aplicado a cada evento (override remoto e VALARM)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    method: str = Field(
        default="popup",
        description="Metodo do lembrete no provedor (email ou popup).",
    )
    minutes: int = Field(
        ge=1,
        description="Antecedencia do lembrete em minutos.",
    )


def _default_reminders() -> list[ReminderSetting]:
    return [
        ReminderSetting(method="email", minutes=24 * 60),
        ReminderSetting(method="popup", minutes=60),
    ]


class CalendarSettings(BaseModel):
    """Configuracoes do motor de sincronizacao e exportacao de agenda."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    google_client_id: str = Field(
        default="",
        description="Client ID OAuth do app Google.",
    )
    google_client_secret: str = Field(
        default="",
        description="Client secret OAuth do app Google.",
    )
    google_redirect_uri: str = Field(
        default="http://localhost:3002/api/calendar/google/callback",
        description="URI de retorno registrada no console Google.",
    )
    google_scopes: tuple[str, ...] = Field(
        default=DEFAULT_GOOGLE_SCOPES,
        description="Escopos solicitados no consentimento.",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Limite para chamadas ao provedor de identidade e ao gateway.",
    )
    calendar_timezone: str = Field(
        default="America/Sao_Paulo",
        description="TZID usado em DTSTART/DTEND e no corpo dos eventos remotos.",
    )
    calendar_utc_offset: str = Field(
        default="-0300",
        description="Offset fixo da clinica no formato +HHMM/-HHMM.",
    )
    calendar_tzname: str = Field(
        default="BRT",
        description="Abreviacao exibida no VTIMEZONE.",
    )
    reminders: tuple[ReminderSetting, ...] = Field(
        default_factory=lambda: tuple(_default_reminders()),
        description="Lembretes aplicados a cada evento, em ordem.",
    )
    ics_uid_domain: str = Field(
        default="dra-thayna-marra.com.br",
        description="Sufixo de dominio do UID dos eventos exportados.",
    )
    ics_product_id: str = Field(
        default="-//Dra. Thayná Marra//Sistema de Agendamento//PT-BR",
        description="Valor de PRODID do VCALENDAR.",
    )
    ics_calendar_name: str = Field(
        default="Consultas - Dra. Thayná Marra",
        description="Valor de X-WR-CALNAME do VCALENDAR.",
    )
    frontend_calendar_url: str = Field(
        default="http://localhost:5173/settings/calendar",
        description="Pagina do frontend que recebe o retorno do callback OAuth.",
    )

    @field_validator("calendar_utc_offset")
    @classmethod
    def _strip_offset(cls, value: str) -> str:
        return value.strip()

    @property
    def utc_offset_minutes(self) -> int:
        """Offset fixo em minutos (negativo a oeste de UTC)."""
        sign = -1 if self.calendar_utc_offset.startswith("-") else 1
        hours = int(self.calendar_utc_offset[1:3])
        minutes = int(self.calendar_utc_offset[3:5])
        return sign * (hours * 60 + minutes)

    def validation_errors(self) -> list[str]:
        """Valida configuracoes minimas.

        Returns:
            Lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if not self.google_client_id:
            errors.append("GOOGLE_CLIENT_ID nao configurado")
        if not self.google_client_secret:
            errors.append("GOOGLE_CLIENT_SECRET nao configurado")
        if not self.google_redirect_uri:
            errors.append("GOOGLE_REDIRECT_URI nao configurado")
        if not _UTC_OFFSET_PATTERN.match(self.calendar_utc_offset):
            errors.append(
                f"CALENDAR_UTC_OFFSET invalido: {self.calendar_utc_offset}"
            )
        if not self.ics_uid_domain:
            errors.append("ICS_UID_DOMAIN nao pode ser vazio")
        return errors


def _read_optional_env(key: str) -> str | None:
    """Retorna valor opcional da env sem propagar string vazia."""
    raw_value = os.getenv(key)
    if raw_value is None:
        return None
    stripped_value = raw_value.strip()
    return stripped_value or None


def _parse_scopes(value: str | None) -> tuple[str, ...]:
    """Aceita escopos separados por espaco ou virgula."""
    if not value:
        return DEFAULT_GOOGLE_SCOPES
    return tuple(scope for scope in re.split(r"[\s,]+", value) if scope)


def _parse_reminders(value: str | None) -> tuple[ReminderSetting, ...]:
    """Converte 'email:1440,popup:60' em lembretes.

    Itens malformados sao ignorados; sem itens validos usa o padrao.
    """
    if not value:
        return tuple(_default_reminders())
    reminders: list[ReminderSetting] = []
    for item in value.split(","):
        method, _, minutes = item.strip().partition(":")
        if not method or not minutes.strip().isdigit() or int(minutes) < 1:
            continue
        reminders.append(ReminderSetting(method=method.strip(), minutes=int(minutes)))
    return tuple(reminders) or tuple(_default_reminders())


def _load_calendar_from_env() -> CalendarSettings:
    """Carrega CalendarSettings a partir de variaveis de ambiente."""
    defaults = CalendarSettings()
    return CalendarSettings(
        google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET", ""),
        google_redirect_uri=(
            _read_optional_env("GOOGLE_REDIRECT_URI") or defaults.google_redirect_uri
        ),
        google_scopes=_parse_scopes(_read_optional_env("GOOGLE_CALENDAR_SCOPES")),
        request_timeout_seconds=float(
            os.getenv("CALENDAR_REQUEST_TIMEOUT_SECONDS", "30")
        ),
        calendar_timezone=os.getenv("CALENDAR_TIMEZONE", defaults.calendar_timezone),
        calendar_utc_offset=os.getenv(
            "CALENDAR_UTC_OFFSET", defaults.calendar_utc_offset
        ),
        calendar_tzname=os.getenv("CALENDAR_TZNAME", defaults.calendar_tzname),
        reminders=_parse_reminders(_read_optional_env("CALENDAR_REMINDERS")),
        ics_uid_domain=os.getenv("ICS_UID_DOMAIN", defaults.ics_uid_domain),
        ics_product_id=os.getenv("ICS_PRODUCT_ID", defaults.ics_product_id),
        ics_calendar_name=os.getenv("ICS_CALENDAR_NAME", defaults.ics_calendar_name),
        frontend_calendar_url=(
            _read_optional_env("FRONTEND_CALENDAR_URL")
            or defaults.frontend_calendar_url
        ),
    )


@lru_cache(maxsize=1)
def get_calendar_settings() -> CalendarSettings:
    """Retorna instancia cacheada de CalendarSettings."""
    return _load_calendar_from_env()


__all__ = ["CalendarSettings", "ReminderSetting", "get_calendar_settings"]
