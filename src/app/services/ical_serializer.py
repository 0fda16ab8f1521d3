"""Serializador iCalendar (RFC 5545) para agendamentos.

Funcoes puras, sem I/O: recebem agendamentos ja carregados e devolvem
texto .ics compativel com Apple Calendar, Outlook e Google Calendar.
Montagem dos componentes, escape de TEXT e dobra de linhas em 75 octetos
ficam com a biblioteca icalendar.

Regras de formato:
    - DTSTAMP em UTC basico (YYYYMMDDTHHMMSSZ)
    - DTSTART/DTEND em horario local da clinica com TZID, sem 'Z'
    - quebras de linha CRLF/CR do texto de entrada viram LF antes do escape
    - toda linha de conteudo termina em CRLF
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from icalendar import Alarm, Calendar, Event, Timezone, TimezoneStandard

from app.domain.appointment import AppointmentStatus
from utils.errors import EmptyResultError, SerializationPreconditionError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from app.domain.appointment import Appointment
    from config.settings.calendar import CalendarSettings, ReminderSetting

CRLF = "\r\n"

STATUS_MAP: dict[AppointmentStatus, str] = {
    AppointmentStatus.SCHEDULED: "TENTATIVE",
    AppointmentStatus.CONFIRMED: "CONFIRMED",
    AppointmentStatus.CANCELLED: "CANCELLED",
    AppointmentStatus.COMPLETED: "CONFIRMED",
    AppointmentStatus.NO_SHOW: "CANCELLED",
}

_MINUTES_PER_DAY = 24 * 60

# Inicio arbitrario do bloco STANDARD; a regiao da clinica nao tem horario de verao
_TIMEZONE_EPOCH = datetime(1970, 1, 1)


def normalize_newlines(value: str) -> str:
    """CRLF e CR soltos viram LF; TEXT nao pode carregar CR cru."""
    return value.replace("\r\n", "\n").replace("\r", "\n")


def _param_text(value: str) -> str:
    # Parametros nao aceitam quebra de linha nem escape
    return " ".join(normalize_newlines(value).split())


def local_wall_time(value: datetime, utc_offset_minutes: int) -> datetime:
    """Horario de parede da clinica, sem tzinfo, para uso com TZID.

    Datetime ingenuo conta como UTC.
    """
    zone = timezone(timedelta(minutes=utc_offset_minutes))
    return _as_utc(value).astimezone(zone).replace(tzinfo=None)


def reminder_phrase(minutes: int) -> str:
    if minutes == _MINUTES_PER_DAY:
        return "amanhã"
    if minutes % _MINUTES_PER_DAY == 0:
        return f"em {minutes // _MINUTES_PER_DAY} dias"
    if minutes == 60:
        return "em 1 hora"
    if minutes % 60 == 0:
        return f"em {minutes // 60} horas"
    return f"em {minutes} minutos"


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def check_serializable(appointment: Appointment) -> tuple[datetime, datetime]:
    """Valida campos minimos para virar VEVENT.

    Returns:
        (inicio, fim) do agendamento.

    Raises:
        SerializationPreconditionError: titulo/inicio/fim ausente ou fim antes do inicio
    """
    start, end = appointment.start_time, appointment.end_time
    missing = [
        name
        for name, value in (
            ("title", appointment.title.strip()),
            ("start_time", start),
            ("end_time", end),
        )
        if not value
    ]
    if missing or start is None or end is None:
        raise SerializationPreconditionError(
            f"Agendamento {appointment.id} sem campos obrigatórios: {', '.join(missing)}"
        )
    if _as_utc(end) < _as_utc(start):
        raise SerializationPreconditionError(
            f"Agendamento {appointment.id} termina antes de começar"
        )
    return start, end


class ICalendarSerializer:
    """Gera documentos VCALENDAR a partir de agendamentos.

    Args:
        settings: Timezone, lembretes e identidade do calendario exportado
        clock: Fonte do DTSTAMP (injetavel em testes)
    """

    __slots__ = ("_clock", "_settings")

    def __init__(
        self,
        settings: CalendarSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    def event_uid(self, appointment_id: str) -> str:
        """UID estavel: reexportar o mesmo agendamento atualiza em vez de duplicar."""
        return f"appointment-{appointment_id}@{self._settings.ics_uid_domain}"

    def serialize_event(self, appointment: Appointment) -> str:
        """Um VEVENT dentro de um VCALENDAR."""
        return self.serialize_events([appointment])

    def serialize_events(self, appointments: Sequence[Appointment]) -> str:
        """Um VCALENDAR com um VEVENT por agendamento, na ordem recebida.

        Raises:
            EmptyResultError: Sequencia vazia
            SerializationPreconditionError: Agendamento sem campos minimos
        """
        return self.build_calendar(appointments).to_ical().decode("utf-8")

    def build_calendar(self, appointments: Sequence[Appointment]) -> Calendar:
        """Mesmo documento de serialize_events, como componente icalendar."""
        if not appointments:
            raise EmptyResultError("Nenhum agendamento para exportar")
        windows = [check_serializable(appointment) for appointment in appointments]

        stamp = _as_utc(self._clock())
        calendar = self._calendar()
        for appointment, (start, end) in zip(appointments, windows, strict=True):
            calendar.add_component(self._event(appointment, start, end, stamp))
        return calendar

    def _calendar(self) -> Calendar:
        settings = self._settings
        calendar = Calendar()
        calendar.add("version", "2.0")
        calendar.add("prodid", settings.ics_product_id)
        calendar.add("calscale", "GREGORIAN")
        calendar.add("method", "PUBLISH")
        calendar.add("x-wr-calname", settings.ics_calendar_name)
        calendar.add("x-wr-timezone", settings.calendar_timezone)

        offset = timedelta(minutes=settings.utc_offset_minutes)
        standard = TimezoneStandard()
        standard.add("dtstart", _TIMEZONE_EPOCH)
        standard.add("tzoffsetfrom", offset)
        standard.add("tzoffsetto", offset)
        standard.add("tzname", settings.calendar_tzname)

        vtimezone = Timezone()
        vtimezone.add("tzid", settings.calendar_timezone)
        vtimezone.add_component(standard)
        calendar.add_component(vtimezone)
        return calendar

    def _event(
        self,
        appointment: Appointment,
        start: datetime,
        end: datetime,
        stamp: datetime,
    ) -> Event:
        settings = self._settings
        tzid = {"TZID": settings.calendar_timezone}
        offset = settings.utc_offset_minutes
        title = normalize_newlines(appointment.title)

        event = Event()
        event.add("uid", self.event_uid(appointment.id))
        event.add("dtstamp", stamp)
        event.add("dtstart", local_wall_time(start, offset), parameters=tzid)
        event.add("dtend", local_wall_time(end, offset), parameters=tzid)
        event.add("summary", title)
        if appointment.description:
            event.add("description", normalize_newlines(appointment.description))
        if appointment.location:
            event.add("location", normalize_newlines(appointment.location))
        event.add("status", STATUS_MAP.get(appointment.status, "TENTATIVE"))

        user = appointment.user
        if user.email:
            event.add(
                "organizer",
                f"mailto:{user.email}",
                parameters={"CN": _param_text(user.name)},
            )
        patient = appointment.patient
        if patient is not None and patient.email:
            event.add(
                "attendee",
                f"mailto:{patient.email}",
                parameters={"CN": _param_text(patient.full_name), "RSVP": "TRUE"},
            )

        for reminder in settings.reminders:
            event.add_component(self._alarm(reminder, title))
        return event

    def _alarm(self, reminder: ReminderSetting, title: str) -> Alarm:
        alarm = Alarm()
        alarm.add("action", "DISPLAY")
        alarm.add("description", f"Lembrete: {title} {reminder_phrase(reminder.minutes)}")
        alarm.add("trigger", timedelta(minutes=-reminder.minutes))
        return alarm


__all__ = [
    "CRLF",
    "STATUS_MAP",
    "ICalendarSerializer",
    "check_serializable",
    "local_wall_time",
    "normalize_newlines",
    "reminder_phrase",
]
