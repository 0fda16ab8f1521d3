"""Helpers internos de request shaping e parsing da Google Calendar API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.calendar_event import RemoteCalendar

if TYPE_CHECKING:
    from googleapiclient.errors import HttpError

    from app.domain.calendar_event import RemoteEventPayload

# Status que indicam falha transitoria do provedor
_RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


def build_event_body(payload: RemoteEventPayload) -> dict[str, Any]:
    """Monta o corpo de events.insert/events.patch."""
    body: dict[str, Any] = {
        "summary": payload.title,
        "description": payload.description or "",
        "location": payload.location or "",
        "start": {"dateTime": _as_utc(payload.start).isoformat(), "timeZone": payload.timezone},
        "end": {"dateTime": _as_utc(payload.end).isoformat(), "timeZone": payload.timezone},
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": reminder.method, "minutes": reminder.minutes}
                for reminder in payload.reminders
            ],
        },
    }
    if payload.attendees:
        body["attendees"] = [{"email": email} for email in payload.attendees]
    return body


def map_calendar_list(response: dict[str, Any]) -> list[RemoteCalendar]:
    items = response.get("items") if isinstance(response, dict) else None
    if not isinstance(items, list):
        return []
    return [
        RemoteCalendar(
            id=str(item["id"]),
            summary=str(item.get("summary") or ""),
            primary=bool(item.get("primary", False)),
            time_zone=item.get("timeZone"),
            access_role=item.get("accessRole"),
        )
        for item in items
        if isinstance(item, dict) and item.get("id")
    ]


def extract_event_id(response: dict[str, Any]) -> str:
    event_id = response.get("id") if isinstance(response, dict) else None
    if not isinstance(event_id, str) or not event_id:
        # Falhamos explicitamente para nunca gravar SYNCED sem id remoto.
        raise ValueError("missing_event_id")
    return event_id


def http_status(exc: HttpError) -> int | None:
    response = getattr(exc, "resp", None)
    return int(response.status) if response and getattr(response, "status", None) else None


def is_retryable_status(status_code: int | None) -> bool:
    return status_code is None or status_code in _RETRYABLE_STATUSES


def safe_error_message(exc: HttpError) -> str:
    """Mensagem curta e legivel para sync_error, sem payload bruto."""
    reason = getattr(exc, "reason", None)
    text = reason if isinstance(reason, str) and reason.strip() else type(exc).__name__
    status_code = http_status(exc)
    message = " ".join(text.split())[:200]
    return f"Google Calendar API ({status_code}): {message}" if status_code else message


def _as_utc(value: datetime) -> datetime:
    # Datetime ingenuo e tratado como UTC em todo o motor
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
