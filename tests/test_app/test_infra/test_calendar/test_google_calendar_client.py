"""Testes unitarios para o gateway de Google Calendar."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock

import pytest

from app.domain.calendar_event import ReminderOverride, RemoteEventPayload
from app.infra.calendar.google_calendar_client import GoogleCalendarGateway
from app.infra.calendar.google_calendar_parsers import build_event_body, map_calendar_list


def _payload(**overrides: Any) -> RemoteEventPayload:
    data: dict[str, Any] = {
        "title": "Consulta - Maria Silva",
        "description": "Retorno",
        "location": "Consultório 2",
        "start": datetime(2026, 3, 12, 13, 0, tzinfo=UTC),
        "end": datetime(2026, 3, 12, 14, 0, tzinfo=UTC),
        "timezone": "America/Sao_Paulo",
        "attendees": ["maria@example.com"],
        "reminders": [ReminderOverride(method="popup", minutes=30)],
    }
    data.update(overrides)
    return RemoteEventPayload(**data)


def _gateway(service: MagicMock, timeout_seconds: float = 5.0) -> tuple[GoogleCalendarGateway, MagicMock]:
    factory = MagicMock(return_value=service)
    return GoogleCalendarGateway(timeout_seconds=timeout_seconds, service_factory=factory), factory


class TestRequestShaping:
    """Montagem de corpo e parsing de respostas."""

    def test_event_body_has_reminders_and_attendees(self) -> None:
        body = build_event_body(_payload())

        assert body["summary"] == "Consulta - Maria Silva"
        assert body["start"] == {
            "dateTime": "2026-03-12T13:00:00+00:00",
            "timeZone": "America/Sao_Paulo",
        }
        assert body["reminders"] == {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": 30}],
        }
        assert body["attendees"] == [{"email": "maria@example.com"}]

    def test_event_body_without_attendees(self) -> None:
        body = build_event_body(_payload(attendees=[], description=None))
        assert "attendees" not in body
        assert body["description"] == ""

    def test_naive_datetimes_are_utc(self) -> None:
        body = build_event_body(_payload(start=datetime(2026, 3, 12, 13, 0)))
        assert body["start"]["dateTime"] == "2026-03-12T13:00:00+00:00"

    def test_calendar_list_mapping_skips_items_without_id(self) -> None:
        calendars = map_calendar_list(
            {
                "items": [
                    {"id": "primary-cal", "summary": "Agenda", "primary": True, "accessRole": "owner"},
                    {"summary": "sem id"},
                    {"id": "other"},
                ]
            }
        )

        assert [c.id for c in calendars] == ["primary-cal", "other"]
        assert calendars[0].primary is True
        assert calendars[0].access_role == "owner"
        assert calendars[1].summary == ""

    def test_calendar_list_mapping_handles_invalid_payload(self) -> None:
        assert map_calendar_list({}) == []


class TestGoogleCalendarGateway:
    """Operacoes remotas com o SDK substituido por mock."""

    @pytest.mark.asyncio
    async def test_create_event_returns_remote_id(self) -> None:
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {"id": "evt-1"}
        gateway, factory = _gateway(service)

        remote_id = await gateway.create_event("access-1", "primary-cal", _payload())

        assert remote_id == "evt-1"
        assert factory.call_args[0][0].token == "access-1"
        kwargs = service.events.return_value.insert.call_args.kwargs
        assert kwargs["calendarId"] == "primary-cal"
        assert kwargs["sendUpdates"] == "all"
        assert kwargs["body"]["summary"] == "Consulta - Maria Silva"

    @pytest.mark.asyncio
    async def test_update_event_patches_existing(self) -> None:
        service = MagicMock()
        gateway, _ = _gateway(service)

        await gateway.update_event("access-1", "primary", "evt-1", _payload())

        kwargs = service.events.return_value.patch.call_args.kwargs
        assert kwargs["eventId"] == "evt-1"
        assert kwargs["calendarId"] == "primary"

    @pytest.mark.asyncio
    async def test_delete_event(self) -> None:
        service = MagicMock()
        gateway, _ = _gateway(service)

        await gateway.delete_event("access-1", "primary", "evt-1")

        service.events.return_value.delete.assert_called_once_with(
            calendarId="primary", eventId="evt-1", sendUpdates="all"
        )

    @pytest.mark.asyncio
    async def test_list_calendars(self) -> None:
        service = MagicMock()
        service.calendarList.return_value.list.return_value.execute.return_value = {
            "items": [{"id": "primary-cal", "summary": "Agenda", "primary": True}]
        }
        gateway, _ = _gateway(service)

        calendars = await gateway.list_calendars("access-1")

        assert [(c.id, c.primary) for c in calendars] == [("primary-cal", True)]
