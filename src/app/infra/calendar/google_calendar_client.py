"""Client concreto de Google Calendar para o motor de sincronizacao."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.infra.calendar.google_calendar_parsers import (
    build_event_body,
    extract_event_id,
    http_status,
    is_retryable_status,
    map_calendar_list,
    safe_error_message,
)
from app.observability import get_correlation_id, record_latency
from app.protocols.calendar_gateway import CalendarGatewayProtocol
from config.settings.google_calendar import (
    GOOGLE_CALENDAR_API_NAME,
    GOOGLE_CALENDAR_API_VERSION,
)
from utils.errors import CalendarTimeoutError, GatewayError

if TYPE_CHECKING:
    from app.domain.calendar_event import RemoteCalendar, RemoteEventPayload

logger = logging.getLogger(__name__)

_COMPONENT = "google_calendar_client"

ServiceFactory = Callable[[Credentials], Any]


def _build_service(credentials: Credentials) -> Any:
    return build(
        GOOGLE_CALENDAR_API_NAME,
        GOOGLE_CALENDAR_API_VERSION,
        credentials=credentials,
        cache_discovery=False,
    )


class GoogleCalendarGateway(CalendarGatewayProtocol):
    """Implementacao do gateway usando API v3 do Google com token do usuario.

    O SDK e bloqueante: cada chamada roda em thread e e limitada por
    timeout_seconds.
    """

    __slots__ = ("_service_factory", "_timeout_seconds")

    def __init__(
        self,
        *,
        timeout_seconds: float,
        service_factory: ServiceFactory | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._service_factory = service_factory or _build_service

    async def list_calendars(self, access_token: str) -> list[RemoteCalendar]:
        response = await self._call(
            "list_calendars",
            access_token,
            lambda service: service.calendarList().list().execute(),
        )
        return map_calendar_list(response)

    async def create_event(
        self,
        access_token: str,
        calendar_id: str,
        payload: RemoteEventPayload,
    ) -> str:
        body = build_event_body(payload)
        response = await self._call(
            "create_event",
            access_token,
            lambda service: service.events()
            .insert(calendarId=calendar_id, body=body, sendUpdates="all")
            .execute(),
        )
        try:
            return extract_event_id(response)
        except ValueError as exc:
            raise GatewayError(
                "Google Calendar API retornou evento sem id",
                is_retryable=False,
            ) from exc

    async def update_event(
        self,
        access_token: str,
        calendar_id: str,
        remote_event_id: str,
        payload: RemoteEventPayload,
    ) -> None:
        body = build_event_body(payload)
        await self._call(
            "update_event",
            access_token,
            lambda service: service.events()
            .patch(calendarId=calendar_id, eventId=remote_event_id, body=body, sendUpdates="all")
            .execute(),
        )

    async def delete_event(
        self,
        access_token: str,
        calendar_id: str,
        remote_event_id: str,
    ) -> None:
        try:
            await self._call(
                "delete_event",
                access_token,
                lambda service: service.events()
                .delete(calendarId=calendar_id, eventId=remote_event_id, sendUpdates="all")
                .execute(),
            )
        except GatewayError as exc:
            if exc.status_code in {404, 410}:
                logger.info(
                    "google_calendar_event_missing",
                    extra={
                        "component": _COMPONENT,
                        "action": "delete_event",
                        "result": "not_found",
                        "correlation_id": get_correlation_id(),
                    },
                )
                return
            raise

    async def _call(
        self,
        action: str,
        access_token: str,
        operation: Callable[[Any], Any],
    ) -> Any:
        started = time.perf_counter()

        def _run() -> Any:
            service = self._service_factory(Credentials(token=access_token))
            return operation(service)

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(_run),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as exc:
            self._log_error(action=action, result="timeout")
            raise CalendarTimeoutError(
                f"Google Calendar API excedeu {self._timeout_seconds:g}s em {action}"
            ) from exc
        except HttpError as exc:
            status_code = http_status(exc)
            if status_code not in {404, 410} or action != "delete_event":
                self._log_error(action=action, result="error", exc=exc)
            raise GatewayError(
                safe_error_message(exc),
                status_code=status_code,
                is_retryable=is_retryable_status(status_code),
            ) from exc
        except Exception as exc:
            self._log_error(action=action, result="error")
            raise GatewayError(f"Falha ao chamar Google Calendar API: {type(exc).__name__}") from exc
        finally:
            record_latency(_COMPONENT, action, (time.perf_counter() - started) * 1000)

    def _log_error(self, *, action: str, result: str, exc: HttpError | None = None) -> None:
        extra: dict[str, Any] = {
            "component": _COMPONENT,
            "action": action,
            "result": result,
            "correlation_id": get_correlation_id(),
        }
        if exc is not None:
            extra["status_code"] = http_status(exc)
            extra["error_type"] = type(exc).__name__
            logger.error("google_calendar_http_error", extra=extra)
            return
        if result == "timeout":
            logger.warning("google_calendar_timeout", extra=extra)
            return
        logger.exception("google_calendar_unexpected_error", extra=extra)
