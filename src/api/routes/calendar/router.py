"""Endpoints de integração de calendário (/api/calendar).

Camada fina: extrai parâmetros, delega ao CalendarIntegrationService
e traduz a taxonomia de erros para status HTTP.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Annotated, Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.bootstrap import get_calendar_service
from app.domain.calendar_event import RemoteCalendar
from app.domain.calendar_integration import IntegrationStatusView
from app.observability import CORRELATION_HEADER, correlation_scope, get_correlation_id
from app.use_cases.calendar import CalendarIntegrationService
from config.settings import get_calendar_settings
from fsm.states import AppointmentSyncStatus
from utils.errors import (
    AuthExchangeError,
    CalendarError,
    CalendarTimeoutError,
    EmptyResultError,
    GatewayError,
    InfrastructureError,
    NotAuthenticatedError,
    NotFoundError,
    RefreshError,
    SerializationPreconditionError,
    SyncInProgressError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Ordem importa: subclasses antes das bases
_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (NotAuthenticatedError, 401),
    (RefreshError, 401),
    (AuthExchangeError, 400),
    (NotFoundError, 404),
    (EmptyResultError, 404),
    (SyncInProgressError, 409),
    (SerializationPreconditionError, 422),
    (CalendarTimeoutError, 504),
    (GatewayError, 502),
    (InfrastructureError, 503),
    (ValueError, 400),
)


class AuthUrlResponse(BaseModel):
    auth_url: str


class CalendarListResponse(BaseModel):
    calendars: list[RemoteCalendar]


class DisconnectRequest(BaseModel):
    """Corpo do POST de desconexão."""

    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(
        default="",
        validation_alias=AliasChoices("user_id", "userId"),
        description="Usuário dono da integração.",
    )


class OperationResponse(BaseModel):
    success: bool
    message: str


class SyncResponse(OperationResponse):
    appointment_id: str
    action: str
    sync_status: AppointmentSyncStatus
    remote_event_id: str | None = None


ServiceDep = Annotated[CalendarIntegrationService, Depends(get_calendar_service)]


def status_for_error(exc: Exception) -> int:
    """Status HTTP correspondente ao erro (500 quando não mapeado)."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


def _error_response(exc: Exception, action: str) -> JSONResponse:
    status_code = status_for_error(exc)
    logger.log(
        logging.ERROR if status_code >= 500 else logging.WARNING,
        "calendar_request_failed",
        extra={
            "component": "calendar_api",
            "action": action,
            "result": "error",
            "status_code": status_code,
            "error_type": type(exc).__name__,
            "correlation_id": get_correlation_id(),
        },
    )
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


def _require_user_id(user_id: str) -> None:
    if not user_id:
        raise ValueError("userId é obrigatório")


def _ics_response(content: str, filename: str, content_type: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _clinic_day_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Dias inteiros no fuso da clínica, fim inclusivo."""
    zone = timezone(timedelta(minutes=get_calendar_settings().utc_offset_minutes))
    return (
        datetime.combine(start_date, time.min, tzinfo=zone),
        datetime.combine(end_date, time.max, tzinfo=zone),
    )


# ──────────────────────────────────────────────────────────────────────────────
# OAuth
# ──────────────────────────────────────────────────────────────────────────────


@router.get("/google/auth", response_model=AuthUrlResponse)
async def google_auth_url(
    request: Request,
    service: ServiceDep,
    user_id: Annotated[str, Query(alias="userId")] = "",
) -> Any:
    """URL de consentimento OAuth para o usuário."""
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            _require_user_id(user_id)
            return AuthUrlResponse(auth_url=service.get_authorization_url(user_id))
        except (CalendarError, ValueError) as exc:
            return _error_response(exc, "google_auth_url")


@router.get("/google/callback")
async def google_callback(
    request: Request,
    service: ServiceDep,
    code: str | None = None,
    state: str | None = None,
) -> RedirectResponse:
    """Callback OAuth: grava a integração e redireciona ao frontend."""
    redirect_base = get_calendar_settings().frontend_calendar_url
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            await service.handle_callback(code, state)
        except (CalendarError, InfrastructureError) as exc:
            logger.warning(
                "calendar_oauth_callback_failed",
                extra={
                    "component": "calendar_api",
                    "action": "google_callback",
                    "result": "error",
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            query = urlencode({"error": str(exc)})
            return RedirectResponse(f"{redirect_base}?{query}", status_code=302)
        return RedirectResponse(f"{redirect_base}?success=true", status_code=302)


@router.get("/google/calendars", response_model=CalendarListResponse)
async def google_calendars(
    request: Request,
    service: ServiceDep,
    user_id: Annotated[str, Query(alias="userId")] = "",
) -> Any:
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            _require_user_id(user_id)
            calendars = await service.list_calendars(user_id)
        except (CalendarError, InfrastructureError, ValueError) as exc:
            return _error_response(exc, "google_calendars")
        return CalendarListResponse(calendars=calendars)


@router.get("/google/status", response_model=IntegrationStatusView)
async def google_status(
    request: Request,
    service: ServiceDep,
    user_id: Annotated[str, Query(alias="userId")] = "",
) -> Any:
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            _require_user_id(user_id)
            return await service.get_integration_status(user_id)
        except (CalendarError, InfrastructureError, ValueError) as exc:
            return _error_response(exc, "google_status")


@router.post("/google/disconnect", response_model=OperationResponse)
async def google_disconnect(
    request: Request,
    body: DisconnectRequest,
    service: ServiceDep,
) -> Any:
    """Desconexão local: eventos remotos permanecem no calendário externo."""
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            _require_user_id(body.user_id)
            await service.disconnect(body.user_id)
        except (CalendarError, InfrastructureError, ValueError) as exc:
            return _error_response(exc, "google_disconnect")
        return OperationResponse(success=True, message="Integração desconectada com sucesso")


# ──────────────────────────────────────────────────────────────────────────────
# Sincronização
# ──────────────────────────────────────────────────────────────────────────────


@router.post("/sync/{appointment_id}", response_model=SyncResponse)
async def sync_appointment(request: Request, appointment_id: str, service: ServiceDep) -> Any:
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            result = await service.sync(appointment_id)
        except (CalendarError, InfrastructureError) as exc:
            return _error_response(exc, "sync")
        return SyncResponse(
            success=True,
            message="Agendamento sincronizado com sucesso",
            appointment_id=result.appointment_id,
            action=result.action,
            sync_status=result.sync_status,
            remote_event_id=result.remote_event_id,
        )


@router.post("/unsync/{appointment_id}", response_model=SyncResponse)
async def unsync_appointment(request: Request, appointment_id: str, service: ServiceDep) -> Any:
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            result = await service.unsync(appointment_id)
        except (CalendarError, InfrastructureError) as exc:
            return _error_response(exc, "unsync")
        return SyncResponse(
            success=True,
            message="Sincronização removida com sucesso",
            appointment_id=result.appointment_id,
            action=result.action,
            sync_status=result.sync_status,
            remote_event_id=result.remote_event_id,
        )


# ──────────────────────────────────────────────────────────────────────────────
# Arquivos .ics
# ──────────────────────────────────────────────────────────────────────────────


@router.get("/ics/appointment/{appointment_id}")
async def ics_appointment(request: Request, appointment_id: str, service: ServiceDep) -> Response:
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            export = await service.export_appointment_ics(appointment_id)
        except (CalendarError, InfrastructureError) as exc:
            return _error_response(exc, "ics_appointment")
        return _ics_response(export.content, export.filename, export.content_type)


@router.get("/ics/patient/{patient_id}")
async def ics_patient(request: Request, patient_id: str, service: ServiceDep) -> Response:
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            export = await service.export_patient_ics(patient_id)
        except (CalendarError, InfrastructureError) as exc:
            return _error_response(exc, "ics_patient")
        return _ics_response(export.content, export.filename, export.content_type)


@router.get("/ics/range")
async def ics_range(
    request: Request,
    service: ServiceDep,
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
    end_date: Annotated[date | None, Query(alias="endDate")] = None,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    """Agendamentos com início entre startDate e endDate (dias inteiros, inclusivo)."""
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            if start_date is None or end_date is None:
                raise ValueError("startDate e endDate são obrigatórios")
            if end_date < start_date:
                raise ValueError("endDate deve ser igual ou posterior a startDate")
            start, end = _clinic_day_bounds(start_date, end_date)
            export = await service.export_range_ics(start, end, user_id or None)
        except (CalendarError, InfrastructureError, ValueError) as exc:
            return _error_response(exc, "ics_range")
        return _ics_response(export.content, export.filename, export.content_type)
