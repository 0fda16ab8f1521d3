"""Factories de serviços de calendário (wiring de adapters e stores)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.observability import get_correlation_id
from config.settings import get_calendar_settings

if TYPE_CHECKING:
    from app.protocols import (
        AppointmentStoreProtocol,
        CalendarGatewayProtocol,
        CalendarIntegrationStoreProtocol,
        OAuthClientProtocol,
        SyncLockProtocol,
    )
    from app.use_cases.calendar import CalendarIntegrationService

logger = logging.getLogger(__name__)


def create_oauth_client() -> OAuthClientProtocol:
    """Cria GoogleOAuthClient com o cliente httpx compartilhado."""
    from app.bootstrap.clients import create_http_client
    from app.infra.calendar.google_oauth_client import GoogleOAuthClient

    return GoogleOAuthClient(http_client=create_http_client(), settings=get_calendar_settings())


def create_calendar_gateway() -> CalendarGatewayProtocol:
    """Cria GoogleCalendarGateway com timeout configurado."""
    from app.infra.calendar.google_calendar_client import GoogleCalendarGateway

    return GoogleCalendarGateway(timeout_seconds=get_calendar_settings().request_timeout_seconds)


def create_calendar_service(
    *,
    oauth_client: OAuthClientProtocol,
    gateway: CalendarGatewayProtocol,
    integration_store: CalendarIntegrationStoreProtocol,
    appointment_store: AppointmentStoreProtocol,
    sync_lock: SyncLockProtocol,
) -> CalendarIntegrationService:
    """Monta TokenLifecycleManager, SyncStateMachine e exportador .ics."""
    from app.services.calendar_sync import SyncStateMachine
    from app.services.ical_export import ICalendarExporter
    from app.services.ical_serializer import ICalendarSerializer
    from app.services.token_lifecycle import TokenLifecycleManager
    from app.use_cases.calendar import CalendarIntegrationService

    settings = get_calendar_settings()
    token_manager = TokenLifecycleManager(
        oauth_client=oauth_client,
        integration_store=integration_store,
    )
    sync_machine = SyncStateMachine(
        token_manager=token_manager,
        gateway=gateway,
        appointment_store=appointment_store,
        integration_store=integration_store,
        sync_lock=sync_lock,
        settings=settings,
    )
    exporter = ICalendarExporter(
        appointment_store=appointment_store,
        serializer=ICalendarSerializer(settings),
    )
    service = CalendarIntegrationService(
        token_manager=token_manager,
        sync_machine=sync_machine,
        exporter=exporter,
        oauth_client=oauth_client,
        gateway=gateway,
    )
    logger.info(
        "calendar_service_created",
        extra={
            "component": "bootstrap",
            "action": "create_calendar_service",
            "result": "ok",
            "correlation_id": get_correlation_id(),
        },
    )
    return service
