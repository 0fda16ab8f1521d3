"""Use case de integracao de calendario exposto para a camada HTTP.

Fachada fina sobre TokenLifecycleManager, SyncStateMachine e
ICalendarExporter: as rotas nao conhecem stores, gateway nem OAuth.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from config.logging import log_fallback
from utils.errors import AuthExchangeError, CalendarError

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.calendar_event import RemoteCalendar
    from app.domain.calendar_integration import CalendarIntegration, IntegrationStatusView
    from app.protocols.calendar_gateway import CalendarGatewayProtocol
    from app.protocols.oauth_client import OAuthClientProtocol
    from app.services.calendar_sync import SyncResult, SyncStateMachine
    from app.services.ical_export import ExportResult, ICalendarExporter
    from app.services.token_lifecycle import TokenLifecycleManager

logger = logging.getLogger(__name__)

_CALLBACK_COMPONENT = "calendar_oauth_callback"


class CalendarIntegrationService:
    """Orquestra conexao, status, sync e exportacao de calendario."""

    def __init__(
        self,
        *,
        token_manager: TokenLifecycleManager,
        sync_machine: SyncStateMachine,
        exporter: ICalendarExporter,
        oauth_client: OAuthClientProtocol,
        gateway: CalendarGatewayProtocol,
    ) -> None:
        self._tokens = token_manager
        self._sync = sync_machine
        self._exporter = exporter
        self._oauth = oauth_client
        self._gateway = gateway

    def get_authorization_url(self, user_id: str) -> str:
        return self._tokens.get_authorization_url(user_id)

    async def handle_callback(self, code: str | None, state: str | None) -> CalendarIntegration:
        """Conclui o fluxo OAuth: troca o code e grava a integracao do usuario.

        E-mail da conta e calendario primario sao buscados em best-effort;
        falhas nessas etapas nao impedem a conexao.

        Raises:
            AuthExchangeError: code/state ausente ou resposta de token incompleta
        """
        if not code or not state:
            raise AuthExchangeError("Código de autorização ou state não fornecido")

        tokens = await self._tokens.exchange_code(code)
        if not tokens.refresh_token or tokens.expiry is None:
            raise AuthExchangeError("Tokens inválidos retornados pelo provedor")

        email = await self._lookup_email(tokens.access_token)
        calendar_id, calendar_name = await self._lookup_primary_calendar(tokens.access_token)

        return await self._tokens.save_credential(
            state,
            tokens.access_token,
            tokens.refresh_token,
            tokens.expiry,
            email=email,
            calendar_id=calendar_id,
            calendar_name=calendar_name,
        )

    async def get_integration_status(self, user_id: str) -> IntegrationStatusView:
        return await self._tokens.get_integration_status(user_id)

    async def list_calendars(self, user_id: str) -> list[RemoteCalendar]:
        """Calendarios da conta externa conectada."""
        access_token = await self._tokens.get_valid_access_token(user_id)
        return await self._gateway.list_calendars(access_token)

    async def disconnect(self, user_id: str) -> bool:
        return await self._tokens.disconnect(user_id)

    async def sync(self, appointment_id: str) -> SyncResult:
        return await self._sync.sync(appointment_id)

    async def unsync(self, appointment_id: str) -> SyncResult:
        return await self._sync.unsync(appointment_id)

    async def export_appointment_ics(self, appointment_id: str) -> ExportResult:
        return await self._exporter.export_appointment(appointment_id)

    async def export_patient_ics(self, patient_id: str) -> ExportResult:
        return await self._exporter.export_patient(patient_id)

    async def export_range_ics(
        self,
        start: datetime,
        end: datetime,
        user_id: str | None = None,
    ) -> ExportResult:
        return await self._exporter.export_range(start, end, user_id)

    async def _lookup_email(self, access_token: str) -> str | None:
        started = time.perf_counter()
        try:
            return await self._oauth.fetch_account_email(access_token)
        except CalendarError as exc:
            log_fallback(
                logger,
                _CALLBACK_COMPONENT,
                reason=f"userinfo_{type(exc).__name__}",
                elapsed_ms=(time.perf_counter() - started) * 1000,
            )
            return None

    async def _lookup_primary_calendar(self, access_token: str) -> tuple[str | None, str | None]:
        started = time.perf_counter()
        try:
            calendars = await self._gateway.list_calendars(access_token)
        except CalendarError as exc:
            log_fallback(
                logger,
                _CALLBACK_COMPONENT,
                reason=f"calendar_list_{type(exc).__name__}",
                elapsed_ms=(time.perf_counter() - started) * 1000,
            )
            return None, None
        primary = next((calendar for calendar in calendars if calendar.primary), None)
        if primary is None:
            return None, None
        return primary.id, primary.summary or None
