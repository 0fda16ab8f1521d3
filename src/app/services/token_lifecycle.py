"""Ciclo de vida da credencial OAuth de calendario por usuario.

Responsabilidades:
    - URL de consentimento e troca do authorization code
    - Persistencia da integracao (substituicao atomica por usuario)
    - Access token valido sob demanda, renovando quando expirado
    - Refresh rejeitado leva a integracao a ERROR (falha rapida depois)
    - Desconexao local, notificando quem precisa resetar agendamentos
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from app.domain.calendar_integration import (
    CalendarIntegration,
    CalendarProvider,
    IntegrationStatusView,
)
from app.observability import get_correlation_id, record_token_refresh
from fsm import create_fsm
from fsm.states import IntegrationStatus
from utils.errors import (
    AuthExchangeError,
    CalendarError,
    CalendarTimeoutError,
    NotAuthenticatedError,
    RefreshError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.domain.calendar_integration import OAuthTokens
    from app.protocols.calendar_store import CalendarIntegrationStoreProtocol
    from app.protocols.oauth_client import OAuthClientProtocol

logger = logging.getLogger(__name__)

_COMPONENT = "token_lifecycle"
_FALLBACK_TOKEN_TTL = timedelta(hours=1)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class TokenLifecycleManager:
    """Dono da credencial OAuth de um usuario com o provedor externo.

    Args:
        oauth_client: Adapter do provedor de identidade
        integration_store: Persistencia de CalendarIntegration
        clock: Relogio em UTC (injetavel em testes)
        provider: Provedor atendido por esta instancia
    """

    def __init__(
        self,
        *,
        oauth_client: OAuthClientProtocol,
        integration_store: CalendarIntegrationStoreProtocol,
        clock: Callable[[], datetime] | None = None,
        provider: CalendarProvider = CalendarProvider.GOOGLE,
    ) -> None:
        self._oauth = oauth_client
        self._store = integration_store
        self._clock = clock or (lambda: datetime.now(UTC))
        self._provider = provider
        self._disconnect_listeners: list[Callable[[str], Awaitable[object]]] = []

    @property
    def provider(self) -> CalendarProvider:
        return self._provider

    def add_disconnect_listener(self, listener: Callable[[str], Awaitable[object]]) -> None:
        """Registra callback chamado com o user_id apos cada desconexao."""
        self._disconnect_listeners.append(listener)

    def get_authorization_url(self, user_id: str) -> str:
        """URL de consentimento com user_id como state opaco."""
        if not user_id:
            raise ValueError("user_id é obrigatório")
        return self._oauth.build_authorization_url(state=user_id)

    async def exchange_code(self, code: str) -> OAuthTokens:
        """Troca o authorization code por tokens completos.

        Raises:
            AuthExchangeError: Codigo invalido ou resposta sem refresh_token/expiry
        """
        if not code:
            raise AuthExchangeError("Código de autorização não fornecido")
        tokens = await self._oauth.exchange_code(code)
        if not tokens.refresh_token or tokens.expiry is None:
            raise AuthExchangeError("Tokens inválidos retornados pelo provedor")
        return tokens

    async def save_credential(
        self,
        user_id: str,
        access_token: str,
        refresh_token: str,
        expiry: datetime,
        *,
        email: str | None = None,
        calendar_id: str | None = None,
        calendar_name: str | None = None,
    ) -> CalendarIntegration:
        """Substitui a integracao do usuario por uma nova linha ACTIVE."""
        now = self._clock()
        integration = CalendarIntegration(
            id=uuid.uuid4().hex,
            user_id=user_id,
            provider=self._provider,
            access_token=access_token,
            refresh_token=refresh_token,
            token_expiry=_as_utc(expiry),
            is_active=True,
            sync_status=IntegrationStatus.ACTIVE,
            calendar_id=calendar_id,
            calendar_name=calendar_name,
            email=email,
            created_at=now,
            updated_at=now,
        )
        saved = await self._store.replace(integration)
        self._log("calendar_integration_saved", action="save_credential", result="ok")
        return saved

    async def get_active_integration(self, user_id: str) -> CalendarIntegration:
        """Integracao ativa do usuario.

        Raises:
            NotAuthenticatedError: Nenhuma integracao ativa
        """
        integration = await self._store.get_active(user_id, self._provider)
        if integration is None:
            raise NotAuthenticatedError("Usuário não autenticado com o calendário externo")
        return integration

    async def get_valid_credential(self, user_id: str) -> CalendarIntegration:
        """Integracao ativa com access token valido (renova se expirado).

        Raises:
            NotAuthenticatedError: Nenhuma integracao ativa
            RefreshError: Integracao em ERROR ou refresh rejeitado
            CalendarTimeoutError: Endpoint de token nao respondeu no prazo
        """
        integration = await self.get_active_integration(user_id)
        if integration.sync_status is IntegrationStatus.ERROR:
            # Nao repete um refresh ja rejeitado; so nova autorizacao resolve
            raise RefreshError(
                integration.last_error or "Integração em erro; reautorize o calendário"
            )
        if _as_utc(integration.token_expiry) > self._clock():
            return integration
        return await self._refresh(integration)

    async def get_valid_access_token(self, user_id: str) -> str:
        """Access token valido para o usuario."""
        integration = await self.get_valid_credential(user_id)
        return integration.access_token

    async def get_integration_status(self, user_id: str) -> IntegrationStatusView:
        integration = await self._store.get_active(user_id, self._provider)
        if integration is None:
            return IntegrationStatusView.disconnected()
        return IntegrationStatusView.from_integration(integration)

    async def disconnect(self, user_id: str) -> bool:
        """Desativa a integracao e reseta o sync dos agendamentos do usuario.

        Local: nenhum evento remoto e removido.

        Returns:
            True se havia integracao ativa.
        """
        integration = await self._store.get_active(user_id, self._provider)
        if integration is not None:
            create_fsm(integration.id, integration.sync_status).transition(
                IntegrationStatus.DISABLED, trigger="user_disconnected"
            )
        was_active = await self._store.deactivate(user_id, self._provider)
        for listener in self._disconnect_listeners:
            await listener(user_id)
        self._log(
            "calendar_integration_disconnected",
            action="disconnect",
            result="ok" if was_active else "not_connected",
        )
        return was_active

    async def _refresh(self, integration: CalendarIntegration) -> CalendarIntegration:
        fsm = create_fsm(integration.id, integration.sync_status)
        try:
            tokens = await self._oauth.refresh(integration.refresh_token)
        except CalendarTimeoutError:
            # Timeout e transitorio: nao condena a integracao
            record_token_refresh("timeout")
            self._log("token_refresh_timeout", action="refresh", result="timeout")
            raise
        except CalendarError as exc:
            message = f"Erro ao renovar token de acesso: {exc}"
            fsm.transition(IntegrationStatus.ERROR, trigger="token_refresh_failed")
            await self._store.mark_error(integration.id, message)
            record_token_refresh("rejected")
            self._log(
                "token_refresh_failed",
                action="refresh",
                result="error",
                level=logging.WARNING,
                error_type=type(exc).__name__,
            )
            if isinstance(exc, RefreshError):
                raise
            raise RefreshError(message) from exc

        now = self._clock()
        expiry = _as_utc(tokens.expiry) if tokens.expiry else now + _FALLBACK_TOKEN_TTL
        if expiry <= now:
            expiry = now + _FALLBACK_TOKEN_TTL

        fsm.transition(IntegrationStatus.ACTIVE, trigger="token_refreshed")
        await self._store.update_tokens(
            integration.id,
            access_token=tokens.access_token,
            token_expiry=expiry,
            refresh_token=tokens.refresh_token,
        )
        record_token_refresh("ok")
        self._log("token_refreshed", action="refresh", result="ok")
        return integration.model_copy(
            update={
                "access_token": tokens.access_token,
                "token_expiry": expiry,
                "refresh_token": tokens.refresh_token or integration.refresh_token,
                "updated_at": now,
            }
        )

    def _log(
        self,
        message: str,
        *,
        action: str,
        result: str,
        level: int = logging.INFO,
        **fields: object,
    ) -> None:
        logger.log(
            level,
            message,
            extra={
                "component": _COMPONENT,
                "action": action,
                "result": result,
                "provider": self._provider.value,
                "correlation_id": get_correlation_id(),
                **fields,
            },
        )
