"""Contrato do provedor de identidade OAuth2."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.calendar_integration import OAuthTokens


@runtime_checkable
class OAuthClientProtocol(Protocol):
    """Troca de codigo, refresh e consulta da conta autenticada."""

    def build_authorization_url(self, state: str) -> str:
        """Monta URL de consentimento com acesso offline e re-consentimento."""
        ...

    async def exchange_code(self, code: str) -> OAuthTokens:
        """Troca o authorization code por tokens (AuthExchangeError se invalido)."""
        ...

    async def refresh(self, refresh_token: str) -> OAuthTokens:
        """Renova o access token (RefreshError se rejeitado)."""
        ...

    async def fetch_account_email(self, access_token: str) -> str | None:
        """Retorna o email da conta externa, se disponivel."""
        ...
