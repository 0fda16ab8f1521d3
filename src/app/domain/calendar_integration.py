"""Modelos de dominio da integracao OAuth com calendario externo."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from fsm.states import IntegrationStatus


class CalendarProvider(StrEnum):
    """Provedores de calendario suportados."""

    GOOGLE = "google"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class OAuthTokens(BaseModel):
    """Resposta normalizada do endpoint de token (exchange ou refresh).

    Refresh do Google normalmente nao devolve refresh_token; nesse caso
    o valor armazenado continua valendo.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    access_token: str = Field(..., description="Access token emitido.")
    refresh_token: str | None = Field(default=None, description="Refresh token emitido.")
    expiry: datetime | None = Field(default=None, description="Expiracao em UTC.")


class CalendarIntegration(BaseModel):
    """Credencial e configuracao ligando um usuario a um calendario externo.

    No maximo uma integracao ativa por (user_id, provider).
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identificador da integracao.")
    user_id: str = Field(..., description="Usuario dono da integracao.")
    provider: CalendarProvider = Field(default=CalendarProvider.GOOGLE)
    access_token: str = Field(..., description="Access token OAuth atual.")
    refresh_token: str = Field(..., description="Refresh token OAuth.")
    token_expiry: datetime = Field(..., description="Expiracao do access token (UTC).")
    is_active: bool = Field(default=True)
    sync_status: IntegrationStatus = Field(default=IntegrationStatus.ACTIVE)
    last_error: str | None = Field(default=None)
    last_sync_at: datetime | None = Field(default=None)
    calendar_id: str | None = Field(
        default=None,
        description="Calendario remoto alvo; None usa o primario.",
    )
    calendar_name: str | None = Field(default=None)
    email: str | None = Field(default=None, description="Email da conta externa.")
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class IntegrationStatusView(BaseModel):
    """Visao de status exposta para a camada HTTP (sem tokens)."""

    model_config = ConfigDict(extra="ignore")

    connected: bool
    is_active: bool = False
    sync_status: IntegrationStatus | None = None
    last_sync_at: datetime | None = None
    last_error: str | None = None
    email: str | None = None
    calendar_name: str | None = None

    @classmethod
    def disconnected(cls) -> IntegrationStatusView:
        return cls(connected=False)

    @classmethod
    def from_integration(cls, integration: CalendarIntegration) -> IntegrationStatusView:
        return cls(
            connected=True,
            is_active=integration.is_active,
            sync_status=integration.sync_status,
            last_sync_at=integration.last_sync_at,
            last_error=integration.last_error,
            email=integration.email,
            calendar_name=integration.calendar_name,
        )


__all__ = [
    "CalendarIntegration",
    "CalendarProvider",
    "IntegrationStatusView",
    "OAuthTokens",
]
