"""Contrato do gateway de calendario externo.

Mantemos apenas o protocolo aqui para permitir troca de provider sem
impactar a maquina de sincronizacao. Todas as operacoes recebem o
access token ja validado pelo TokenLifecycleManager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.calendar_event import RemoteCalendar, RemoteEventPayload


@runtime_checkable
class CalendarGatewayProtocol(Protocol):
    """Contrato para CRUD de eventos no calendario do usuario."""

    async def list_calendars(self, access_token: str) -> list[RemoteCalendar]:
        """Lista calendarios visiveis para a conta autenticada."""
        ...

    async def create_event(
        self,
        access_token: str,
        calendar_id: str,
        payload: RemoteEventPayload,
    ) -> str:
        """Cria evento e retorna o identificador remoto."""
        ...

    async def update_event(
        self,
        access_token: str,
        calendar_id: str,
        remote_event_id: str,
        payload: RemoteEventPayload,
    ) -> None:
        """Atualiza parcialmente um evento existente."""
        ...

    async def delete_event(
        self,
        access_token: str,
        calendar_id: str,
        remote_event_id: str,
    ) -> None:
        """Remove evento; evento ja inexistente conta como sucesso."""
        ...
