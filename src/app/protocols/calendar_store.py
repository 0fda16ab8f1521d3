"""Protocolos de domínio para persistência de integrações e agendamentos.

Interfaces leves (ABCs) dependidas por Application. Agendamentos expõem
apenas leitura e atualização dos campos de sincronização; o restante do
cadastro pertence a outros serviços.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from app.domain.calendar_integration import CalendarProvider

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime

    from app.domain.appointment import Appointment, AppointmentStatus
    from app.domain.calendar_integration import CalendarIntegration


class CalendarIntegrationStoreProtocol(ABC):
    """Contrato para CalendarIntegration chaveada por (user_id, provider).

    Invariante: no máximo uma integração ativa por (user_id, provider).
    """

    @abstractmethod
    async def get_active(
        self,
        user_id: str,
        provider: CalendarProvider = CalendarProvider.GOOGLE,
    ) -> CalendarIntegration | None:
        """Retorna a integração ativa do usuário ou None."""

    @abstractmethod
    async def replace(self, integration: CalendarIntegration) -> CalendarIntegration:
        """Substitui atomicamente a integração de (user_id, provider).

        Upsert: qualquer linha anterior do par é descartada e a nova é
        gravada na mesma operação, nunca deixando o usuário sem linha.
        """

    @abstractmethod
    async def update_tokens(
        self,
        integration_id: str,
        *,
        access_token: str,
        token_expiry: datetime,
        refresh_token: str | None = None,
    ) -> None:
        """Persiste tokens renovados (refresh_token só quando reemitido)."""

    @abstractmethod
    async def mark_error(self, integration_id: str, message: str) -> None:
        """Marca a integração como ERROR registrando a causa."""

    @abstractmethod
    async def mark_synced(self, integration_id: str, synced_at: datetime) -> None:
        """Registra o último sync bem-sucedido."""

    @abstractmethod
    async def deactivate(
        self,
        user_id: str,
        provider: CalendarProvider = CalendarProvider.GOOGLE,
    ) -> bool:
        """Desativa (DISABLED) a integração ativa.

        Returns:
            True se havia integração ativa.
        """


class AppointmentStoreProtocol(ABC):
    """Contrato de leitura de agendamentos e escrita dos campos de sync.

    Invariante: remote_event_id não nulo somente após um create
    bem-sucedido; mark_failed preserva o id existente ou grava o id de um
    create que chegou a responder.
    """

    @abstractmethod
    async def get(self, appointment_id: str) -> Appointment | None:
        """Busca agendamento por id."""

    @abstractmethod
    async def find_by_patient(
        self,
        patient_id: str,
        statuses: Collection[AppointmentStatus],
    ) -> list[Appointment]:
        """Agendamentos do paciente com status no conjunto, por início crescente."""

    @abstractmethod
    async def find_by_date_range(
        self,
        start: datetime,
        end: datetime,
        statuses: Collection[AppointmentStatus],
        user_id: str | None = None,
    ) -> list[Appointment]:
        """Agendamentos com início em [start, end], por início crescente."""

    @abstractmethod
    async def mark_synced(
        self,
        appointment_id: str,
        remote_event_id: str,
        synced_at: datetime,
    ) -> None:
        """SYNCED com id remoto, limpando erro anterior."""

    @abstractmethod
    async def mark_failed(
        self,
        appointment_id: str,
        error: str,
        remote_event_id: str | None = None,
    ) -> None:
        """FAILED registrando a mensagem do erro.

        Com remote_event_id, grava o id do evento ja criado no provedor.
        """

    @abstractmethod
    async def clear_remote_event(self, appointment_id: str) -> None:
        """Remove id remoto e volta para PENDING."""

    @abstractmethod
    async def reset_sync_for_user(self, user_id: str) -> int:
        """Volta todos os agendamentos do usuário para PENDING sem id remoto.

        Returns:
            Quantidade de agendamentos alterados.
        """
