"""Taxonomia de erros da integracao de calendario.

Todos os erros herdam de CalendarError para que a camada HTTP consiga
mapear a familia inteira sem conhecer cada caso.
"""

from __future__ import annotations


class CalendarError(Exception):
    """Base para falhas do motor de sincronizacao e exportacao."""


class NotAuthenticatedError(CalendarError):
    """Usuario sem integracao ativa com o calendario externo."""


class AuthExchangeError(CalendarError):
    """Codigo de autorizacao invalido, expirado ou resposta de token incompleta."""


class RefreshError(CalendarError):
    """Refresh token rejeitado; exige nova autorizacao do usuario."""


class GatewayError(CalendarError):
    """Falha na chamada a API remota de calendario."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        is_retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable


class CalendarTimeoutError(CalendarError, TimeoutError):
    """Chamada de rede excedeu o limite configurado."""


class NotFoundError(CalendarError):
    """Registro inexistente."""


class AppointmentNotFoundError(NotFoundError):
    """Agendamento inexistente."""

    def __init__(self, appointment_id: str) -> None:
        super().__init__(f"Agendamento não encontrado: {appointment_id}")
        self.appointment_id = appointment_id


class IntegrationNotFoundError(NotFoundError):
    """Integracao inexistente para o usuario."""


class EmptyResultError(CalendarError):
    """Consulta de exportacao sem nenhum agendamento."""


class SerializationPreconditionError(CalendarError):
    """Agendamento sem os campos minimos para virar evento."""


class SyncInProgressError(CalendarError):
    """Outra sincronizacao do mesmo agendamento esta em andamento."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Sincronização já em andamento: {key}")
        self.key = key
