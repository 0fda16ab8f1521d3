"""
Estados canônicos de sincronização com o calendário externo.

Dois ciclos de vida convivem aqui:
    - IntegrationStatus: validade da credencial OAuth de um usuário
    - AppointmentSyncStatus: se o evento remoto reflete o agendamento local
"""

from enum import StrEnum


class IntegrationStatus(StrEnum):
    """
    Estados de uma CalendarIntegration.

    ACTIVE:
        Token válido ou renovável.
    ERROR:
        Refresh falhou; só sai com nova autorização (que cria outra linha)
        ou com desconexão explícita.
    DISABLED:
        Desconectada pelo usuário. Terminal até nova autorização.
    """

    ACTIVE = "ACTIVE"
    ERROR = "ERROR"
    DISABLED = "DISABLED"

    def __str__(self) -> str:
        return self.value


class AppointmentSyncStatus(StrEnum):
    """
    Estados de sincronização de um agendamento.

    PENDING:
        Sem evento remoto associado (nunca sincronizado, removido ou
        desconectado).
    SYNCED:
        Evento remoto criado/atualizado com os dados atuais.
    FAILED:
        Última tentativa falhou; mensagem registrada em sync_error.
    """

    PENDING = "PENDING"
    SYNCED = "SYNCED"
    FAILED = "FAILED"

    def __str__(self) -> str:
        return self.value


SyncState = IntegrationStatus | AppointmentSyncStatus

# Uma integração DISABLED nunca volta a ACTIVE: nova autorização substitui a linha
TERMINAL_STATES: frozenset[SyncState] = frozenset({
    IntegrationStatus.DISABLED,
})

DEFAULT_INTEGRATION_STATUS: IntegrationStatus = IntegrationStatus.ACTIVE
DEFAULT_APPOINTMENT_SYNC_STATUS: AppointmentSyncStatus = AppointmentSyncStatus.PENDING


def is_terminal(state: SyncState) -> bool:
    """Verifica se o estado não admite saída."""
    return state in TERMINAL_STATES


def is_valid_state(state: object) -> bool:
    """Verifica se o valor pertence a um dos enums de sincronização."""
    return isinstance(state, IntegrationStatus | AppointmentSyncStatus)
