"""
Exports públicos do módulo fsm/states.

Estados de integração e de sincronização de agendamentos.
"""

from fsm.states.sync import (
    DEFAULT_APPOINTMENT_SYNC_STATUS,
    DEFAULT_INTEGRATION_STATUS,
    TERMINAL_STATES,
    AppointmentSyncStatus,
    IntegrationStatus,
    SyncState,
    is_terminal,
    is_valid_state,
)

__all__ = [
    "DEFAULT_APPOINTMENT_SYNC_STATUS",
    "DEFAULT_INTEGRATION_STATUS",
    "TERMINAL_STATES",
    "AppointmentSyncStatus",
    "IntegrationStatus",
    "SyncState",
    "is_terminal",
    "is_valid_state",
]
