"""
Máquinas de estado de sincronização de calendário.

Estrutura:
    - states/: IntegrationStatus e AppointmentSyncStatus
    - transitions/: grafo permitido por ciclo de vida
    - rules/: guards avaliados antes do grafo
    - manager/: FSMStateMachine usada pelos serviços antes de persistir
    - types/: StateTransition e InvalidTransitionError
"""

from fsm.manager import FSMStateMachine, create_fsm
from fsm.rules import first_denial
from fsm.states import (
    DEFAULT_APPOINTMENT_SYNC_STATUS,
    DEFAULT_INTEGRATION_STATUS,
    TERMINAL_STATES,
    AppointmentSyncStatus,
    IntegrationStatus,
    SyncState,
    is_terminal,
    is_valid_state,
)
from fsm.transitions import (
    APPOINTMENT_SYNC_TRANSITIONS,
    INTEGRATION_TRANSITIONS,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)
from fsm.types import InvalidTransitionError, StateTransition

__all__ = [
    "APPOINTMENT_SYNC_TRANSITIONS",
    "DEFAULT_APPOINTMENT_SYNC_STATUS",
    "DEFAULT_INTEGRATION_STATUS",
    "INTEGRATION_TRANSITIONS",
    "TERMINAL_STATES",
    "AppointmentSyncStatus",
    "FSMStateMachine",
    "IntegrationStatus",
    "InvalidTransitionError",
    "StateTransition",
    "SyncState",
    "create_fsm",
    "first_denial",
    "get_valid_targets",
    "is_terminal",
    "is_transition_valid",
    "is_valid_state",
    "validate_transition_map",
]
