"""
Exports públicos do módulo fsm/transitions.

Regras de transição entre estados de sincronização.
"""

from fsm.transitions.rules import (
    APPOINTMENT_SYNC_TRANSITIONS,
    INTEGRATION_TRANSITIONS,
    TransitionMap,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)

__all__ = [
    "APPOINTMENT_SYNC_TRANSITIONS",
    "INTEGRATION_TRANSITIONS",
    "TransitionMap",
    "get_valid_targets",
    "is_transition_valid",
    "validate_transition_map",
]
