"""Tipos de transição de status."""

from fsm.types.transition import InvalidTransitionError, StateTransition

__all__ = [
    "InvalidTransitionError",
    "StateTransition",
]
