"""Guards de transição de status."""

from fsm.rules.guards import (
    DEFAULT_GUARDS,
    Guard,
    first_denial,
    guard_same_lifecycle,
    guard_terminal_state,
    guard_valid_state,
)

__all__ = [
    "DEFAULT_GUARDS",
    "Guard",
    "first_denial",
    "guard_same_lifecycle",
    "guard_terminal_state",
    "guard_valid_state",
]
