"""Guards avaliados antes do grafo de transicoes.

Um guard devolve o motivo da recusa, ou None quando a mudanca passa.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from fsm.states.sync import (
    TERMINAL_STATES,
    AppointmentSyncStatus,
    IntegrationStatus,
    SyncState,
    is_valid_state,
)

Guard = Callable[[SyncState, SyncState], str | None]


def guard_valid_state(from_state: SyncState, to_state: SyncState) -> str | None:
    if not is_valid_state(from_state):
        return f"Estado de origem inválido: {from_state!r}"
    if not is_valid_state(to_state):
        return f"Estado de destino inválido: {to_state!r}"
    return None


def guard_terminal_state(from_state: SyncState, to_state: SyncState) -> str | None:
    """Integracao DISABLED nao volta: nova autorizacao cria outro registro."""
    if from_state in TERMINAL_STATES:
        return f"Estado {from_state} é terminal"
    return None


def guard_same_lifecycle(from_state: SyncState, to_state: SyncState) -> str | None:
    for lifecycle in (IntegrationStatus, AppointmentSyncStatus):
        if isinstance(from_state, lifecycle) and isinstance(to_state, lifecycle):
            return None
    return f"Ciclos distintos: {from_state} -> {to_state}"


DEFAULT_GUARDS: tuple[Guard, ...] = (
    guard_valid_state,
    guard_terminal_state,
    guard_same_lifecycle,
)


def first_denial(
    from_state: SyncState,
    to_state: SyncState,
    guards: Sequence[Guard] = DEFAULT_GUARDS,
) -> str | None:
    """Motivo do primeiro guard que recusar, em ordem."""
    for guard in guards:
        reason = guard(from_state, to_state)
        if reason is not None:
            return reason
    return None
