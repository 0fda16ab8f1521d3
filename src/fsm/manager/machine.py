"""Maquina de estados de sincronizacao.

Os servicos criam uma instancia por operacao a partir do status
persistido, pedem a mudanca e so entao gravam o novo status no store.
Uma recusa indica bug de orquestracao, nao erro de usuario.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fsm.rules.guards import DEFAULT_GUARDS, Guard, first_denial
from fsm.states.sync import SyncState, is_terminal
from fsm.transitions.rules import get_valid_targets, is_transition_valid
from fsm.types.transition import InvalidTransitionError, StateTransition

logger = logging.getLogger(__name__)


class FSMStateMachine:
    """Status corrente de uma integracao ou de um agendamento."""

    __slots__ = ("_current_state", "_entity_id", "_guards", "_last_transition")

    def __init__(
        self,
        initial_state: SyncState,
        entity_id: str = "",
        guards: Sequence[Guard] = DEFAULT_GUARDS,
    ) -> None:
        self._current_state = initial_state
        self._entity_id = entity_id
        self._guards = tuple(guards)
        self._last_transition: StateTransition | None = None

    @property
    def current_state(self) -> SyncState:
        return self._current_state

    @property
    def entity_id(self) -> str:
        return self._entity_id

    @property
    def last_transition(self) -> StateTransition | None:
        return self._last_transition

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self._current_state)

    def _denial(self, target: SyncState) -> str | None:
        reason = first_denial(self._current_state, target, self._guards)
        if reason is None and not is_transition_valid(self._current_state, target):
            reason = f"Transição inválida: {self._current_state} -> {target}"
        return reason

    def can_transition_to(self, target: SyncState) -> bool:
        return self._denial(target) is None

    def valid_targets(self) -> frozenset[SyncState]:
        return get_valid_targets(self._current_state)

    def transition(self, target: SyncState, trigger: str) -> StateTransition:
        """Aplica a mudanca ou levanta InvalidTransitionError.

        Args:
            target: Status de destino.
            trigger: Evento de negocio que motivou a mudanca.
        """
        reason = self._denial(target)
        if reason is not None:
            logger.warning(
                "sync_status_transition_denied",
                extra={
                    "component": "fsm",
                    "entity_id": self._entity_id,
                    "from_status": str(self._current_state),
                    "to_status": str(target),
                    "trigger": trigger,
                    "reason": reason,
                },
            )
            raise InvalidTransitionError(self._entity_id, self._current_state, target, reason)

        transition = StateTransition(
            entity_id=self._entity_id,
            from_state=self._current_state,
            to_state=target,
            trigger=trigger,
        )
        self._current_state = target
        self._last_transition = transition
        if transition.changed:
            logger.debug(
                "sync_status_changed",
                extra={"component": "fsm", **transition.log_extra()},
            )
        return transition


def create_fsm(entity_id: str, initial_state: SyncState) -> FSMStateMachine:
    return FSMStateMachine(initial_state=initial_state, entity_id=entity_id)
