"""Registro de uma mudanca de status aceita pela maquina de estados."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from fsm.states.sync import SyncState


class InvalidTransitionError(ValueError):
    """Mudanca de status recusada pelo grafo ou por um guard."""

    def __init__(
        self,
        entity_id: str,
        from_state: SyncState,
        to_state: SyncState,
        reason: str,
    ) -> None:
        super().__init__(f"{entity_id}: {from_state} -> {to_state} recusada ({reason})")
        self.entity_id = entity_id
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason


@dataclass(frozen=True, slots=True)
class StateTransition:
    """Mudanca aplicada a uma integracao ou a um agendamento.

    `trigger` nomeia o evento de negocio (ex: 'token_refreshed',
    'event_created', 'sync_failed').
    """

    entity_id: str
    from_state: SyncState
    to_state: SyncState
    trigger: str
    at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")

    @property
    def changed(self) -> bool:
        return self.from_state != self.to_state

    def log_extra(self) -> dict[str, str]:
        """Campos para `extra=` de log estruturado."""
        return {
            "entity_id": self.entity_id,
            "from_status": str(self.from_state),
            "to_status": str(self.to_state),
            "trigger": self.trigger,
        }
