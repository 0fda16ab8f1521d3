"""
Regras de transição válidas entre estados de sincronização.

Cada enum tem seu próprio grafo; a consulta despacha pelo tipo do
estado de origem, então não existe transição entre enums diferentes.
"""

from fsm.states.sync import (
    TERMINAL_STATES,
    AppointmentSyncStatus,
    IntegrationStatus,
    SyncState,
)

TransitionMap = dict[SyncState, frozenset[SyncState]]

INTEGRATION_TRANSITIONS: TransitionMap = {
    # ACTIVE: refresh mantém ACTIVE; refresh rejeitado vai a ERROR
    IntegrationStatus.ACTIVE: frozenset({
        IntegrationStatus.ACTIVE,
        IntegrationStatus.ERROR,
        IntegrationStatus.DISABLED,
    }),
    # ERROR: sem refresh até reautorizar; só desconexão
    IntegrationStatus.ERROR: frozenset({
        IntegrationStatus.DISABLED,
    }),
    IntegrationStatus.DISABLED: frozenset(),
}

APPOINTMENT_SYNC_TRANSITIONS: TransitionMap = {
    # PENDING -> PENDING ocorre no reset em massa do disconnect
    AppointmentSyncStatus.PENDING: frozenset({
        AppointmentSyncStatus.PENDING,
        AppointmentSyncStatus.SYNCED,
        AppointmentSyncStatus.FAILED,
    }),
    # SYNCED -> SYNCED é o caminho de update
    AppointmentSyncStatus.SYNCED: frozenset({
        AppointmentSyncStatus.SYNCED,
        AppointmentSyncStatus.FAILED,
        AppointmentSyncStatus.PENDING,
    }),
    AppointmentSyncStatus.FAILED: frozenset({
        AppointmentSyncStatus.SYNCED,
        AppointmentSyncStatus.FAILED,
        AppointmentSyncStatus.PENDING,
    }),
}


def _transition_map_for(state: SyncState) -> TransitionMap:
    if isinstance(state, IntegrationStatus):
        return INTEGRATION_TRANSITIONS
    return APPOINTMENT_SYNC_TRANSITIONS


def get_valid_targets(state: SyncState) -> frozenset[SyncState]:
    """
    Retorna os estados de destino válidos para um estado de origem.

    Args:
        state: Estado de origem

    Returns:
        Conjunto de estados de destino permitidos (vazio se terminal)
    """
    return _transition_map_for(state).get(state, frozenset())


def is_transition_valid(from_state: SyncState, to_state: SyncState) -> bool:
    """
    Verifica se uma transição é válida segundo as regras definidas.

    Args:
        from_state: Estado de origem
        to_state: Estado de destino

    Returns:
        True se a transição é permitida, False caso contrário
    """
    if from_state in TERMINAL_STATES:
        return False
    if type(from_state) is not type(to_state):
        return False
    return to_state in get_valid_targets(from_state)


def validate_transition_map() -> list[str]:
    """
    Valida a integridade dos mapas de transição.

    Verifica:
    - Todos os estados de cada enum estão no seu mapa
    - Estados terminais têm conjunto vazio
    - Nenhuma transição cruza enums

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []
    for enum_type, transition_map in (
        (IntegrationStatus, INTEGRATION_TRANSITIONS),
        (AppointmentSyncStatus, APPOINTMENT_SYNC_TRANSITIONS),
    ):
        for state in enum_type:
            if state not in transition_map:
                errors.append(f"Estado {state.name} ausente em {enum_type.__name__}")
        for source, targets in transition_map.items():
            if source in TERMINAL_STATES and targets:
                errors.append(f"Estado terminal {source.name} possui transições")
            for target in targets:
                if not isinstance(target, enum_type):
                    errors.append(f"Transição {source.name} → {target} cruza enums")
    return errors
