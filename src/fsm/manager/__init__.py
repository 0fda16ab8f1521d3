"""FSMStateMachine e factory."""

from fsm.manager.machine import FSMStateMachine, create_fsm

__all__ = [
    "FSMStateMachine",
    "create_fsm",
]
