from __future__ import annotations
"""Simple finite state machine utility for enforcing allowed status transitions.

Designed for lightweight lifecycle models (KvaEstimate).
Usage:
    from repairtrack.utils.fsm import TransitionValidator
    KVA_FSM = TransitionValidator({
        'GESENDET': {'FREIGEGEBEN', 'ABGELEHNT'},
        'FREIGEGEBEN': set(),
    })
    KVA_FSM.assert_can_transition(current_status, target_status)

Raises the configured error (DecisionConflict by default) if invalid.
"""
from typing import Dict, Set, Type
from repairtrack.errors import DecisionConflict, TrackingError


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status', error: Type[TrackingError] = DecisionConflict):
        self.graph = graph
        self.field_name = field_name
        self.error = error

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def is_terminal(self, state: str) -> bool:
        return state in self.graph and not self.graph[state]

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise self.error(description=f"Invalid {self.field_name} transition {current} -> {target}")
        return True

__all__ = ['TransitionValidator']
