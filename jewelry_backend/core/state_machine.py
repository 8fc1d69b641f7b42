# core/state_machine.py

"""
TRANSITION GRAPHS

Each lifecycle (order, repair, return) declares its allowed status moves as an
adjacency table. This module is the single checker used by all of them.

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Graph is data, not conditionals
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from core.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class TransitionGraph:
    entity: str
    edges: Mapping[str, frozenset[str]]
    statuses: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, entity: str, edges: Mapping[str, set[str]]) -> "TransitionGraph":
        frozen = {src: frozenset(dst) for src, dst in edges.items()}
        statuses = set(frozen)
        for dst in frozen.values():
            statuses |= dst
        return cls(entity=entity, edges=frozen, statuses=frozenset(statuses))

    @property
    def terminal_states(self) -> frozenset[str]:
        return frozenset(s for s in self.statuses if not self.edges.get(s))

    def targets(self, current: str) -> frozenset[str]:
        return self.edges.get(current, frozenset())

    def is_valid(self, current: str, target: str) -> bool:
        return target in self.targets(current)

    def validate(self, *, entity_id, current: str, target: str) -> None:
        if target not in self.statuses:
            raise InvalidTransitionError(
                f"Unknown {self.entity} status '{target}'"
            )
        if not self.is_valid(current, target):
            raise InvalidTransitionError(
                f"{self.entity.capitalize()} {entity_id} cannot transition from "
                f"'{current}' to '{target}'"
            )
