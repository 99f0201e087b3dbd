"""Planner output: bound actions and the plans built from them."""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Any, Iterator

from htn_colony.planning.domain import Operator, State, StateCopier
from htn_colony.planning.params import ParameterList, ParamValue


@dataclass(frozen=True, slots=True)
class Action:
    """An operator bound to a parameter list that satisfies its signature."""

    operator: Operator
    params: ParameterList

    @property
    def name(self) -> str:
        return self.operator.name

    def apply(self, state: State, copy_state: StateCopier = copy.deepcopy) -> State:
        """Apply the operator's effect without re-checking its precondition."""
        return self.operator.effect(copy_state(state), self.params)

    def as_pair(self) -> tuple[str, tuple[ParamValue, ...]]:
        return self.operator.name, self.params.values

    def __str__(self) -> str:
        args = ", ".join(repr(value) for value in self.params)
        return f"{self.name}({args})"


@dataclass(frozen=True, slots=True)
class PlanningStats:
    """Counters collected during one search."""

    nodes: int = 0
    operators_applied: int = 0
    methods_tried: int = 0
    backtracks: int = 0
    max_depth_reached: int = 0
    elapsed_seconds: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Plan:
    """Totally ordered sequence of actions returned by a successful search."""

    actions: tuple[Action, ...] = ()
    final_state: State = field(default=None, compare=False, repr=False)
    stats: PlanningStats | None = field(default=None, compare=False, repr=False)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def __getitem__(self, index: int) -> Action:
        return self.actions[index]

    def names(self) -> list[str]:
        return [action.name for action in self.actions]

    def as_pairs(self) -> list[tuple[str, tuple[ParamValue, ...]]]:
        return [action.as_pair() for action in self.actions]

    def replay(self, initial_state: State, copy_state: StateCopier = copy.deepcopy) -> State:
        """Run every effect in order starting from ``initial_state``."""
        state = initial_state
        for action in self.actions:
            state = action.apply(state, copy_state)
        return state
