"""Hand-written state machine for gathering wood, kept as the planner's baseline.

A worker is idle, walking, or chopping. An idle worker carrying wood heads
home and unloads there; an empty-handed one reserves the closest tree it can
reach and walks to it. Chopping takes ``chop_ticks`` ticks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from htn_colony.world import Pathfinder, Position, Worker, World


@dataclass(slots=True)
class Idle:
    pass


@dataclass(slots=True)
class MoveTo:
    target: Position
    path: list[Position] = field(default_factory=list)
    tree_id: int | None = None


@dataclass(slots=True)
class Chopping:
    tree_id: int
    progress: int = 0


AiState = Union[Idle, MoveTo, Chopping]


class NaiveBehaviour:
    """Per-worker finite state machine."""

    name = "naive"

    def __init__(
        self,
        world: World,
        pathfinder: Pathfinder,
        *,
        chop_ticks: int = 3,
        logger: logging.Logger | None = None,
    ) -> None:
        self._world = world
        self._pathfinder = pathfinder
        self._chop_ticks = chop_ticks
        self._logger = logger or logging.getLogger("htn_colony.agents.naive")
        self._states: dict[int, AiState] = {}

    def state_of(self, worker: Worker) -> AiState:
        return self._states.get(worker.id, Idle())

    def stats(self) -> dict[str, int]:
        return {}

    def step(self, worker: Worker) -> None:
        state = self.state_of(worker)
        if isinstance(state, MoveTo):
            self._states[worker.id] = self._handle_move(worker, state)
        elif isinstance(state, Chopping):
            self._states[worker.id] = self._handle_chop(worker, state)
        else:
            self._states[worker.id] = self._handle_idle(worker)

    def _handle_idle(self, worker: Worker) -> AiState:
        world = self._world
        if worker.has_wood:
            if worker.position == world.base:
                world.deposit(worker)
                self._logger.debug("wood_deposited", extra={"worker": worker.label, "stockpile": world.stockpile})
                return Idle()
            path = self._pathfinder.find(worker.position, world.base)
            if path is None:
                self._logger.warning("base_unreachable", extra={"worker": worker.label})
                return Idle()
            return MoveTo(target=world.base, path=path)

        candidates = world.available_trees(worker)
        for tree in candidates:
            if tree.position == worker.position:
                world.reserve(tree.id, worker)
                return Chopping(tree_id=tree.id)

        for tree in sorted(candidates, key=lambda t: (worker.position.manhattan(t.position), t.position)):
            path = self._pathfinder.find(worker.position, tree.position)
            if path is None:
                continue
            world.reserve(tree.id, worker)
            return MoveTo(target=tree.position, path=path, tree_id=tree.id)
        return Idle()

    def _handle_move(self, worker: Worker, state: MoveTo) -> AiState:
        if worker.position == state.target:
            return Idle()
        if not state.path:
            self._logger.warning(
                "path_exhausted",
                extra={"worker": worker.label, "target": str(state.target)},
            )
            return Idle()
        worker.position = state.path.pop(0)
        if worker.position == state.target:
            return Idle()
        return state

    def _handle_chop(self, worker: Worker, state: Chopping) -> AiState:
        if state.tree_id not in self._world.trees:
            return Idle()
        state.progress += 1
        if state.progress < self._chop_ticks:
            return state
        self._world.remove_tree(state.tree_id)
        worker.has_wood = True
        return Idle()
