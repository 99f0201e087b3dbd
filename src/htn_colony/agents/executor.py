"""Carries out planned actions against the live world, one tick at a time.

Each handler mirrors the effect of the matching gather-wood operator: walking
ends on the target tile, chopping removes the tree and loads the worker, and
depositing unloads the worker into the stockpile. Walking and chopping take
time; depositing happens on arrival.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from htn_colony.domains.gather import CHOP_TREE, DEPOSIT_WOOD, MOVE_TO
from htn_colony.planning import ParamValue
from htn_colony.world import Pathfinder, Position, Worker, World


class ExecutionError(RuntimeError):
    """Raised when the live world no longer allows a planned action."""


@dataclass(slots=True)
class PlanExecution:
    """Progress of one worker through its plan."""

    worker_id: int
    pending: deque[tuple[str, tuple[ParamValue, ...]]]
    path: list[Position] | None = None
    progress: int = 0
    completed: list[str] = field(default_factory=list)

    @classmethod
    def from_pairs(cls, worker_id: int, pairs: Iterable[tuple[str, tuple[ParamValue, ...]]]) -> PlanExecution:
        return cls(worker_id=worker_id, pending=deque(pairs))

    @property
    def done(self) -> bool:
        return not self.pending

    @property
    def current(self) -> tuple[str, tuple[ParamValue, ...]] | None:
        return self.pending[0] if self.pending else None


class PlanExecutor:
    """Applies ``(operator_name, params)`` pairs to a :class:`World`."""

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
        self._logger = logger or logging.getLogger("htn_colony.executor")
        self._handlers = {
            MOVE_TO: self._move_to,
            CHOP_TREE: self._chop_tree,
            DEPOSIT_WOOD: self._deposit_wood,
        }

    def step(self, execution: PlanExecution) -> None:
        """Advance ``execution`` by one tick.

        Actions that need no time are finished in the same tick as the action
        before them.
        """
        worker = self._world.worker(execution.worker_id)
        while execution.pending:
            name, params = execution.pending[0]
            handler = self._handlers.get(name)
            if handler is None:
                raise ExecutionError(f"No executor for action {name!r}")
            finished, used_tick = handler(worker, execution, params)
            if finished:
                execution.pending.popleft()
                execution.path = None
                execution.progress = 0
                execution.completed.append(name)
                self._logger.debug(
                    "action_completed",
                    extra={"worker": worker.label, "action": name, "params": list(params)},
                )
            if used_tick:
                return

    def _move_to(self, worker: Worker, execution: PlanExecution, params: tuple[ParamValue, ...]) -> tuple[bool, bool]:
        target = Position(int(params[0]), int(params[1]))
        if execution.path is None:
            path = self._pathfinder.find(worker.position, target)
            if path is None:
                raise ExecutionError(f"{worker.label} cannot reach {target} from {worker.position}")
            execution.path = path
        if not execution.path:
            if worker.position != target:
                raise ExecutionError(f"{worker.label} ran out of path before reaching {target}")
            return True, False
        worker.position = execution.path.pop(0)
        return worker.position == target, True

    def _chop_tree(self, worker: Worker, execution: PlanExecution, params: tuple[ParamValue, ...]) -> tuple[bool, bool]:
        target = Position(int(params[0]), int(params[1]))
        tree = self._world.tree_at(target)
        if tree is None:
            raise ExecutionError(f"No tree left at {target} for {worker.label}")
        if worker.position != target or worker.has_wood:
            raise ExecutionError(f"{worker.label} is not ready to chop the tree at {target}")
        execution.progress += 1
        if execution.progress < self._chop_ticks:
            return False, True
        self._world.remove_tree(tree.id)
        worker.has_wood = True
        return True, True

    def _deposit_wood(self, worker: Worker, execution: PlanExecution, params: tuple[ParamValue, ...]) -> tuple[bool, bool]:
        if worker.position != self._world.base or not worker.has_wood:
            raise ExecutionError(f"{worker.label} has nothing to deposit at {worker.position}")
        self._world.deposit(worker)
        return True, False
