"""Workers that plan a work shift with the HTN planner and then carry it out."""

from __future__ import annotations

import logging

from htn_colony.agents.executor import ExecutionError, PlanExecution, PlanExecutor
from htn_colony.domains.gather import CHOP_TREE, WORK_SHIFT, GatherState
from htn_colony.planning import InMemoryPlanHistory, Plan, PlanHistoryStore, Planner, PlanningError, PlanRecord
from htn_colony.telemetry import Telemetry
from htn_colony.world import Pathfinder, Position, Worker, World


class HtnBehaviour:
    """Plans when a worker has nothing to do and replans after execution failures."""

    name = "htn"

    def __init__(
        self,
        world: World,
        pathfinder: Pathfinder,
        planner: Planner,
        *,
        chop_ticks: int = 3,
        trips_per_plan: int = 1,
        history: PlanHistoryStore | None = None,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._world = world
        self._planner = planner
        self._trips = trips_per_plan
        self._history = history or InMemoryPlanHistory()
        self._telemetry = telemetry
        self._logger = logger or logging.getLogger("htn_colony.agents.htn")
        self._executor = PlanExecutor(world, pathfinder, chop_ticks=chop_ticks, logger=self._logger)
        self._executions: dict[int, PlanExecution] = {}
        self._stalled: dict[int, tuple] = {}
        self.plans_made = 0
        self.plans_failed = 0
        self.execution_failures = 0

    @property
    def history(self) -> PlanHistoryStore:
        return self._history

    def execution_of(self, worker: Worker) -> PlanExecution | None:
        return self._executions.get(worker.id)

    def stats(self) -> dict[str, int]:
        return {
            "plans_made": self.plans_made,
            "plans_failed": self.plans_failed,
            "execution_failures": self.execution_failures,
        }

    def step(self, worker: Worker) -> None:
        execution = self._executions.get(worker.id)
        if execution is None or execution.done:
            execution = self._plan_for(worker)
            if execution is None:
                return
            self._executions[worker.id] = execution

        try:
            self._executor.step(execution)
        except ExecutionError as exc:
            self.execution_failures += 1
            self._logger.warning("plan_execution_failed", extra={"worker": worker.label, "error": str(exc)})
            self._finish(worker)
            return

        if execution.done:
            self._emit("plan_completed", {"worker": worker.label, "actions": len(execution.completed)})
            self._finish(worker)

    def _plan_for(self, worker: Worker) -> PlanExecution | None:
        world = self._world
        if not worker.has_wood and not world.available_trees(worker):
            return None

        snapshot = (worker.position, worker.has_wood, tuple(sorted(world.trees)))
        if self._stalled.get(worker.id) == snapshot:
            return None

        state = GatherState.from_world(world, worker)
        try:
            plan = self._planner.plan(state, WORK_SHIFT, (self._trips,))
        except PlanningError as exc:
            self.plans_failed += 1
            self._history.append(PlanRecord.from_outcome(WORK_SHIFT, None, error=exc, agent=worker.label))
            self._logger.error("planning_failed", extra={"worker": worker.label, "error": str(exc)})
            self._stalled[worker.id] = snapshot
            return None

        self._history.append(PlanRecord.from_outcome(WORK_SHIFT, plan, agent=worker.label))
        if plan is None or not len(plan):
            self.plans_failed += 1
            self._stalled[worker.id] = snapshot
            return None

        self._stalled.pop(worker.id, None)
        self._reserve(worker, plan)
        self.plans_made += 1
        self._emit("plan_made", {"worker": worker.label, "actions": plan.names()})
        return PlanExecution.from_pairs(worker.id, plan.as_pairs())

    def _reserve(self, worker: Worker, plan: Plan) -> None:
        for action in plan:
            if action.name != CHOP_TREE:
                continue
            tree = self._world.tree_at(Position(action.params.get_int(0), action.params.get_int(1)))
            if tree is not None:
                self._world.reserve(tree.id, worker)

    def _finish(self, worker: Worker) -> None:
        self._executions.pop(worker.id, None)
        self._world.release(worker)

    def _emit(self, event_name: str, payload: dict) -> None:
        if self._telemetry is not None:
            self._telemetry.emit(event_name, payload)
