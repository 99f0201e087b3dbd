"""Depth-first, backtracking HTN search.

The search keeps a list of pending task calls. Operators are applied and
advance the state; compound tasks are replaced by the subtasks of the first
method, in declaration order, whose precondition holds and whose expansion
leads to a complete plan. A failing branch returns ``None`` and the caller
moves on to the next method. Fatal errors (unknown names, bad parameters, the
depth guard and cancellation) are raised and end the search.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Iterable

from htn_colony.config import Settings
from htn_colony.planning.domain import Domain, Operator, State, StateCopier, TaskCall, TaskRef
from htn_colony.planning.errors import Cancelled, DepthExceeded, PlanningError
from htn_colony.planning.params import ParamValue
from htn_colony.planning.actions import Action, Plan, PlanningStats

DEFAULT_MAX_DEPTH = 400


@dataclass(slots=True)
class _Search:
    """Per-call bookkeeping; never shared between planning calls."""

    max_depth: int
    deadline: float | None
    node_budget: int | None
    cancel_event: threading.Event | None
    started_at: float
    nodes: int = 0
    operators_applied: int = 0
    methods_tried: int = 0
    backtracks: int = 0
    max_depth_reached: int = 0

    def enter(self, depth: int) -> None:
        if depth > self.max_depth:
            raise DepthExceeded(self.max_depth)
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise Cancelled("cancelled")
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise Cancelled("deadline")
        self.nodes += 1
        if self.node_budget is not None and self.nodes > self.node_budget:
            raise Cancelled("node_budget")
        self.max_depth_reached = max(self.max_depth_reached, depth)

    def stats(self) -> PlanningStats:
        return PlanningStats(
            nodes=self.nodes,
            operators_applied=self.operators_applied,
            methods_tried=self.methods_tried,
            backtracks=self.backtracks,
            max_depth_reached=self.max_depth_reached,
            elapsed_seconds=time.monotonic() - self.started_at,
        )


class Planner:
    """Plans goals against one read-only domain.

    Search state lives in a per-call object, so one planner may be shared by
    several threads. :attr:`last_stats` belongs to whichever call finished
    last; concurrent callers should read ``Plan.stats`` instead.
    """

    def __init__(
        self,
        domain: Domain,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        deadline_seconds: float | None = None,
        node_budget: int | None = None,
        copy_state: StateCopier = copy.deepcopy,
        logger: logging.Logger | None = None,
    ) -> None:
        self._domain = domain
        self._max_depth = max_depth
        self._deadline_seconds = deadline_seconds
        self._node_budget = node_budget
        self._copy_state = copy_state
        self._logger = logger or logging.getLogger("htn_colony.planner")
        self.last_stats: PlanningStats | None = None

    @classmethod
    def from_settings(cls, domain: Domain, settings: Settings, **overrides) -> Planner:
        options = {
            "max_depth": settings.max_depth,
            "deadline_seconds": settings.planning_deadline_seconds,
            "node_budget": settings.planning_node_budget,
        }
        options.update(overrides)
        return cls(domain, **options)

    @property
    def domain(self) -> Domain:
        return self._domain

    def plan(
        self,
        state: State,
        goal: TaskRef,
        params: Iterable[ParamValue] = (),
        *,
        cancel_event: threading.Event | None = None,
    ) -> Plan | None:
        """Return the first plan for ``goal`` from ``state``, or ``None`` if none exists."""
        return self.hop(state, goal, params, cancel_event=cancel_event)

    def hop(
        self,
        state: State,
        top_task: TaskRef,
        params: Iterable[ParamValue] = (),
        *,
        cancel_event: threading.Event | None = None,
    ) -> Plan | None:
        started = time.monotonic()
        search = _Search(
            max_depth=self._max_depth,
            deadline=None if self._deadline_seconds is None else started + self._deadline_seconds,
            node_budget=self._node_budget,
            cancel_event=cancel_event,
            started_at=started,
        )
        call = TaskCall(top_task, tuple(params))
        self._logger.info("plan_search_started", extra={"goal": call.name, "params": list(call.values)})

        try:
            result = self.seek_plan(search, state, (call,), (), 0)
        except RecursionError:
            self.last_stats = search.stats()
            self._logger.warning("plan_search_aborted", extra={"goal": call.name, "error": "recursion limit"})
            raise DepthExceeded(search.max_depth, reached=search.max_depth_reached) from None
        except PlanningError as exc:
            self.last_stats = search.stats()
            self._logger.warning(
                "plan_search_aborted",
                extra={"goal": call.name, "error": f"{type(exc).__name__}: {exc}"},
            )
            raise

        stats = search.stats()
        self.last_stats = stats
        if result is None:
            self._logger.info("plan_not_found", extra={"goal": call.name, **stats.as_dict()})
            return None

        actions, final_state = result
        self._logger.info(
            "plan_found",
            extra={"goal": call.name, "plan_length": len(actions), **stats.as_dict()},
        )
        return Plan(actions=actions, final_state=final_state, stats=stats)

    def seek_plan(
        self,
        search: _Search,
        state: State,
        tasks: tuple[TaskCall, ...],
        plan: tuple[Action, ...],
        depth: int,
    ) -> tuple[tuple[Action, ...], State] | None:
        search.enter(depth)
        if not tasks:
            return plan, state

        head, rest = tasks[0], tasks[1:]
        task = self._domain.resolve(head.task)

        if isinstance(task, Operator):
            params = task.bind(head.values, capacity=self._domain.capacity)
            new_state = task.apply(state, params, self._copy_state)
            if new_state is None:
                self._logger.debug("operator_failed", extra={"task": task.name, "depth": depth})
                return None
            search.operators_applied += 1
            return self.seek_plan(search, new_state, rest, plan + (Action(task, params),), depth + 1)

        params = task.bind(head.values, capacity=self._domain.capacity)
        for index, method in enumerate(task.methods):
            search.methods_tried += 1
            if not method.applicable(state, params):
                self._logger.debug(
                    "method_not_applicable",
                    extra={"task": task.name, "method": method.name, "index": index, "depth": depth},
                )
                continue
            subtasks = method.expand(state, params)
            self._logger.debug(
                "method_expanded",
                extra={"task": task.name, "method": method.name, "subtasks": [s.name for s in subtasks]},
            )
            result = self.seek_plan(search, state, subtasks + rest, plan, depth + 1)
            if result is not None:
                return result
            search.backtracks += 1
        return None


def hop(domain: Domain, state: State, top_task: TaskRef, params: Iterable[ParamValue] = (), **options) -> Plan | None:
    return Planner(domain, **options).hop(state, top_task, params)


def plan(
    domain: Domain,
    initial_state: State,
    goal: TaskRef,
    params: Iterable[ParamValue] = (),
    **options,
) -> Plan | None:
    """Plan ``goal`` once; ``options`` are forwarded to :class:`Planner`."""
    return Planner(domain, **options).plan(initial_state, goal, params)
