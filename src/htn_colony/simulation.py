"""Tick loop tying the world, a worker behaviour and telemetry together."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from htn_colony.agents import HtnBehaviour, NaiveBehaviour
from htn_colony.config import Settings
from htn_colony.domains import build_gather_domain
from htn_colony.planning import InMemoryPlanHistory, JsonlPlanHistory, PlanHistoryStore, Planner
from htn_colony.telemetry import Telemetry
from htn_colony.world import Pathfinder, Position, Worker, World, spawn_world


class Behaviour(str, Enum):
    """Available worker behaviours."""

    HTN = "htn"
    NAIVE = "naive"


class WorkerBehaviour(Protocol):
    name: str

    def step(self, worker: Worker) -> None:
        """Advance one worker by one tick."""

    def stats(self) -> dict[str, int]:
        """Counters describing the behaviour so far."""


@dataclass(slots=True)
class SimulationReport:
    ticks: int
    behaviour: str
    stockpile: int
    trees_left: int
    workers_carrying: int
    behaviour_stats: dict[str, int] = field(default_factory=dict)


def build_world(settings: Settings, rng: random.Random | None = None) -> World:
    rng = rng or random.Random(settings.seed)
    return spawn_world(
        width=settings.grid_width,
        height=settings.grid_height,
        worker_count=settings.worker_count,
        tree_count=settings.tree_count,
        base=Position(settings.base_x, settings.base_y),
        water_ratio=settings.water_ratio,
        rng=rng,
    )


def build_history(settings: Settings) -> PlanHistoryStore:
    if settings.plan_history_path:
        return JsonlPlanHistory(settings.plan_history_path)
    return InMemoryPlanHistory()


class Simulation:
    """Advances every worker once per tick."""

    def __init__(
        self,
        world: World,
        behaviour: WorkerBehaviour,
        *,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.world = world
        self.behaviour = behaviour
        self._telemetry = telemetry
        self._logger = logger or logging.getLogger("htn_colony.simulation")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        behaviour: Behaviour = Behaviour.HTN,
        world: World | None = None,
        history: PlanHistoryStore | None = None,
        telemetry: Telemetry | None = None,
    ) -> Simulation:
        world = world or build_world(settings)
        pathfinder = Pathfinder(world.tilemap)
        if Behaviour(behaviour) is Behaviour.NAIVE:
            worker_behaviour: WorkerBehaviour = NaiveBehaviour(world, pathfinder, chop_ticks=settings.chop_ticks)
        else:
            planner = Planner.from_settings(build_gather_domain(pathfinder, capacity=settings.max_params), settings)
            worker_behaviour = HtnBehaviour(
                world,
                pathfinder,
                planner,
                chop_ticks=settings.chop_ticks,
                trips_per_plan=settings.trips_per_plan,
                history=history or build_history(settings),
                telemetry=telemetry,
            )
        return cls(world, worker_behaviour, telemetry=telemetry)

    @property
    def finished(self) -> bool:
        return not self.world.trees and not any(worker.has_wood for worker in self.world.workers)

    def step(self) -> None:
        self.world.tick += 1
        for worker in self.world.workers:
            self.behaviour.step(worker)

    def run(self, ticks: int, *, stop_when_done: bool = True) -> SimulationReport:
        self._logger.info(
            "simulation_started",
            extra={"behaviour": self.behaviour.name, "ticks": ticks, "trees": len(self.world.trees)},
        )
        for _ in range(ticks):
            if stop_when_done and self.finished:
                break
            self.step()

        report = self.report()
        self._logger.info("simulation_finished", extra={"stockpile": report.stockpile, "tick": report.ticks})
        if self._telemetry is not None:
            self._telemetry.emit("simulation_finished", {"stockpile": report.stockpile, "ticks": report.ticks})
        return report

    def report(self) -> SimulationReport:
        return SimulationReport(
            ticks=self.world.tick,
            behaviour=self.behaviour.name,
            stockpile=self.world.stockpile,
            trees_left=len(self.world.trees),
            workers_carrying=sum(1 for worker in self.world.workers if worker.has_wood),
            behaviour_stats=self.behaviour.stats(),
        )
