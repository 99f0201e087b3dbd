from __future__ import annotations

from pathlib import Path

import pytest

from htn_colony.config import Settings
from htn_colony.planning import InMemoryPlanHistory, JsonlPlanHistory
from htn_colony.render import glyph_at, render_world
from htn_colony.simulation import Behaviour, Simulation, build_history
from htn_colony.telemetry import RecordingTelemetry
from htn_colony.world import Position, Tilemap, Tree, Worker, World


def _settings(**overrides) -> Settings:
    values = {
        "grid_width": 8,
        "grid_height": 6,
        "water_ratio": 0.0,
        "worker_count": 2,
        "tree_count": 3,
        "base_x": 0,
        "base_y": 0,
        "chop_ticks": 1,
        "seed": 7,
        "plan_history_path": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.parametrize("behaviour", [Behaviour.HTN, Behaviour.NAIVE])
def test_colony_clears_the_map(behaviour: Behaviour) -> None:
    telemetry = RecordingTelemetry()
    simulation = Simulation.from_settings(_settings(), behaviour=behaviour, telemetry=telemetry)

    report = simulation.run(300)

    assert simulation.finished
    assert report.behaviour == behaviour.value
    assert report.stockpile == 3
    assert report.trees_left == 0
    assert report.workers_carrying == 0
    assert report.ticks < 300
    assert telemetry.events[-1] == ("simulation_finished", {"stockpile": 3, "ticks": report.ticks})


def test_run_without_early_stop_uses_every_tick() -> None:
    simulation = Simulation.from_settings(_settings(tree_count=0), behaviour=Behaviour.NAIVE)

    report = simulation.run(5, stop_when_done=False)

    assert report.ticks == 5
    assert report.stockpile == 0


def test_htn_report_carries_planner_counters() -> None:
    simulation = Simulation.from_settings(_settings(worker_count=1, tree_count=2))

    report = simulation.run(200)

    assert report.behaviour_stats["plans_made"] == 2
    assert report.behaviour_stats["execution_failures"] == 0


def test_history_store_follows_settings(tmp_path: Path) -> None:
    assert isinstance(build_history(_settings()), InMemoryPlanHistory)
    assert isinstance(build_history(_settings(plan_history_path=str(tmp_path / "plans.jsonl"))), JsonlPlanHistory)


def test_render_draws_every_layer() -> None:
    world = World(
        tilemap=Tilemap.from_rows(["...", "~.."]),
        base=Position(0, 0),
        workers=[Worker(0, Position(1, 0))],
        trees={0: Tree(0, Position(2, 1))},
        stockpile=4,
        tick=9,
    )

    lines = render_world(world).plain.splitlines()

    assert lines[:2] == ["BW.", "~.T"]
    assert lines[2] == "tick 9  stockpile 4  trees 1"


def test_worker_carrying_wood_has_its_own_glyph() -> None:
    world = World(tilemap=Tilemap.filled(2, 1), base=Position(0, 0), workers=[Worker(0, Position(0, 0), has_wood=True)])

    assert glyph_at(world, Position(0, 0)) == "carrying"
    assert glyph_at(world, Position(1, 0)) == "grass"
