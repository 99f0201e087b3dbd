"""CLI startup entrypoint for htn-colony."""

from __future__ import annotations

import random
from dataclasses import asdict
from pathlib import Path

import typer
from rich import print

from htn_colony.config import Settings, settings
from htn_colony.domains import GatherState, build_gather_domain, build_travel_domain, travel_state
from htn_colony.domains.gather import WORK_SHIFT
from htn_colony.planning import Domain, JsonlPlanHistory, Plan, Planner, PlanningError
from htn_colony.render import render_world
from htn_colony.simulation import Behaviour, Simulation, build_world
from htn_colony.telemetry import LoggingTelemetry, configure_logging
from htn_colony.world import Pathfinder

app = typer.Typer(help="HTN worker colony entrypoint")


def _effective_settings(seed: int | None = None) -> Settings:
    if seed is None:
        return settings
    return settings.model_copy(update={"seed": seed})


def _plan_payload(plan: Plan) -> dict:
    return {
        "actions": [str(action) for action in plan],
        "stats": plan.stats.as_dict() if plan.stats else {},
    }


def _run_planner(planner: Planner, state, goal: str, params: tuple) -> Plan:
    try:
        plan = planner.plan(state, goal, params)
    except PlanningError as exc:
        print({"error": f"{type(exc).__name__}: {exc}"})
        raise typer.Exit(code=1)
    if plan is None:
        print({"plan": None, "reason": "no feasible plan"})
        raise typer.Exit(code=1)
    return plan


@app.callback()
def main(log_level: str = typer.Option(None, help="Override HTN_COLONY_LOG_LEVEL")) -> None:
    configure_logging(log_level or settings.log_level)


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(settings.model_dump())


@app.command()
def travel(
    distance: int = typer.Option(8, help="Distance between home and park"),
    cash: int = typer.Option(20, help="Cash the traveller carries"),
    goal: str = typer.Option("travel", help="Task to plan"),
) -> None:
    """Plan a trip from home to the park in the classic travel domain."""
    planner = Planner.from_settings(build_travel_domain(capacity=settings.max_params), settings)
    plan = _run_planner(planner, travel_state(distance=distance, cash=cash), goal, ("me", "home", "park"))
    print({"plan": _plan_payload(plan), "final_state": plan.final_state})


@app.command("plan-gather")
def plan_gather(
    trips: int = typer.Option(1, help="Deliveries to plan"),
    worker: int = typer.Option(0, help="Worker id to plan for"),
    seed: int = typer.Option(None, help="World generation seed"),
    show_map: bool = typer.Option(False, "--map/--no-map", help="Print the generated world"),
) -> None:
    """Spawn a world and plan one worker's work shift."""
    config = _effective_settings(seed)
    world = build_world(config, random.Random(config.seed))
    if show_map:
        print(render_world(world))
    try:
        agent = world.worker(worker)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0])) from None

    pathfinder = Pathfinder(world.tilemap)
    planner = Planner.from_settings(build_gather_domain(pathfinder, capacity=config.max_params), config)
    plan = _run_planner(planner, GatherState.from_world(world, agent), WORK_SHIFT, (trips,))
    print({"worker": agent.label, "plan": _plan_payload(plan), "delivered": plan.final_state.delivered})


@app.command()
def simulate(
    ticks: int = typer.Option(200, help="Ticks to simulate"),
    behaviour: Behaviour = typer.Option(Behaviour.HTN, help="Worker behaviour"),
    seed: int = typer.Option(None, help="World generation seed"),
    render: bool = typer.Option(True, "--render/--no-render", help="Print the final grid"),
) -> None:
    """Run the colony and report how much wood reached the base."""
    config = _effective_settings(seed)
    simulation = Simulation.from_settings(config, behaviour=behaviour, telemetry=LoggingTelemetry())
    report = simulation.run(ticks)
    if render:
        print(render_world(simulation.world))
    print({"report": asdict(report)})


@app.command("validate-domain")
def validate_domain(domain: str = typer.Option("travel", help="travel or gather")) -> None:
    """List task names referenced by methods but never registered."""
    built: Domain
    if domain == "travel":
        built = build_travel_domain()
    elif domain == "gather":
        built = build_gather_domain(Pathfinder(build_world(settings).tilemap))
    else:
        raise typer.BadParameter("Domain must be 'travel' or 'gather'")

    missing = built.unresolved_references()
    print(
        {
            "domain": domain,
            "operators": sorted(built.operators),
            "compound_tasks": sorted(built.compound_tasks),
            "unresolved": missing,
        }
    )
    if missing:
        raise typer.Exit(code=1)


@app.command("plan-history")
def plan_history(
    history_file: str = typer.Option(None, help="Path to a JSONL plan history"),
    limit: int = typer.Option(20, help="How many records to show"),
) -> None:
    """Show the newest planning records."""
    path = history_file or settings.plan_history_path
    if not path:
        raise typer.BadParameter("Provide --history-file or set HTN_COLONY_PLAN_HISTORY_PATH")
    records = JsonlPlanHistory(Path(path)).list_recent(limit)
    print({"records": [record.to_dict() for record in records]})


if __name__ == "__main__":
    app()
