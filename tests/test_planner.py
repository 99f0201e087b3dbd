from __future__ import annotations

import copy
import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

import htn_colony.planning.planner as planner_module
from htn_colony.config import Settings
from htn_colony.domains import build_travel_domain, travel_state
from htn_colony.planning import (
    Cancelled,
    DepthExceeded,
    DomainBuilder,
    Method,
    ParameterList,
    ParameterSignatureError,
    ParamType,
    Planner,
    Subtask,
    UnknownTaskError,
    always,
    hop,
    plan,
)

ROUTE = ("me", "home", "park")


def _loop_domain():
    builder = DomainBuilder()
    builder.register_compound_task("loop", [Method("again", always, ("loop",))])
    return builder.build()


def _counter_domain():
    """Counts an integer state up to a limit by repeated increments."""

    def add(state: int, params: ParameterList) -> int:
        return state + params.get_int(1)

    def double(state: int, params: ParameterList) -> int:
        return state * params.get_int(0)

    builder = DomainBuilder()
    inc = builder.register_operator("inc", always, add, (ParamType.INT, ParamType.INT))
    mul = builder.register_operator("mul", lambda state, params: state > 0, double, (ParamType.INT,))
    builder.register_compound_task(
        "reach_limit",
        [
            Method(
                "increment",
                lambda state, params: state < params.get_int(0),
                (Subtask(inc, lambda state, params: (params.get_int(0), 1)), "reach_limit"),
            ),
            Method(
                "multiply",
                lambda state, params: state * 2 <= params.get_int(0) and state > 0,
                (Subtask(mul, (2,)), "reach_limit"),
            ),
            Method("done", always),
        ],
        signature=(ParamType.INT,),
    )
    return builder.build()


def test_long_trip_takes_the_taxi() -> None:
    result = Planner(build_travel_domain()).plan(travel_state(distance=8, cash=20), "travel", ROUTE)

    assert result is not None
    assert result.as_pairs() == [
        ("call_taxi", ROUTE),
        ("ride_taxi", ROUTE),
        ("pay_driver", ROUTE),
    ]
    assert result.final_state["loc"] == {"me": "park", "taxi": "park"}
    assert result.final_state["cash"]["me"] == 9
    assert result.final_state["owe"]["me"] == 0


def test_short_trip_walks_without_trying_other_methods() -> None:
    result = Planner(build_travel_domain()).plan(travel_state(distance=1, cash=20), "travel", ROUTE)

    assert result is not None
    assert result.names() == ["walk"]
    assert result.stats.methods_tried == 1
    assert result.stats.backtracks == 0


def test_unaffordable_taxi_backtracks_to_walking() -> None:
    result = Planner(build_travel_domain()).plan(travel_state(distance=8, cash=1), "travel", ROUTE)

    assert result is not None
    assert result.names() == ["walk"]
    assert result.stats.backtracks >= 1
    assert result.final_state["loc"] == {"me": "park"}
    assert result.final_state["cash"]["me"] == 1


def test_planning_never_mutates_the_initial_state() -> None:
    state = travel_state(distance=8, cash=1)
    before = copy.deepcopy(state)

    Planner(build_travel_domain()).plan(state, "travel", ROUTE)

    assert state == before


def test_planning_is_deterministic() -> None:
    planner = Planner(build_travel_domain())

    first = planner.plan(travel_state(), "travel", ROUTE)
    second = planner.plan(travel_state(), "travel", ROUTE)

    assert first == second


def test_method_order_decides_between_satisfiable_methods() -> None:
    domain = build_travel_domain(method_order=("by_taxi", "by_foot_short", "by_foot_last_resort"))

    result = Planner(domain).plan(travel_state(distance=1, cash=20), "travel", ROUTE)

    assert result.names() == ["call_taxi", "ride_taxi", "pay_driver"]


def test_unknown_method_order_entry_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_travel_domain(method_order=("by_balloon",))


def test_replaying_a_plan_reaches_its_final_state() -> None:
    initial = travel_state(distance=8, cash=20)

    result = Planner(build_travel_domain()).plan(initial, "travel", ROUTE)

    assert result.replay(initial) == result.final_state
    assert initial == travel_state(distance=8, cash=20)


def test_module_level_plan_matches_planner() -> None:
    domain = build_travel_domain()

    assert plan(domain, travel_state(), "travel", ROUTE) == Planner(domain).plan(travel_state(), "travel", ROUTE)


def test_module_level_hop_plans_a_single_task() -> None:
    result = hop(build_travel_domain(), travel_state(distance=1), "travel", ROUTE, max_depth=10)

    assert result.names() == ["walk"]


def test_no_applicable_method_returns_none() -> None:
    state = travel_state(distance=8, cash=20)
    state["loc"]["me"] = "office"

    assert Planner(build_travel_domain()).plan(state, "travel", ROUTE) is None


def test_empty_decomposition_is_an_empty_plan() -> None:
    result = Planner(_counter_domain()).plan(9, "reach_limit", (4,))

    assert result is not None
    assert len(result) == 0
    assert result.final_state == 9


def test_recursive_task_referenced_by_name() -> None:
    result = Planner(_counter_domain()).plan(5, "reach_limit", (8,))

    assert result.names() == ["inc", "inc", "inc"]
    assert result.final_state == 8


def test_unknown_goal_raises() -> None:
    with pytest.raises(UnknownTaskError):
        Planner(build_travel_domain()).plan(travel_state(), "fly", ROUTE)


def test_unknown_subtask_name_is_not_backtracked() -> None:
    builder = DomainBuilder()
    builder.register_operator("noop", always, lambda state, params: state)
    builder.register_compound_task(
        "goal",
        [Method("broken", always, ("missing",)), Method("fine", always, ("noop",))],
    )

    with pytest.raises(UnknownTaskError) as excinfo:
        Planner(builder.build()).plan({}, "goal")

    assert excinfo.value.name == "missing"


def test_signature_error_aborts_the_search() -> None:
    builder = DomainBuilder()
    builder.register_operator("step", always, lambda state, params: state, (ParamType.INT,))
    builder.register_compound_task(
        "goal",
        [
            Method("wrong_type", always, (Subtask("step", ("one",)),)),
            Method("right_type", always, (Subtask("step", (1,)),)),
        ],
    )

    with pytest.raises(ParameterSignatureError):
        Planner(builder.build()).plan({}, "goal")


def test_failed_branch_state_does_not_leak_into_the_next_method() -> None:
    def mark(state: dict, params: ParameterList) -> dict:
        state["marked"] = True
        return state

    builder = DomainBuilder()
    builder.register_operator("mark", always, mark)
    builder.register_operator("never", lambda state, params: False, lambda state, params: state)
    builder.register_operator("unmarked", lambda state, params: "marked" not in state, lambda state, params: state)
    builder.register_compound_task(
        "goal",
        [Method("dead_end", always, ("mark", "never")), Method("clean", always, ("unmarked",))],
    )

    result = Planner(builder.build()).plan({}, "goal")

    assert result.names() == ["unmarked"]


def test_depth_guard_stops_infinite_recursion() -> None:
    with pytest.raises(DepthExceeded) as excinfo:
        Planner(_loop_domain(), max_depth=50).plan(None, "loop")

    assert excinfo.value.limit == 50


def test_interpreter_recursion_limit_keeps_the_configured_limit() -> None:
    with pytest.raises(DepthExceeded) as excinfo:
        Planner(_loop_domain(), max_depth=100_000).plan(None, "loop")

    assert excinfo.value.limit == 100_000
    assert 0 < excinfo.value.reached < 100_000
    assert "recursion limit" in str(excinfo.value)


def test_planner_limits_come_from_settings() -> None:
    planner = Planner.from_settings(_loop_domain(), Settings(max_depth=3, planning_node_budget=None))

    with pytest.raises(DepthExceeded) as excinfo:
        planner.plan(None, "loop")

    assert excinfo.value.limit == 3
    assert excinfo.value.reached is None


def test_node_budget_cancels_the_search() -> None:
    planner = Planner(_loop_domain(), node_budget=10)

    with pytest.raises(Cancelled) as excinfo:
        planner.plan(None, "loop")

    assert excinfo.value.reason == "node_budget"
    assert planner.last_stats.nodes == 11


def test_deadline_cancels_the_search(monkeypatch) -> None:
    clock = itertools.count()
    monkeypatch.setattr(planner_module.time, "monotonic", lambda: next(clock))

    with pytest.raises(Cancelled) as excinfo:
        Planner(_loop_domain(), deadline_seconds=5).plan(None, "loop")

    assert excinfo.value.reason == "deadline"


def test_cancel_event_stops_the_search() -> None:
    event = threading.Event()
    event.set()

    with pytest.raises(Cancelled) as excinfo:
        Planner(build_travel_domain()).plan(travel_state(), "travel", ROUTE, cancel_event=event)

    assert excinfo.value.reason == "cancelled"


def test_shared_planner_serves_concurrent_calls() -> None:
    planner = Planner(build_travel_domain())
    states = [travel_state(distance=d, cash=20) for d in (1, 8, 1, 8)]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda state: planner.plan(state, "travel", ROUTE), states))

    assert [result.names() for result in results] == [
        ["walk"],
        ["call_taxi", "ride_taxi", "pay_driver"],
        ["walk"],
        ["call_taxi", "ride_taxi", "pay_driver"],
    ]
    assert [result.stats.operators_applied for result in results] == [1, 3, 1, 3]


def test_search_events_are_logged(caplog) -> None:
    caplog.set_level(logging.INFO, logger="htn_colony.planner")

    Planner(build_travel_domain()).plan(travel_state(), "travel", ROUTE)

    assert "plan_search_started" in caplog.messages
    assert "plan_found" in caplog.messages
