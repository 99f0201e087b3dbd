"""The classic travel domain: walk short distances, take a taxi otherwise.

State is a plain nested dict, e.g.::

    {
        "loc": {"me": "home"},
        "cash": {"me": 20},
        "owe": {"me": 0},
        "dist": {"home": {"park": 8}, "park": {"home": 8}},
    }

Effects edit their argument in place and return it; the planner hands every
effect its own copy of the state.
"""

from __future__ import annotations

from typing import Any, Sequence

from htn_colony.planning import Domain, DomainBuilder, Method, ParameterList, ParamType, always

TRAVEL_SIGNATURE = (ParamType.TEXT, ParamType.TEXT, ParamType.TEXT)
SHORT_WALK_LIMIT = 2
DEFAULT_METHOD_ORDER = ("by_foot_short", "by_taxi", "by_foot_last_resort")

TravelState = dict[str, Any]


def travel_state(
    *,
    distance: int = 8,
    cash: int = 20,
    who: str = "me",
    origin: str = "home",
    destination: str = "park",
) -> TravelState:
    return {
        "loc": {who: origin},
        "cash": {who: cash},
        "owe": {who: 0},
        "dist": {origin: {destination: distance}, destination: {origin: distance}},
    }


def taxi_rate(distance: int) -> int:
    return 3 + distance


def _route(params: ParameterList) -> tuple[str, str, str]:
    return params.get_text(0), params.get_text(1), params.get_text(2)


def _at_origin(state: TravelState, params: ParameterList) -> bool:
    who, origin, _ = _route(params)
    return state["loc"].get(who) == origin


def _walk(state: TravelState, params: ParameterList) -> TravelState:
    who, _, destination = _route(params)
    state["loc"][who] = destination
    return state


def _call_taxi(state: TravelState, params: ParameterList) -> TravelState:
    who, _, _ = _route(params)
    state["loc"]["taxi"] = state["loc"][who]
    return state


def _taxi_ready(state: TravelState, params: ParameterList) -> bool:
    who, origin, _ = _route(params)
    loc = state["loc"]
    return loc.get("taxi") == loc.get(who) and loc.get(who) == origin


def _ride_taxi(state: TravelState, params: ParameterList) -> TravelState:
    who, origin, destination = _route(params)
    state["loc"]["taxi"] = destination
    state["loc"][who] = destination
    state["owe"][who] = taxi_rate(state["dist"][origin][destination])
    return state


def _can_pay(state: TravelState, params: ParameterList) -> bool:
    who, _, _ = _route(params)
    return state["cash"][who] >= state["owe"][who]


def _pay_driver(state: TravelState, params: ParameterList) -> TravelState:
    who, _, _ = _route(params)
    state["cash"][who] -= state["owe"][who]
    state["owe"][who] = 0
    return state


def _short_enough(state: TravelState, params: ParameterList) -> bool:
    _, origin, destination = _route(params)
    return state["dist"][origin][destination] <= SHORT_WALK_LIMIT and _at_origin(state, params)


def build_travel_domain(*, method_order: Sequence[str] = DEFAULT_METHOD_ORDER, capacity: int = 5) -> Domain:
    """Build the travel domain, trying ``travel`` methods in ``method_order``."""
    builder = DomainBuilder(capacity=capacity)
    walk = builder.register_operator("walk", _at_origin, _walk, TRAVEL_SIGNATURE)
    builder.register_operator("call_taxi", always, _call_taxi, TRAVEL_SIGNATURE)
    builder.register_operator("ride_taxi", _taxi_ready, _ride_taxi, TRAVEL_SIGNATURE)
    builder.register_operator("pay_driver", _can_pay, _pay_driver, TRAVEL_SIGNATURE)

    methods = {
        "by_foot_short": Method("by_foot_short", _short_enough, (walk,)),
        "by_taxi": Method("by_taxi", _at_origin, ("call_taxi", "ride_taxi", "pay_driver")),
        "by_foot_last_resort": Method("by_foot_last_resort", _at_origin, (walk,)),
    }
    try:
        ordered = [methods[name] for name in method_order]
    except KeyError as exc:
        raise ValueError(f"Unknown travel method: {exc.args[0]!r}") from None
    builder.register_compound_task("travel", ordered, TRAVEL_SIGNATURE)
    return builder.build()
