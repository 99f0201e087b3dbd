"""Gather-wood domain planned for a single worker.

The planning state is an immutable projection of the live world from one
worker's point of view. Trees reserved by other workers are left out of it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from htn_colony.planning import Domain, DomainBuilder, Method, ParameterList, ParamType, Subtask, always
from htn_colony.world import Pathfinder, Position, Worker, World

MOVE_TO = "move_to"
CHOP_TREE = "chop_tree"
DEPOSIT_WOOD = "deposit_wood"
GATHER_WOOD = "gather_wood"
WORK_SHIFT = "work_shift"

XY_SIGNATURE = (ParamType.INT, ParamType.INT)


@dataclass(frozen=True, slots=True)
class GatherState:
    position: Position
    carrying: bool
    trees: frozenset[Position]
    base: Position
    delivered: int = 0

    @classmethod
    def from_world(cls, world: World, worker: Worker) -> GatherState:
        return cls(
            position=worker.position,
            carrying=worker.has_wood,
            trees=frozenset(tree.position for tree in world.available_trees(worker)),
            base=world.base,
        )


def _target(params: ParameterList) -> Position:
    return Position(params.get_int(0), params.get_int(1))


def nearest_tree(pathfinder: Pathfinder, state: GatherState) -> Position | None:
    """Closest tree by walking distance; ties go to the smaller position."""
    best: tuple[int, Position] | None = None
    for tree in sorted(state.trees, key=lambda pos: (state.position.manhattan(pos), pos)):
        if best is not None and state.position.manhattan(tree) > best[0]:
            break
        distance = pathfinder.distance(state.position, tree)
        if distance is not None and (best is None or (distance, tree) < best):
            best = (distance, tree)
    return None if best is None else best[1]


def build_gather_domain(pathfinder: Pathfinder, *, capacity: int = 5) -> Domain:
    def can_move(state: GatherState, params: ParameterList) -> bool:
        return pathfinder.find(state.position, _target(params)) is not None

    def move(state: GatherState, params: ParameterList) -> GatherState:
        return replace(state, position=_target(params))

    def can_chop(state: GatherState, params: ParameterList) -> bool:
        target = _target(params)
        return not state.carrying and state.position == target and target in state.trees

    def chop(state: GatherState, params: ParameterList) -> GatherState:
        return replace(state, trees=state.trees - {_target(params)}, carrying=True)

    def can_deposit(state: GatherState, params: ParameterList) -> bool:
        return state.carrying and state.position == state.base

    def deposit(state: GatherState, params: ParameterList) -> GatherState:
        return replace(state, carrying=False, delivered=state.delivered + 1)

    def base_xy(state: GatherState, params: ParameterList) -> tuple[int, int]:
        return state.base.x, state.base.y

    def tree_xy(state: GatherState, params: ParameterList) -> tuple[int, int]:
        tree = nearest_tree(pathfinder, state)
        if tree is None:
            raise LookupError("chop_nearest expanded without a reachable tree")
        return tree.x, tree.y

    def has_reachable_tree(state: GatherState, params: ParameterList) -> bool:
        return not state.carrying and nearest_tree(pathfinder, state) is not None

    def trips_left(state: GatherState, params: ParameterList) -> int:
        return params.get_int(0)

    builder = DomainBuilder(capacity=capacity)
    move_to = builder.register_operator(MOVE_TO, can_move, move, XY_SIGNATURE)
    chop_tree = builder.register_operator(CHOP_TREE, can_chop, chop, XY_SIGNATURE)
    deposit_wood = builder.register_operator(DEPOSIT_WOOD, can_deposit, deposit)

    builder.register_compound_task(
        GATHER_WOOD,
        [
            Method(
                "deliver_carried",
                lambda state, params: state.carrying,
                (Subtask(move_to, base_xy), Subtask(deposit_wood, ())),
            ),
            Method(
                "chop_nearest",
                has_reachable_tree,
                (Subtask(move_to, tree_xy), Subtask(chop_tree, tree_xy), Subtask(GATHER_WOOD, ())),
            ),
        ],
        signature=(),
    )
    builder.register_compound_task(
        WORK_SHIFT,
        [
            Method("shift_done", lambda state, params: trips_left(state, params) <= 0),
            Method(
                "another_trip",
                lambda state, params: trips_left(state, params) > 0,
                (Subtask(GATHER_WOOD, ()), Subtask(WORK_SHIFT, lambda state, params: (params.get_int(0) - 1,))),
            ),
            Method("end_shift", always),
        ],
        signature=(ParamType.INT,),
    )
    return builder.build()
