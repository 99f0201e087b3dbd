"""Live simulation world: workers, trees and the wood stockpile."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from htn_colony.world.tilemap import Position, SpawnError, Tile, Tilemap, random_tile


@dataclass(slots=True)
class Tree:
    id: int
    position: Position


@dataclass(slots=True)
class Worker:
    id: int
    position: Position
    has_wood: bool = False

    @property
    def label(self) -> str:
        return f"worker-{self.id}"


@dataclass(slots=True)
class World:
    """Mutable ground truth the executors act on."""

    tilemap: Tilemap
    base: Position
    workers: list[Worker] = field(default_factory=list)
    trees: dict[int, Tree] = field(default_factory=dict)
    stockpile: int = 0
    tick: int = 0
    reservations: dict[int, int] = field(default_factory=dict)

    def tree_at(self, pos: Position) -> Tree | None:
        for tree in self.trees.values():
            if tree.position == pos:
                return tree
        return None

    def remove_tree(self, tree_id: int) -> Tree:
        self.reservations.pop(tree_id, None)
        return self.trees.pop(tree_id)

    def available_trees(self, worker: Worker) -> list[Tree]:
        """Trees nobody else has reserved."""
        return [
            tree
            for tree in self.trees.values()
            if self.reservations.get(tree.id, worker.id) == worker.id
        ]

    def reserve(self, tree_id: int, worker: Worker) -> None:
        self.reservations[tree_id] = worker.id

    def release(self, worker: Worker) -> None:
        for tree_id in [tid for tid, owner in self.reservations.items() if owner == worker.id]:
            del self.reservations[tree_id]

    def deposit(self, worker: Worker) -> None:
        worker.has_wood = False
        self.stockpile += 1

    def worker(self, worker_id: int) -> Worker:
        for worker in self.workers:
            if worker.id == worker_id:
                return worker
        raise KeyError(f"Unknown worker id: {worker_id}")


def spawn_world(
    *,
    width: int,
    height: int,
    worker_count: int,
    tree_count: int,
    base: Position,
    water_ratio: float = 0.0,
    rng: random.Random | None = None,
    tilemap: Tilemap | None = None,
) -> World:
    """Generate a map and place workers and trees on random grass tiles.

    Trees never share a tile with each other or with the base; workers may
    share tiles with anything.
    """
    rng = rng or random.Random()
    if tilemap is None:
        tilemap = Tilemap.generate(width, height, water_ratio=water_ratio, rng=rng, keep_clear=[base])
    if not tilemap.passable(base):
        raise SpawnError(f"Base {base} is not on a grass tile")

    world = World(tilemap=tilemap, base=base)
    for worker_id in range(worker_count):
        world.workers.append(Worker(id=worker_id, position=random_tile(tilemap, Tile.GRASS, rng)))

    taken = {base}
    for tree_id in range(tree_count):
        pos = random_tile(tilemap, Tile.GRASS, rng, exclude=taken)
        taken.add(pos)
        world.trees[tree_id] = Tree(id=tree_id, position=pos)
    return world
