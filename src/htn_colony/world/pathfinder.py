"""A* pathfinding over passable tiles."""

from __future__ import annotations

import heapq
from itertools import count

from htn_colony.world.tilemap import Position, Tilemap


class Pathfinder:
    """Finds 4-connected shortest paths on a :class:`Tilemap`."""

    def __init__(self, tilemap: Tilemap) -> None:
        self._tilemap = tilemap

    @property
    def tilemap(self) -> Tilemap:
        return self._tilemap

    def find(self, start: Position, target: Position) -> list[Position] | None:
        """Return the tiles to walk from ``start`` to ``target``.

        The path excludes ``start`` and ends with ``target``; it is empty when both
        are the same tile and ``None`` when the target cannot be reached.
        """
        if not self._tilemap.passable(start) or not self._tilemap.passable(target):
            return None
        if start == target:
            return []

        tiebreak = count()
        frontier: list[tuple[int, int, int, Position]] = [(start.manhattan(target), 0, next(tiebreak), start)]
        came_from: dict[Position, Position] = {}
        cost: dict[Position, int] = {start: 0}

        while frontier:
            _, g, _, current = heapq.heappop(frontier)
            if current == target:
                return self._rebuild(came_from, start, target)
            if g > cost[current]:
                continue
            for nxt in current.neighbours():
                if not self._tilemap.passable(nxt):
                    continue
                new_cost = g + 1
                if new_cost < cost.get(nxt, new_cost + 1):
                    cost[nxt] = new_cost
                    came_from[nxt] = current
                    heapq.heappush(frontier, (new_cost + nxt.manhattan(target), new_cost, next(tiebreak), nxt))
        return None

    def distance(self, start: Position, target: Position) -> int | None:
        path = self.find(start, target)
        return None if path is None else len(path)

    @staticmethod
    def _rebuild(came_from: dict[Position, Position], start: Position, target: Position) -> list[Position]:
        path = [target]
        while path[-1] != start:
            path.append(came_from[path[-1]])
        path.pop()
        path.reverse()
        return path
