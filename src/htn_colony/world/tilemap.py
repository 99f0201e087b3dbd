"""Grid of grass and water tiles."""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Sequence


class SpawnError(RuntimeError):
    """Raised when no free tile of the requested kind could be found."""


class Tile(str, Enum):
    GRASS = "grass"
    WATER = "water"


_SYMBOLS = {".": Tile.GRASS, "~": Tile.WATER}


@dataclass(frozen=True, slots=True, order=True)
class Position:
    x: int
    y: int

    def manhattan(self, other: Position) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def neighbours(self) -> tuple[Position, ...]:
        return (
            Position(self.x + 1, self.y),
            Position(self.x - 1, self.y),
            Position(self.x, self.y + 1),
            Position(self.x, self.y - 1),
        )

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True, slots=True)
class Tilemap:
    """Row-major tile grid; ``(0, 0)`` is the top-left corner."""

    width: int
    height: int
    tiles: tuple[Tile, ...]

    def __post_init__(self) -> None:
        if len(self.tiles) != self.width * self.height:
            raise ValueError(f"Expected {self.width * self.height} tiles, got {len(self.tiles)}")

    @classmethod
    def filled(cls, width: int, height: int, tile: Tile = Tile.GRASS) -> Tilemap:
        return cls(width, height, (tile,) * (width * height))

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> Tilemap:
        """Parse rows of ``.`` (grass) and ``~`` (water)."""
        if not rows:
            raise ValueError("A tilemap needs at least one row")
        width = len(rows[0])
        tiles: list[Tile] = []
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"Row {y} has {len(row)} tiles, expected {width}")
            try:
                tiles.extend(_SYMBOLS[symbol] for symbol in row)
            except KeyError as exc:
                raise ValueError(f"Unknown tile symbol {exc.args[0]!r} in row {y}") from None
        return cls(width, len(rows), tuple(tiles))

    @classmethod
    def generate(
        cls,
        width: int,
        height: int,
        *,
        water_ratio: float,
        rng: random.Random,
        keep_clear: Iterable[Position] = (),
    ) -> Tilemap:
        tiles = [Tile.WATER if rng.random() < water_ratio else Tile.GRASS for _ in range(width * height)]
        for pos in keep_clear:
            tiles[pos.y * width + pos.x] = Tile.GRASS
        return cls(width, height, tuple(tiles))

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def get(self, pos: Position) -> Tile:
        if not self.in_bounds(pos):
            raise IndexError(f"Position {pos} is outside the {self.width}x{self.height} map")
        return self.tiles[pos.y * self.width + pos.x]

    def __getitem__(self, pos: Position) -> Tile:
        return self.get(pos)

    def passable(self, pos: Position) -> bool:
        return self.in_bounds(pos) and self.get(pos) is Tile.GRASS

    def positions(self, tile: Tile | None = None) -> Iterator[Position]:
        for index, kind in enumerate(self.tiles):
            if tile is None or kind is tile:
                yield Position(index % self.width, index // self.width)


def random_tile(
    tilemap: Tilemap,
    tile: Tile,
    rng: random.Random,
    *,
    exclude: Iterable[Position] = (),
    attempts: int = 1_000,
) -> Position:
    """Pick a random position of kind ``tile`` that is not in ``exclude``."""
    taken = set(exclude)
    for _ in range(attempts):
        pos = Position(rng.randrange(tilemap.width), rng.randrange(tilemap.height))
        if tilemap[pos] is tile and pos not in taken:
            return pos
    raise SpawnError(f"Failed to find a free {tile.value} tile after {attempts} attempts")
