"""Grid, pathfinding and the live world model."""

from .pathfinder import Pathfinder
from .state import Tree, Worker, World, spawn_world
from .tilemap import Position, SpawnError, Tile, Tilemap, random_tile

__all__ = [
    "Pathfinder",
    "Position",
    "SpawnError",
    "Tile",
    "Tilemap",
    "Tree",
    "Worker",
    "World",
    "random_tile",
    "spawn_world",
]
