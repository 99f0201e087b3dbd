"""Console rendering of the world grid."""

from __future__ import annotations

from rich.text import Text

from htn_colony.world import Position, Tile, World

_GLYPHS = {
    "water": ("~", "blue"),
    "grass": (".", "green"),
    "tree": ("T", "bold yellow"),
    "base": ("B", "bold magenta"),
    "worker": ("W", "bold white"),
    "carrying": ("w", "bold cyan"),
}


def glyph_at(world: World, pos: Position) -> str:
    """Name of what is drawn at ``pos``; workers cover trees, trees cover the base."""
    workers = [worker for worker in world.workers if worker.position == pos]
    if workers:
        return "carrying" if any(worker.has_wood for worker in workers) else "worker"
    if world.tree_at(pos) is not None:
        return "tree"
    if pos == world.base:
        return "base"
    return "water" if world.tilemap[pos] is Tile.WATER else "grass"


def render_world(world: World) -> Text:
    text = Text()
    for y in range(world.tilemap.height):
        for x in range(world.tilemap.width):
            symbol, style = _GLYPHS[glyph_at(world, Position(x, y))]
            text.append(symbol, style=style)
        text.append("\n")
    text.append(f"tick {world.tick}  stockpile {world.stockpile}  trees {len(world.trees)}")
    return text
