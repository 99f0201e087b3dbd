"""Ready-made planning domains."""

from .gather import GatherState, build_gather_domain, nearest_tree
from .travel import build_travel_domain, taxi_rate, travel_state

__all__ = [
    "GatherState",
    "build_gather_domain",
    "build_travel_domain",
    "nearest_tree",
    "taxi_rate",
    "travel_state",
]
