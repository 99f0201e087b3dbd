"""Worker behaviours and the executor that applies plans to the world."""

from .executor import ExecutionError, PlanExecution, PlanExecutor
from .htn_worker import HtnBehaviour
from .naive import Chopping, Idle, MoveTo, NaiveBehaviour

__all__ = [
    "Chopping",
    "ExecutionError",
    "HtnBehaviour",
    "Idle",
    "MoveTo",
    "NaiveBehaviour",
    "PlanExecution",
    "PlanExecutor",
]
