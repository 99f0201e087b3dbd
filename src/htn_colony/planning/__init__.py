"""Hierarchical task network planning engine."""

from .actions import Action, Plan, PlanningStats
from .domain import (
    CompoundTask,
    Domain,
    DomainBuilder,
    Method,
    Operator,
    Subtask,
    TaskCall,
    TaskRef,
    always,
)
from .errors import (
    ArityMismatch,
    Cancelled,
    CapacityExceeded,
    DepthExceeded,
    DuplicateTaskError,
    ParameterSignatureError,
    PlanningError,
    TypeMismatch,
    UnknownTaskError,
    UnsupportedParameter,
)
from .history import InMemoryPlanHistory, JsonlPlanHistory, PlanHistoryStore, PlanRecord, PlanStatus
from .params import DEFAULT_CAPACITY, ParameterList, ParamType, ParamValue, bind, get, signature_of
from .planner import DEFAULT_MAX_DEPTH, Planner, hop, plan

__all__ = [
    "Action",
    "ArityMismatch",
    "Cancelled",
    "CapacityExceeded",
    "CompoundTask",
    "DEFAULT_CAPACITY",
    "DEFAULT_MAX_DEPTH",
    "DepthExceeded",
    "Domain",
    "DomainBuilder",
    "DuplicateTaskError",
    "InMemoryPlanHistory",
    "JsonlPlanHistory",
    "Method",
    "Operator",
    "ParamType",
    "ParamValue",
    "ParameterList",
    "ParameterSignatureError",
    "Plan",
    "PlanHistoryStore",
    "PlanRecord",
    "PlanStatus",
    "Planner",
    "PlanningError",
    "PlanningStats",
    "Subtask",
    "TaskCall",
    "TaskRef",
    "TypeMismatch",
    "UnknownTaskError",
    "UnsupportedParameter",
    "always",
    "bind",
    "get",
    "hop",
    "plan",
    "signature_of",
]
