"""Operators, methods, compound tasks and the domain registry."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence, Union

from htn_colony.planning.errors import CapacityExceeded, DuplicateTaskError, UnknownTaskError
from htn_colony.planning.params import DEFAULT_CAPACITY, ParameterList, ParamType, ParamValue, Signature, bind

State = Any
Precondition = Callable[[State, ParameterList], bool]
Effect = Callable[[State, ParameterList], State]
StateCopier = Callable[[State], State]
ParamSource = Union[None, Sequence[ParamValue], Callable[[State, ParameterList], Iterable[ParamValue]]]


def always(state: State, params: ParameterList) -> bool:
    """Precondition that always holds."""
    return True


@dataclass(frozen=True, slots=True)
class Operator:
    """Primitive action: a guard plus a pure state transition."""

    name: str
    precondition: Precondition
    effect: Effect
    signature: Signature = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "signature", tuple(ParamType(tag) for tag in self.signature))

    def bind(self, values: Iterable[ParamValue], *, capacity: int = DEFAULT_CAPACITY) -> ParameterList:
        return bind(self.signature, values, capacity=capacity, task=self.name)

    def apply(self, state: State, params: ParameterList, copy_state: StateCopier = copy.deepcopy) -> State | None:
        """Return the successor state, or ``None`` when the precondition is false.

        The effect only ever sees a copy of ``state``, so an effect that edits its
        argument in place cannot leak into the caller's state.
        """
        if not self.precondition(state, params):
            return None
        return self.effect(copy_state(state), params)


@dataclass(frozen=True, slots=True)
class CompoundTask:
    """Named goal decomposed by the first workable method, in declaration order."""

    name: str
    methods: tuple[Method, ...] = ()
    signature: Signature | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "methods", tuple(self.methods))
        if self.signature is not None:
            object.__setattr__(self, "signature", tuple(ParamType(tag) for tag in self.signature))

    def bind(self, values: Iterable[ParamValue], *, capacity: int = DEFAULT_CAPACITY) -> ParameterList:
        if self.signature is None:
            if isinstance(values, ParameterList):
                return values
            return ParameterList(values, capacity=capacity)
        return bind(self.signature, values, capacity=capacity, task=self.name)


TaskRef = Union[Operator, CompoundTask, str]


def task_name(task: TaskRef) -> str:
    return task if isinstance(task, str) else task.name


@dataclass(frozen=True, slots=True)
class TaskCall:
    """A task reference together with the values it will be bound to."""

    task: TaskRef
    values: tuple[ParamValue, ...] | ParameterList = ()

    @property
    def name(self) -> str:
        return task_name(self.task)

    def __repr__(self) -> str:
        return f"{self.name}{tuple(self.values)!r}"


@dataclass(frozen=True, slots=True)
class Subtask:
    """Entry of a method's subtask list.

    ``params`` decides what the subtask is called with: ``None`` forwards the
    parameters of the task being decomposed, a sequence supplies literal values
    and a callable computes them from ``(state, parent_params)``.
    """

    task: TaskRef
    params: ParamSource = None

    def call(self, state: State, parent: ParameterList) -> TaskCall:
        if self.params is None:
            return TaskCall(self.task, parent)
        if callable(self.params):
            return TaskCall(self.task, tuple(self.params(state, parent)))
        return TaskCall(self.task, tuple(self.params))


def _as_subtask(entry: Subtask | TaskRef) -> Subtask:
    if isinstance(entry, Subtask):
        return entry
    if isinstance(entry, (Operator, CompoundTask, str)):
        return Subtask(entry)
    raise TypeError(f"Subtasks must be operators, compound tasks, names or Subtask entries, got {entry!r}")


@dataclass(frozen=True, slots=True)
class Method:
    """One candidate decomposition of a compound task."""

    name: str
    precondition: Precondition = always
    subtasks: tuple[Subtask, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "subtasks", tuple(_as_subtask(entry) for entry in self.subtasks))

    def applicable(self, state: State, params: ParameterList) -> bool:
        return bool(self.precondition(state, params))

    def expand(self, state: State, params: ParameterList) -> tuple[TaskCall, ...]:
        return tuple(subtask.call(state, params) for subtask in self.subtasks)


class Domain:
    """Read-only registry of operators and compound tasks keyed by name."""

    def __init__(
        self,
        operators: Mapping[str, Operator],
        compound_tasks: Mapping[str, CompoundTask],
        *,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self._operators = MappingProxyType(dict(operators))
        self._compound_tasks = MappingProxyType(dict(compound_tasks))
        self._capacity = capacity

    @property
    def operators(self) -> Mapping[str, Operator]:
        return self._operators

    @property
    def compound_tasks(self) -> Mapping[str, CompoundTask]:
        return self._compound_tasks

    @property
    def capacity(self) -> int:
        return self._capacity

    def resolve(self, task: TaskRef) -> Operator | CompoundTask:
        """Return the concrete task for ``task``; bare names are looked up by name."""
        if isinstance(task, (Operator, CompoundTask)):
            return task
        if task in self._operators:
            return self._operators[task]
        if task in self._compound_tasks:
            return self._compound_tasks[task]
        raise UnknownTaskError(task)

    def __contains__(self, name: object) -> bool:
        return name in self._operators or name in self._compound_tasks

    def __iter__(self) -> Iterator[str]:
        yield from self._operators
        yield from self._compound_tasks

    def unresolved_references(self) -> list[str]:
        """Names used in method subtask lists that neither registry knows."""
        missing: set[str] = set()
        seen: set[int] = set()
        pending = list(self._compound_tasks.values())
        while pending:
            compound = pending.pop()
            if id(compound) in seen:
                continue
            seen.add(id(compound))
            for method in compound.methods:
                for subtask in method.subtasks:
                    ref = subtask.task
                    if isinstance(ref, str):
                        if ref not in self:
                            missing.add(ref)
                    elif isinstance(ref, CompoundTask):
                        pending.append(ref)
        return sorted(missing)


class DomainBuilder:
    """Collects registrations and produces an immutable :class:`Domain`."""

    def __init__(self, *, capacity: int = DEFAULT_CAPACITY) -> None:
        self._capacity = capacity
        self._operators: dict[str, Operator] = {}
        self._compound_tasks: dict[str, CompoundTask] = {}

    def register_operator(
        self,
        name: str,
        precondition: Precondition,
        effect: Effect,
        signature: Sequence[ParamType] = (),
    ) -> Operator:
        return self.add_operator(Operator(name, precondition, effect, tuple(signature)))

    def add_operator(self, operator: Operator) -> Operator:
        self._check_new(operator.name)
        if len(operator.signature) > self._capacity:
            raise CapacityExceeded(self._capacity, len(operator.signature))
        self._operators[operator.name] = operator
        return operator

    def register_compound_task(
        self,
        name: str,
        methods: Sequence[Method],
        signature: Sequence[ParamType] | None = None,
    ) -> CompoundTask:
        return self.add_compound_task(
            CompoundTask(name, tuple(methods), None if signature is None else tuple(signature))
        )

    def add_compound_task(self, task: CompoundTask) -> CompoundTask:
        self._check_new(task.name)
        if task.signature is not None and len(task.signature) > self._capacity:
            raise CapacityExceeded(self._capacity, len(task.signature))
        self._compound_tasks[task.name] = task
        return task

    def build(self) -> Domain:
        return Domain(self._operators, self._compound_tasks, capacity=self._capacity)

    def _check_new(self, name: str) -> None:
        if name in self._operators or name in self._compound_tasks:
            raise DuplicateTaskError(name)
