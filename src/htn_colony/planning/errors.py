"""Fatal planning errors.

A false precondition is not an error: it only prunes a branch of the search and
shows up to the caller as "no plan". Everything defined here aborts the whole
search and reaches the caller unchanged.
"""

from __future__ import annotations


class PlanningError(RuntimeError):
    """Base class for errors that abort a planning call."""


class ParameterSignatureError(PlanningError, TypeError):
    """Raised when a parameter list does not fit the declared signature."""


class ArityMismatch(ParameterSignatureError):
    """Raised when a parameter list has the wrong number of values."""

    def __init__(self, expected: int, actual: int, *, task: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.task = task
        where = f" for {task!r}" if task else ""
        super().__init__(f"Expected {expected} parameter(s){where}, got {actual}")


class TypeMismatch(ParameterSignatureError):
    """Raised when the value at ``position`` carries an unexpected tag."""

    def __init__(self, position: int, expected: object, actual: object, *, task: str | None = None) -> None:
        self.position = position
        self.expected = expected
        self.actual = actual
        self.task = task
        where = f" of {task!r}" if task else ""
        super().__init__(f"Parameter {position}{where} should be {expected}, got {actual}")


class CapacityExceeded(ParameterSignatureError):
    """Raised when more values are supplied than a parameter list can hold."""

    def __init__(self, capacity: int, actual: int) -> None:
        self.capacity = capacity
        self.actual = actual
        super().__init__(f"Parameter list holds at most {capacity} values, got {actual}")


class UnsupportedParameter(ParameterSignatureError):
    """Raised for values outside the int/float/text parameter union."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Unsupported parameter value {value!r} of type {type(value).__name__}")


class UnknownTaskError(PlanningError, LookupError):
    """Raised when a task name is registered neither as operator nor as compound task."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown task: {name!r}")


class DuplicateTaskError(PlanningError, ValueError):
    """Raised when a task name is registered twice."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Task already registered: {name!r}")


class DepthExceeded(PlanningError):
    """Raised when the decomposition goes deeper than the configured limit.

    ``reached`` is set when the interpreter's recursion limit stopped the search
    before ``limit`` was hit.
    """

    def __init__(self, limit: int, *, reached: int | None = None) -> None:
        self.limit = limit
        self.reached = reached
        if reached is None:
            message = f"Planning depth exceeded the limit of {limit}"
        else:
            message = f"Planning hit the interpreter recursion limit at depth {reached} (configured limit {limit})"
        super().__init__(message)


class Cancelled(PlanningError):
    """Raised when a deadline, node budget or cancel flag stops the search."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Planning cancelled: {reason}")
