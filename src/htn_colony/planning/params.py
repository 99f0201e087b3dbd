"""Typed parameter values and bounded parameter lists.

Parameters form a closed union of ``int``, ``float`` and ``str`` values. Each
value carries a :class:`ParamType` tag derived from its exact Python type, so
``True`` is not an integer here and ``1`` is not a float. Signatures are tuples
of tags and are checked position by position at runtime, because parameter
lists are usually assembled on the fly while methods expand.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator, Sequence, Union

from htn_colony.planning.errors import ArityMismatch, CapacityExceeded, TypeMismatch, UnsupportedParameter

DEFAULT_CAPACITY = 5

ParamValue = Union[int, float, str]


class ParamType(str, Enum):
    """Tag of a parameter value."""

    INT = "int"
    FLOAT = "float"
    TEXT = "text"

    @classmethod
    def of(cls, value: object) -> ParamType:
        """Return the tag of ``value`` or raise :class:`UnsupportedParameter`."""
        try:
            return _TAGS[type(value)]
        except KeyError:
            raise UnsupportedParameter(value) from None


_TAGS = {int: ParamType.INT, float: ParamType.FLOAT, str: ParamType.TEXT}

Signature = tuple[ParamType, ...]


class ParameterList:
    """Immutable, positional list of tagged parameter values."""

    __slots__ = ("_values", "_tags", "_capacity")

    def __init__(self, values: Iterable[ParamValue] = (), *, capacity: int = DEFAULT_CAPACITY) -> None:
        items = tuple(values)
        if len(items) > capacity:
            raise CapacityExceeded(capacity, len(items))
        self._tags: Signature = tuple(ParamType.of(value) for value in items)
        self._values = items
        self._capacity = capacity

    @property
    def values(self) -> tuple[ParamValue, ...]:
        return self._values

    @property
    def tags(self) -> Signature:
        return self._tags

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, index: int, expected: ParamType) -> ParamValue:
        """Return the value at ``index`` after checking that it is tagged ``expected``."""
        actual = self._tags[index]
        if actual is not expected:
            raise TypeMismatch(index, expected, actual)
        return self._values[index]

    def get_int(self, index: int) -> int:
        return self.get(index, ParamType.INT)

    def get_float(self, index: int) -> float:
        return self.get(index, ParamType.FLOAT)

    def get_text(self, index: int) -> str:
        return self.get(index, ParamType.TEXT)

    def matches(self, signature: Sequence[ParamType]) -> bool:
        return self._tags == tuple(signature)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[ParamValue]:
        return iter(self._values)

    def __getitem__(self, index: int) -> ParamValue:
        return self._values[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterList):
            return NotImplemented
        return self._tags == other._tags and self._values == other._values

    def __hash__(self) -> int:
        return hash((self._tags, self._values))

    def __repr__(self) -> str:
        return f"ParameterList({list(self._values)!r})"


def bind(
    signature: Sequence[ParamType],
    values: Iterable[ParamValue],
    *,
    capacity: int = DEFAULT_CAPACITY,
    task: str | None = None,
) -> ParameterList:
    """Build a parameter list from ``values`` that satisfies ``signature``.

    Raises :class:`ArityMismatch` if the lengths differ and :class:`TypeMismatch`
    for the first position whose tag differs from the signature.
    """
    params = values if isinstance(values, ParameterList) else ParameterList(values, capacity=capacity)
    expected = tuple(signature)
    if len(params) != len(expected):
        raise ArityMismatch(len(expected), len(params), task=task)
    for position, (want, have) in enumerate(zip(expected, params.tags)):
        if want is not have:
            raise TypeMismatch(position, want, have, task=task)
    return params


def get(params: ParameterList, index: int, expected: ParamType) -> ParamValue:
    return params.get(index, expected)


def signature_of(*types: type) -> Signature:
    """Translate Python types into a signature, e.g. ``signature_of(str, int)``."""
    try:
        return tuple(_TAGS[kind] for kind in types)
    except KeyError as exc:
        raise UnsupportedParameter(exc.args[0]) from None
