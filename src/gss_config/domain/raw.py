"""Untyped values produced by the source layer.

Purpose
-------
Decoders never look at arbitrary Python objects. Parsed YAML, environment
strings and hard-coded defaults are first classified into a small closed set of
shapes so every decoder matches over a finite alternative list:

* :class:`Scalar` – a string, number, boolean or ``None``.
* :class:`RawList` – an ordered sequence of raw values.
* :class:`RawMap` – string-keyed entries, order preserved.

:func:`to_raw` performs the classification; :func:`shape_name` renders a shape
for error messages.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Union

ScalarValue = Union[str, int, float, bool, None]


@dataclass(frozen=True, slots=True)
class Scalar:
    """A single leaf value."""

    value: ScalarValue

    @property
    def is_null(self) -> bool:
        return self.value is None


@dataclass(frozen=True, slots=True)
class RawList:
    """An ordered sequence of raw values."""

    items: tuple["RawValue", ...]


@dataclass(frozen=True, slots=True)
class RawMap:
    """String-keyed entries in source order."""

    entries: tuple[tuple[str, "RawValue"], ...]

    def keys(self) -> tuple[str, ...]:
        return tuple(key for key, _ in self.entries)


RawValue = Union[Scalar, RawList, RawMap]


def to_raw(value: object) -> RawValue:
    """Classify a parsed Python value into the closed :data:`RawValue` shapes.

    Mapping keys are stringified the way YAML scalars would be quoted; values
    of unsupported types (dates, binary blobs) are rendered through ``str`` so
    the decoder reports a string-shaped validation error rather than crashing.

    Examples
    --------
    >>> to_raw("speed")
    Scalar(value='speed')
    >>> to_raw(["a", 1])
    RawList(items=(Scalar(value='a'), Scalar(value=1)))
    >>> to_raw({"X-Test": ["a"]}).keys()
    ('X-Test',)
    """

    if isinstance(value, (RawList, RawMap, Scalar)):
        return value
    if value is None or isinstance(value, (str, bool, int, float)):
        return Scalar(value)
    if isinstance(value, Mapping):
        return RawMap(tuple((str(key), to_raw(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple)):
        return RawList(tuple(to_raw(item) for item in value))
    return Scalar(str(value))


def shape_name(raw: RawValue) -> str:
    """Return a short description of *raw* for error messages.

    Examples
    --------
    >>> shape_name(Scalar(3.14))
    'float'
    >>> shape_name(RawList(()))
    'list'
    """

    if isinstance(raw, RawMap):
        return "map"
    if isinstance(raw, RawList):
        return "list"
    if raw.value is None:
        return "null"
    return type(raw.value).__name__
