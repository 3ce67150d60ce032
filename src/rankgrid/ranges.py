# Copyright (c) Syntropy Systems
"""Parameter ranges and grid enumeration."""
from __future__ import annotations

import itertools
import math
import re
from collections.abc import Iterable, Iterator, Mapping

from typing_extensions import override

from rankgrid.models.base import ParameterValue

# Maxent training parameters are not written to lisp files.
MAXENT_FEATURES = frozenset({"MM", "MI", "RT", "AT", "VA", "PC"})

_EXPONENT_ZERO_RE = re.compile(r"(e[+-])0(\d)$")


def lisp_scientific_notation(x: float) -> str:
    """Format a float the way the Lisp reader expects scientific notation.

    Lisp drops leading zeros from the exponent, e.g. ``1.0e-1`` rather
    than ``1.0e-01``.
    """
    return _EXPONENT_ZERO_RE.sub(r"\1\2", f"{x:.1e}")


def lisp_value(value: ParameterValue) -> str:
    """Render a single parameter value as a Lisp literal."""
    if value is None or value is False or value == "":
        return "nil"
    if value is True:
        return "t"
    if isinstance(value, float):
        return lisp_scientific_notation(value)
    return str(value)


def _filename_value(value: ParameterValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        # Always keep a decimal point in the mantissa: 1.0e-08, not 1e-08.
        mantissa, e, exponent = repr(value).partition("e")
        if e and "." not in mantissa:
            mantissa += ".0"
        return f"{mantissa}{e}{exponent}"
    return str(value)


def _value_key(value: ParameterValue) -> tuple[type, ParameterValue]:
    # True == 1 == 1.0 in Python but they are different parameter values.
    return (type(value), value)


def _dedupe(values: Iterable[ParameterValue]) -> list[ParameterValue]:
    seen: set[tuple[type, ParameterValue]] = set()
    unique: list[ParameterValue] = []
    for value in values:
        key = _value_key(value)
        if key not in seen:
            seen.add(key)
            unique.append(value)
    return unique


class ParameterRanges(Mapping[str, list[ParameterValue]]):
    """Permissible values for a set of named parameters.

    This is a read-only mapping of parameter name to a list of values.  All
    operations return new objects.

        >>> r = ParameterRanges({"a": [1, 2], "b": [3, 4]})
        >>> [dict(c) for c in r.each_value_combination()]
        [{'a': [1], 'b': [3]}, {'a': [1], 'b': [4]}, {'a': [2], 'b': [3]}, {'a': [2], 'b': [4]}]
    """

    def __init__(
        self, ranges: Mapping[str, Iterable[ParameterValue]] | None = None
    ) -> None:
        self._ranges: dict[str, list[ParameterValue]] = {}
        for parameter, values in (ranges or {}).items():
            self._ranges[parameter] = list(values)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> ParameterRanges:
        """Create ranges from a mapping, wrapping single values in lists."""
        ranges: dict[str, list[ParameterValue]] = {}
        for parameter, values in mapping.items():
            if isinstance(values, (list, tuple)):
                ranges[parameter] = list(values)
            else:
                ranges[parameter] = [values]  # type: ignore[list-item]
        return cls(ranges)

    @override
    def __getitem__(self, parameter: str) -> list[ParameterValue]:
        return list(self._ranges[parameter])

    @override
    def __iter__(self) -> Iterator[str]:
        return iter(self._ranges)

    @override
    def __len__(self) -> int:
        return len(self._ranges)

    @override
    def __repr__(self) -> str:
        return f"ParameterRanges({self._ranges!r})"

    @override
    def __str__(self) -> str:
        """A table of parameters and their values, one per line."""
        return "\n".join(
            f"{parameter} = {self._ranges[parameter]!r}"
            for parameter in self.sorted_parameters()
        )

    def to_dict(self) -> dict[str, list[ParameterValue]]:
        """A plain dictionary copy suitable for serialization."""
        return {parameter: list(values) for parameter, values in self._ranges.items()}

    def sorted_parameters(self) -> list[str]:
        """Parameters by descending number of values, then by name."""
        return sorted(self._ranges, key=lambda p: (-len(self._ranges[p]), p))

    def grid_size(self) -> int:
        """The total number of value combinations."""
        return math.prod(len(values) for values in self._ranges.values())

    def multivalue_parameters(self) -> list[str]:
        """Parameters that range over more than one value."""
        return [p for p, values in self._ranges.items() if len(values) > 1]

    def without_single_value_parameters(self) -> ParameterRanges:
        """A copy containing only the multi-valued parameters."""
        return ParameterRanges(
            {p: self._ranges[p] for p in self.multivalue_parameters()}
        )

    def union(self, other: Mapping[str, Iterable[ParameterValue]]) -> ParameterRanges:
        """Combine with another set of ranges.

        Values of shared parameters are merged without duplicates, keeping
        the order in which they are first seen.
        """
        merged: dict[str, list[ParameterValue]] = {
            parameter: list(values) for parameter, values in self._ranges.items()
        }
        for parameter, values in other.items():
            merged[parameter] = merged.get(parameter, []) + list(values)
        return ParameterRanges({p: _dedupe(v) for p, v in merged.items()})

    __add__ = union

    def filtered(
        self, filter_ranges: Mapping[str, Iterable[ParameterValue]]
    ) -> ParameterRanges:
        """Return a copy restricted by ``filter_ranges``.

        Parameters present in both take the filter's values wholesale.
        Parameters only in this object are kept, parameters only in the
        filter are ignored.
        """
        return ParameterRanges(
            {
                parameter: filter_ranges[parameter] if parameter in filter_ranges else values
                for parameter, values in self._ranges.items()
            }
        )

    def each_value_combination(
        self, keep_together: Iterable[str] = ()
    ) -> Iterator[ParameterRanges]:
        """Enumerate all value combinations.

        Yields ranges in which every parameter has a single value, except
        the ``keep_together`` parameters which keep their complete value
        lists.  Parameters are crossed in name order.
        """
        keep_together = list(keep_together)
        for parameter in keep_together:
            if parameter not in self._ranges:
                msg = f"{parameter} not in parameter list"
                raise ValueError(msg)
        together = {p: self._ranges[p] for p in keep_together}
        cross = sorted(p for p in self._ranges if p not in together)
        return self._combinations(cross, together)

    def _combinations(
        self, cross: list[str], together: dict[str, list[ParameterValue]]
    ) -> Iterator[ParameterRanges]:
        if len(cross) > 1:
            vectors: Iterable[tuple[ParameterValue, ...]] = itertools.product(
                *(self._ranges[p] for p in cross)
            )
        elif cross:
            vectors = ((value,) for value in self._ranges[cross[0]])
        else:
            vectors = [()]

        for vector in vectors:
            combination: dict[str, list[ParameterValue]] = {
                parameter: [value] for parameter, value in zip(cross, vector)
            }
            combination.update(together)
            yield ParameterRanges(combination)

    def to_lisp(
        self,
        exclude: Iterable[str] = MAXENT_FEATURES,
        include: Iterable[str] | None = None,
    ) -> str:
        """Write the parameters as Lisp keyword arguments.

        A parameter with one value is written as a bare literal, several
        values as a quoted list.
        """
        excluded = set(exclude)
        included = set(self._ranges) if include is None else set(include)
        lines: list[str] = []
        for parameter in self.sorted_parameters():
            if parameter not in included or parameter in excluded:
                continue
            values = [lisp_value(v) for v in self._ranges[parameter]]
            rendered = values[0] if len(values) == 1 else f"'({' '.join(values)})"
            lines.append(f":{parameter} {rendered}")
        return "\n".join(lines)

    def to_filename_fragment(self, include: Iterable[str] | None = None) -> str:
        """All the parameters and values on one line, usable in a filename."""
        included = set(self._ranges) if include is None else set(include)
        return ".".join(
            "_".join([parameter, *(_filename_value(v) for v in self._ranges[parameter])])
            for parameter in self.sorted_parameters()
            if parameter in included
        )
