# Copyright (c) Syntropy Systems
"""Configuration keys: the parameter values encoded in a profile name.

Profile directories are named with the experiment name in square brackets
followed by one token per parameter, e.g.::

    [jhpstg] GP[4] +PT -LEX CW[] +AE NS[4] NT[type] +NB LM[0] FT[:::1]
    RS[] MM[tao_lmvm] MI[5000] RT[1.0e-8] AT[1.0e-20] VA[] PC[100]
"""
from __future__ import annotations

import re
from collections.abc import Iterator, Mapping

from typing_extensions import override

from rankgrid.models.base import ParameterValue
from rankgrid.ranges import ParameterRanges, lisp_scientific_notation

# Profile name abbreviations and the Lisp parameter names they stand for.
# Names not listed here are used as they are.
LISP_NAMES: dict[str, str] = {
    "AE": "active-edges-p",
    "CW": "constituent-weight",
    "GP": "grandparenting",
    "LEX": "lexicalization-p",
    "LM": "lm-p",
    "NB": "ngram-back-off-p",
    "NS": "ngram-size",
    "NT": "ngram-tag",
    "PT": "use-preterminal-types-p",
    "RT": "relative-tolerance",
    "RS": "random-sample-size",
    "VA": "variance",
}

# Token layout of a profile name.  "value" tokens are written as NAME[value],
# "flag" tokens as +NAME or -NAME and "float" tokens as NAME[value] with
# floats in Lisp scientific notation.
NAME_LAYOUT: tuple[tuple[str, str], ...] = (
    ("GP", "value"),
    ("PT", "flag"),
    ("LEX", "flag"),
    ("CW", "value"),
    ("AE", "flag"),
    ("NS", "value"),
    ("NT", "value"),
    ("NB", "flag"),
    ("LM", "value"),
    ("FT", "fixed"),
    ("RS", "value"),
    ("MM", "value"),
    ("MI", "value"),
    ("RT", "float"),
    ("AT", "float"),
    ("VA", "float"),
    ("PC", "value"),
)

# TODO: parse and write FT[...] properly; it is currently always ":::1".
FT_LITERAL = "FT[:::1]"

_PREFIX_RE = re.compile(r"\[(.*?)\]")
_FT_RE = re.compile(r"FT\[.*\]")
_VALUE_RE = re.compile(r"(\w+)\[(.*)\]")
_FLAG_RE = re.compile(r"([+-])(\w+)")
_INTEGER_RE = re.compile(r"\d+")
_FLOAT_RE = re.compile(r"\d+\.\d+e[+-]\d+")


def lisp_name(abbreviation: str) -> str:
    """Expand a profile name abbreviation."""
    return LISP_NAMES.get(abbreviation, abbreviation)


def classify_value(raw: str) -> int | float | str:
    """Convert a bracketed value to an integer, a float or leave it a string."""
    if _INTEGER_RE.fullmatch(raw):
        return int(raw)
    if _FLOAT_RE.fullmatch(raw):
        return float(raw)
    return raw


def _bracket_value(value: ParameterValue, scientific: bool = False) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if scientific and isinstance(value, float):
        return lisp_scientific_notation(value)
    return str(value)


class ConfigurationKey(Mapping[str, ParameterValue]):
    """The experiment name and parameter values of one profile."""

    def __init__(
        self, name: str, parameters: Mapping[str, ParameterValue] | None = None
    ) -> None:
        self.name = name
        self._parameters: dict[str, ParameterValue] = dict(parameters or {})

    @classmethod
    def parse(cls, s: str) -> ConfigurationKey:
        """Extract the configuration from a profile directory name."""
        fields = s.split()
        if not fields:
            msg = f"Empty profile name '{s}'"
            raise ValueError(msg)
        prefix = fields.pop(0)
        match = _PREFIX_RE.fullmatch(prefix)
        if match is None:
            msg = f"Invalid prefix field {prefix} in '{s}'"
            raise ValueError(msg)
        parameters: dict[str, ParameterValue] = {}
        for field in fields:
            value: ParameterValue
            if _FT_RE.fullmatch(field):
                continue
            if (m := _VALUE_RE.fullmatch(field)) is not None:
                name, value = m.group(1), classify_value(m.group(2))
            elif (m := _FLAG_RE.fullmatch(field)) is not None:
                name, value = m.group(2), m.group(1) == "+"
            else:
                msg = f"Invalid field {field} in '{s}'"
                raise ValueError(msg)
            parameters[lisp_name(name)] = value
        return cls(match.group(1), parameters)

    @classmethod
    def from_ranges(
        cls, name: str, ranges: Mapping[str, list[ParameterValue]]
    ) -> ConfigurationKey:
        """Build the key of a single grid point.

        Every parameter in ``ranges`` should have exactly one value; the
        first one is used.
        """
        parameters: dict[str, ParameterValue] = {}
        for parameter, values in ranges.items():
            if not values:
                msg = f"Parameter '{parameter}' has no values"
                raise ValueError(msg)
            parameters[parameter] = values[0]
        return cls(name, parameters)

    def to_ranges(self) -> ParameterRanges:
        return ParameterRanges.from_mapping(self._parameters)

    @property
    def parameters(self) -> dict[str, ParameterValue]:
        return dict(self._parameters)

    def to_string(self) -> str:
        """The profile directory name for this configuration.

        The tokens are always written in the same order.  Parameters this
        key does not have are written empty, parameters outside the layout
        are not written at all.
        """
        tokens = [f"[{self.name}]"]
        for abbreviation, kind in NAME_LAYOUT:
            value = self._parameters.get(lisp_name(abbreviation))
            if kind == "fixed":
                tokens.append(FT_LITERAL)
            elif kind == "flag":
                tokens.append(f"{'+' if value else '-'}{abbreviation}")
            else:
                rendered = _bracket_value(value, scientific=kind == "float")
                tokens.append(f"{abbreviation}[{rendered}]")
        return " ".join(tokens)

    @override
    def __str__(self) -> str:
        return self.to_string()

    @override
    def __repr__(self) -> str:
        return f"ConfigurationKey({self.name!r}, {self._parameters!r})"

    @override
    def __getitem__(self, parameter: str) -> ParameterValue:
        return self._parameters[parameter]

    @override
    def __iter__(self) -> Iterator[str]:
        return iter(self._parameters)

    @override
    def __len__(self) -> int:
        return len(self._parameters)

    def _identity(self) -> tuple[str, tuple[tuple[str, type, ParameterValue], ...]]:
        # Compare types too so that True and 1 are different values.
        return (
            self.name,
            tuple(
                (parameter, type(value), value)
                for parameter, value in sorted(
                    self._parameters.items(), key=lambda item: item[0]
                )
            ),
        )

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigurationKey):
            return NotImplemented
        return self._identity() == other._identity()

    @override
    def __hash__(self) -> int:
        return hash(self.to_string())
