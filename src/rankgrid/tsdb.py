# Copyright (c) Syntropy Systems
"""TSDB profiles: relations files, data tables and summary statistics.

A profile is a directory holding a ``relations`` file that describes the
schema of every table, plus one data file per table.  Data files hold one
record per line with fields separated by ``@`` and may be gzip compressed.
"""
from __future__ import annotations

import gzip
import logging
import math
import re
import zlib
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Union

from typing_extensions import TypeAlias, override

if TYPE_CHECKING:
    from os import PathLike


RELATIONS_FILENAME = "relations"
FIELD_SEPARATOR = "@"

Record: TypeAlias = dict[str, Union[int, str]]

_COMMENT_RE = re.compile(r"#.*")
_TABLE_RE = re.compile(r"(\S+):")
_FIELD_RE = re.compile(r"(\S+)\s+:(\w+)(\s+:key)?(\s+:partial)?")


class InvalidProfileError(Exception):
    """Base class for everything that makes a profile unusable.

    ``str(error)`` is a full description including the profile path;
    ``short_message`` is a terse description without it.
    """

    short_message = "Invalid profile"


class MissingRelationsFile(InvalidProfileError):
    """The profile directory has no relations file."""

    short_message = "Missing 'relations' file"

    def __init__(self, directory: str | PathLike[str]) -> None:
        self.directory = Path(directory)
        super().__init__(f"Missing 'relations' file in {self.directory}.")


class InvalidRelationsFile(InvalidProfileError):
    """A line of the relations file could not be parsed."""

    short_message = "Invalid 'relations' file"

    def __init__(self, filename: str | None, line_number: int, line_text: str) -> None:
        self.filename = filename
        self.line_number = line_number
        self.line_text = line_text
        location = f"line {line_number}"
        if filename is not None:
            location += f" {filename}"
        super().__init__(f"Invalid 'relations' file: {location}\n{line_text}")


class MissingDataFile(InvalidProfileError):
    """Neither the plain nor the gzipped data file exists."""

    def __init__(self, table_name: str, directory: str | PathLike[str]) -> None:
        self.table_name = table_name
        self.directory = Path(directory)
        self.short_message = f"Missing data file for table '{table_name}'"
        super().__init__(f"{self.short_message} in {self.directory}.")


class EmptyDataFile(InvalidProfileError):
    """Statistics were requested for a table with no records."""

    def __init__(self, table_name: str, directory: str | PathLike[str]) -> None:
        self.table_name = table_name
        self.directory = Path(directory)
        self.short_message = f"Empty data file for table '{table_name}'"
        super().__init__(f"{self.short_message} in {self.directory}.")


class UnknownTable(InvalidProfileError):
    """The relations file does not declare the requested table."""

    def __init__(self, table_name: str, directory: str | PathLike[str]) -> None:
        self.table_name = table_name
        self.directory = Path(directory)
        self.short_message = f"Unknown table '{table_name}'"
        super().__init__(f"{self.short_message} in {self.directory}.")


class RecordDecodeError(InvalidProfileError):
    """A data line has a different number of fields than its schema."""

    def __init__(self, table_name: str, line: str, expected: int, actual: int) -> None:
        self.table_name = table_name
        self.line = line
        self.expected = expected
        self.actual = actual
        self.short_message = f"Malformed record in table '{table_name}'"
        super().__init__(
            f"{self.short_message}: expected {expected} fields, "
            f"got {actual} in {line!r}"
        )


class InvalidDataValue(InvalidProfileError):
    """A field value cannot be read as a number."""

    def __init__(self, table_name: str, field: str, value: object) -> None:
        self.table_name = table_name
        self.field = field
        self.value = value
        self.short_message = f"Non-numeric '{field}' in table '{table_name}'"
        super().__init__(f"{self.short_message}: {value!r}")


class UnreadableFile(InvalidProfileError):
    """A profile file exists but is corrupt, truncated or not UTF-8."""

    def __init__(self, path: str | PathLike[str], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        self.short_message = f"Unreadable file '{self.path.name}'"
        super().__init__(f"{self.short_message} in {self.path.parent}: {reason}")


@dataclass(frozen=True)
class Field:
    """A single column declaration in a relations file."""

    label: str
    type: str
    is_key: bool = False
    is_partial: bool = False

    @override
    def __str__(self) -> str:
        s = f"  {self.label} :{self.type}"
        if self.is_key:
            s += " :key"
        if self.is_partial:
            s += " :partial"
        return s


class SchemaTable:
    """The ordered field list of one table."""

    def __init__(self, name: str, fields: Iterable[Field] = ()) -> None:
        self.name = name
        self._fields: list[Field] = []
        for field in fields:
            self.add_field(field)

    @property
    def fields(self) -> tuple[Field, ...]:
        return tuple(self._fields)

    @property
    def labels(self) -> list[str]:
        return [f.label for f in self._fields]

    @property
    def keys(self) -> set[str]:
        return {f.label for f in self._fields if f.is_key}

    @property
    def partials(self) -> set[str]:
        return {f.label for f in self._fields if f.is_partial}

    def add_field(self, field: Field) -> None:
        """Append a field, rejecting duplicate labels."""
        if field.label in self.labels:
            msg = f"Duplicate field '{field.label}' in table '{self.name}'"
            raise ValueError(msg)
        self._fields.append(field)

    def is_key(self, label: str) -> bool:
        return label in self.keys

    def is_partial(self, label: str) -> bool:
        return label in self.partials

    def decode(self, line: str) -> Record:
        """Generate a record from one line of a data file.

        Fields are matched to the schema by position.  Integer fields are
        converted; everything else stays a string.
        """
        parts = line.split(FIELD_SEPARATOR)
        if len(parts) != len(self._fields):
            raise RecordDecodeError(self.name, line, len(self._fields), len(parts))
        record: Record = {}
        for field, raw in zip(self._fields, parts):
            if field.type != "integer":
                record[field.label] = raw
                continue
            try:
                record[field.label] = int(raw)
            except ValueError as e:
                raise InvalidDataValue(self.name, field.label, raw) from e
        return record

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaTable):
            return NotImplemented
        return self.name == other.name and self._fields == other._fields

    __hash__ = None  # type: ignore[assignment]

    @override
    def __repr__(self) -> str:
        return f"SchemaTable({self.name})"

    @override
    def __str__(self) -> str:
        """The table as it appears in a relations file."""
        return "\n".join([f"{self.name}:", *(str(f) for f in self._fields)])


class SchemaCatalog(Mapping[str, SchemaTable]):
    """All the tables declared in a relations file, indexed by name."""

    def __init__(self, tables: Iterable[SchemaTable] = ()) -> None:
        self._tables: dict[str, SchemaTable] = {}
        for table in tables:
            self._tables[table.name] = table

    @classmethod
    def parse(
        cls, lines: str | Iterable[str], filename: str | None = None
    ) -> SchemaCatalog:
        """Parse the text of a relations file.

        ``lines`` may be the whole text or any iterable of lines.
        """
        if isinstance(lines, str):
            lines = lines.splitlines()

        catalog = cls()
        table: SchemaTable | None = None
        header_line = 0

        def close_table() -> None:
            if table is not None and len(table) == 0:
                raise InvalidRelationsFile(filename, header_line, f"{table.name}:")

        for i, raw in enumerate(lines, start=1):
            # Remove comments and surrounding whitespace.
            line = _COMMENT_RE.sub("", raw).strip()
            if table is not None:
                if not line:
                    close_table()
                    table = None
                    continue
                match = _FIELD_RE.fullmatch(line)
                if match is None:
                    raise InvalidRelationsFile(filename, i, raw.rstrip("\r\n"))
                label, type_, key, partial = match.groups()
                try:
                    table.add_field(Field(label, type_, key is not None, partial is not None))
                except ValueError as e:
                    raise InvalidRelationsFile(filename, i, raw.rstrip("\r\n")) from e
            else:
                if not line:
                    continue
                match = _TABLE_RE.fullmatch(line)
                if match is None or match.group(1) in catalog:
                    raise InvalidRelationsFile(filename, i, raw.rstrip("\r\n"))
                table = SchemaTable(match.group(1))
                catalog._tables[table.name] = table
                header_line = i
        close_table()
        return catalog

    @classmethod
    def from_directory(cls, directory: str | PathLike[str]) -> SchemaCatalog:
        """Read the relations file of a profile directory."""
        path = Path(directory) / RELATIONS_FILENAME
        try:
            with path.open(encoding="utf-8") as f:
                return cls.parse(f, filename=str(path))
        except FileNotFoundError as e:
            raise MissingRelationsFile(directory) from e
        except (OSError, UnicodeDecodeError) as e:
            raise UnreadableFile(path, str(e)) from e

    @override
    def __getitem__(self, name: str) -> SchemaTable:
        return self._tables[name]

    @override
    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    @override
    def __len__(self) -> int:
        return len(self._tables)

    @override
    def __str__(self) -> str:
        return "\n\n".join(str(t) for t in self._tables.values())


@dataclass(frozen=True)
class Statistics:
    """Mean, standard deviation and range of a set of numbers."""

    mean: float
    sdev: float
    range: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.mean, self.sdev, self.range)

    @classmethod
    def from_values(cls, values: list[float]) -> Statistics:
        """Compute statistics; the standard deviation is the sample one."""
        n = len(values)
        mean = sum(values) / n
        sdev = math.sqrt(sum((x - mean) ** 2 for x in values) / max(n - 1, 1))
        return cls(mean, sdev, max(values) - min(values))


class ProfileTable:
    """A data table in a profile.

    Iterating decodes the records lazily.  Every iteration re-opens the
    backing file, so the table can be traversed any number of times.
    """

    def __init__(
        self, directory: str | PathLike[str], name: str, schema: SchemaTable
    ) -> None:
        self.directory = Path(directory)
        self.name = name
        self.schema = schema
        # The data file may be gzipped.
        path = self.directory / name
        gz_path = self.directory / f"{name}.gz"
        if path.is_file():
            self.path = path
        elif gz_path.is_file():
            self.path = gz_path
        else:
            raise MissingDataFile(name, self.directory)

    @property
    def compressed(self) -> bool:
        return self.path.suffix == ".gz"

    def __iter__(self) -> Iterator[Record]:
        try:
            if self.compressed:
                f = gzip.open(self.path, "rt", encoding="utf-8")
            else:
                f = self.path.open(encoding="utf-8")
            with f:
                for line in f:
                    yield self.schema.decode(line.strip())
        except (OSError, EOFError, UnicodeDecodeError, zlib.error) as e:
            # gzip.BadGzipFile is an OSError; a truncated stream is an EOFError.
            raise UnreadableFile(self.path, str(e)) from e

    @override
    def __repr__(self) -> str:
        return f"ProfileTable({self.name}) in {self.directory}"


class Profile:
    """A TSDB profile directory."""

    def __init__(
        self,
        directory: str | PathLike[str],
        logger: logging.Logger | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.logger = logger or logging.getLogger(__name__)
        self.catalog = SchemaCatalog.from_directory(self.directory)

    @override
    def __repr__(self) -> str:
        return f"Profile({self.directory})"

    def tables(self) -> list[str]:
        """Names of all the tables declared in the relations file."""
        return list(self.catalog)

    def open_table(self, name: str) -> ProfileTable:
        """Open the data file of a table."""
        if name not in self.catalog:
            raise UnknownTable(name, self.directory)
        return ProfileTable(self.directory, name, self.catalog[name])

    def __getitem__(self, name: str) -> ProfileTable:
        return self.open_table(name)

    def statistics(self, table: str, field: str) -> Statistics:
        """Statistics for the numeric values of ``field`` in ``table``."""
        values: list[float] = []
        for record in self.open_table(table):
            value = record.get(field)
            try:
                values.append(float(value))  # type: ignore[arg-type]
            except (TypeError, ValueError) as e:
                raise InvalidDataValue(table, field, value) from e
        if not values:
            raise EmptyDataFile(table, self.directory)
        self.logger.debug("Read %d '%s' values from %s", len(values), field, self)
        return Statistics.from_values(values)
