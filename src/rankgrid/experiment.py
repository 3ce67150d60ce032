# Copyright (c) Syntropy Systems
"""Feature grid experiments over a directory of TSDB profiles."""
from __future__ import annotations

import copy
import logging
import shutil
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Union

from typing_extensions import TypeAlias, override

from rankgrid.configuration import ConfigurationKey
from rankgrid.ranges import ParameterRanges
from rankgrid.tsdb import InvalidProfileError, Profile, Statistics

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping
    from os import PathLike

    from rankgrid.models.base import ParameterValue

# Machine learning parameters that are varied inside a single run, so they
# stay together in one generated run descriptor.
KEEP_TOGETHER = ("relative-tolerance", "variance")

# Table and field holding the accuracy of each cross-validation fold.
RESULT_TABLE = "fold"
RESULT_FIELD = "f-accuracy"


class NoProfiles(Exception):
    """No profile directories for an experiment were found."""

    def __init__(self, profile_path: str | PathLike[str], name: str) -> None:
        self.profile_path = Path(profile_path)
        self.name = name
        super().__init__(f"No '{name}' profiles in {self.profile_path}.")


@dataclass(frozen=True)
class Completed:
    """A grid point whose profile yielded statistics."""

    stats: Statistics
    mtime: datetime


@dataclass(frozen=True)
class Failed:
    """A grid point whose profile exists but is unusable."""

    error: InvalidProfileError


Outcome: TypeAlias = Union[Completed, Failed]


class GridExperiment:
    """Parse ranking runs for one corpus over a grid of parameter values.

    Every grid point corresponds to a profile directory named after its
    configuration key.  Results are gathered once, when the experiment is
    created; call :meth:`refresh` to probe the profiles again.  A grid point
    without a profile directory is missing and has no result.
    """

    def __init__(
        self,
        profile_path: str | PathLike[str],
        name: str,
        ranges: ParameterRanges,
        *,
        result_table: str = RESULT_TABLE,
        result_field: str = RESULT_FIELD,
        logger: logging.Logger | None = None,
    ) -> None:
        self.profile_path = Path(profile_path)
        self.name = name
        self.ranges = ranges
        self.result_table = result_table
        self.result_field = result_field
        self.logger = logger or logging.getLogger(__name__)
        self._points: dict[str, ConfigurationKey] = {}
        self._results: dict[ConfigurationKey, Outcome] = {}
        self.refresh()

    @classmethod
    def from_profile_path(
        cls,
        profile_path: str | PathLike[str],
        name: str,
        *,
        result_table: str = RESULT_TABLE,
        result_field: str = RESULT_FIELD,
        logger: logging.Logger | None = None,
    ) -> GridExperiment:
        """Create an experiment from its existing profile directories.

        The ranges are the union of the configurations of every directory
        whose name begins with ``[name]``.
        """
        log = logger or logging.getLogger(__name__)
        keys: list[ConfigurationKey] = []
        prefix = f"[{name}]"
        for path in sorted(Path(profile_path).iterdir()):
            if not path.is_dir() or not path.name.startswith(prefix):
                continue
            log.debug("Found profile %s", path)
            try:
                keys.append(ConfigurationKey.parse(path.name))
            except ValueError:
                log.error("%s is not a profile directory name", path)
                raise
        if not keys:
            raise NoProfiles(profile_path, name)
        return cls(
            profile_path,
            name,
            merge_configurations(keys),
            result_table=result_table,
            result_field=result_field,
            logger=logger,
        )

    @property
    def results(self) -> Mapping[ConfigurationKey, Outcome]:
        return MappingProxyType(self._results)

    def profile_directory(self, key: ConfigurationKey) -> Path:
        return self.profile_path / key.to_string()

    def grid_points(self) -> Iterator[ConfigurationKey]:
        """The configuration key of every point in the grid."""
        return iter(self._points.values())

    def grid_size(self) -> int:
        """The number of distinct profile directories in the grid."""
        return len(self._points)

    def _enumerate_points(self) -> dict[str, ConfigurationKey]:
        points: dict[str, ConfigurationKey] = {}
        for combination in self.ranges.each_value_combination():
            key = ConfigurationKey.from_ranges(self.name, combination)
            # Points differing only in parameters the name omits share a profile.
            _ = points.setdefault(key.to_string(), key)
        return points

    def refresh(self) -> None:
        """Probe the profile directory of every grid point again."""
        self._points = self._enumerate_points()
        results: dict[ConfigurationKey, Outcome] = {}
        for key in self.grid_points():
            outcome = self._probe(key)
            if outcome is not None:
                results[key] = outcome
        self._results = results

    def _probe(self, key: ConfigurationKey) -> Outcome | None:
        path = self.profile_directory(key)
        self.logger.debug("Gathering results from %s", path)
        if not path.is_dir():
            return None
        try:
            stats = Profile(path, logger=self.logger).statistics(
                self.result_table, self.result_field
            )
        except InvalidProfileError as e:
            self.logger.info("Failed profile %s: %s", path, e.short_message)
            return Failed(e)
        mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return Completed(stats, mtime)

    def _key(self, key: ConfigurationKey | str) -> ConfigurationKey:
        if not isinstance(key, str):
            return key
        # Grid points are looked up by profile name.
        point = self._points.get(key)
        return point if point is not None else ConfigurationKey.parse(key)

    def outcome(self, key: ConfigurationKey | str) -> Outcome:
        """The result of a grid point; KeyError if it is missing."""
        return self._results[self._key(key)]

    def __getitem__(self, key: ConfigurationKey | str) -> Outcome:
        return self.outcome(key)

    def has_result(self, key: ConfigurationKey | str) -> bool:
        return self._key(key) in self._results

    def completed(self) -> list[ConfigurationKey]:
        return [k for k, v in self._results.items() if isinstance(v, Completed)]

    def failed(self) -> list[ConfigurationKey]:
        return [k for k, v in self._results.items() if isinstance(v, Failed)]

    def missing(self) -> list[ConfigurationKey]:
        return [k for k in self.grid_points() if k not in self._results]

    def variable_parameters(self) -> list[str]:
        """Parameters that take on more than one value in this experiment."""
        return self.ranges.multivalue_parameters()

    def filtered(
        self, filter_ranges: Mapping[str, Iterable[ParameterValue]]
    ) -> GridExperiment:
        """A copy of this experiment restricted to ``filter_ranges``.

        The copy's results are those of this experiment that lie inside the
        filtered grid; nothing is probed again.
        """
        self.logger.debug("Filter experiment with:\n%s", filter_ranges)
        experiment = copy.copy(self)
        experiment.ranges = self.ranges.filtered(filter_ranges)
        experiment._points = experiment._enumerate_points()
        experiment._results = {
            key: self._results[key]
            for key in experiment.grid_points()
            if key in self._results
        }
        return experiment

    def incomplete_points(
        self, keep_together: Iterable[str] = KEEP_TOGETHER
    ) -> Iterator[ParameterRanges]:
        """Parameter ranges covering all the missing and failed grid points.

        The incomplete configurations are merged into one set of ranges and
        split again by :meth:`ParameterRanges.each_value_combination`, so
        the ``keep_together`` parameters end up bundled in each yield.
        Names in ``keep_together`` that the incomplete points lack are
        ignored.
        """
        incomplete = self.missing() + self.failed()
        for key in incomplete:
            self.logger.debug("Incomplete experiment %s", key)
        if not incomplete:
            return iter(())
        ranges = merge_configurations(incomplete)
        together = [p for p in keep_together if p in ranges]
        return ranges.each_value_combination(together)

    def delete_failed(
        self, remove: Callable[[Path], object] = shutil.rmtree
    ) -> list[ConfigurationKey]:
        """Delete the profile directories of all failed grid points.

        ``remove`` is called with each directory.  The failed points become
        missing.  Returns their keys.
        """
        deleted = self.failed()
        for key in deleted:
            path = self.profile_directory(key)
            self.logger.info("Delete %s", path)
            _ = remove(path)
            del self._results[key]
        return deleted

    def summary(self) -> str:
        """Name, number of grid points and how many of them are done."""
        return (
            f"Feature Grid: {self.name}\n"
            f"{self.grid_size()} grid points: "
            f"{len(self.completed())} completed, {len(self.missing())} missing, "
            f"{len(self.failed())} failed"
        )

    @override
    def __str__(self) -> str:
        return f"{self.summary()}\n{self.ranges}"

    @override
    def __repr__(self) -> str:
        return f"GridExperiment({self.name!r}, {str(self.profile_path)!r})"


def merge_configurations(keys: Iterable[ConfigurationKey]) -> ParameterRanges:
    """Union the parameter values of several configurations."""
    ranges = ParameterRanges()
    for key in keys:
        ranges = ranges.union(key.to_ranges())
    return ranges


def experiments_from_directory(
    profile_path: str | PathLike[str],
    *,
    logger: logging.Logger | None = None,
) -> list[GridExperiment]:
    """One experiment for every experiment name among the profiles in a directory.

    Subdirectories whose names are not profile names are ignored.
    """
    log = logger or logging.getLogger(__name__)
    keys_by_name: defaultdict[str, list[ConfigurationKey]] = defaultdict(list)
    for path in sorted(Path(profile_path).iterdir()):
        if not path.is_dir():
            continue
        try:
            key = ConfigurationKey.parse(path.name)
        except ValueError:
            log.debug("Skipping %s", path)
            continue
        keys_by_name[key.name].append(key)
    return [
        GridExperiment(profile_path, name, merge_configurations(keys), logger=logger)
        for name, keys in keys_by_name.items()
    ]
