# Copyright (c) Syntropy Systems
"""Pydantic models for experiment and ranges files."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

import yaml
from pydantic import Field, TypeAdapter, field_validator

from rankgrid.experiment import GridExperiment
from rankgrid.ranges import ParameterRanges

from .base import ParameterValue, RankgridBaseModel

if TYPE_CHECKING:
    import logging
    from pathlib import Path

RangesDict = dict[str, list[ParameterValue]]

_RANGES_ADAPTER = TypeAdapter(RangesDict)


def _wrap_scalars(value: object) -> object:
    if not isinstance(value, dict):
        return value
    value_dict = cast("dict[str, object]", value)
    return {
        parameter: values if isinstance(values, list) else [values]
        for parameter, values in value_dict.items()
    }


def parse_ranges(data: object) -> ParameterRanges:
    """Validate a mapping of parameter to value list (or single value)."""
    if data is None:
        data = {}
    return ParameterRanges(_RANGES_ADAPTER.validate_python(_wrap_scalars(data)))


def load_ranges(path: Path) -> ParameterRanges:
    """Load parameter ranges from a YAML file."""
    with path.open() as f:
        return parse_ranges(yaml.safe_load(f))


def dump_ranges(ranges: ParameterRanges) -> str:
    return yaml.safe_dump(ranges.to_dict(), default_flow_style=None, sort_keys=False)


class ExperimentFile(RankgridBaseModel):
    """A serialized grid experiment.

    Only the definition of the experiment is stored.  Results are gathered
    from the profiles whenever the experiment is loaded.
    """

    name: str
    profile_path: str
    ranges: RangesDict = Field(default_factory=dict)

    @field_validator("ranges", mode="before")
    @classmethod
    def _coerce_ranges(cls, value: object) -> object:
        if value is None:
            return {}
        return _wrap_scalars(value)

    @classmethod
    def from_experiment(cls, experiment: GridExperiment) -> ExperimentFile:
        return cls(
            name=experiment.name,
            profile_path=str(experiment.profile_path),
            ranges=experiment.ranges.to_dict(),
        )

    @classmethod
    def load(cls, path: Path) -> ExperimentFile:
        """Load an experiment file from YAML."""
        with path.open() as f:
            data = cast("object", yaml.safe_load(f))
        return cls.model_validate(data)

    def dump_yaml(self) -> str:
        return yaml.safe_dump(
            self.model_dump(mode="python"),
            default_flow_style=None,
            sort_keys=False,
        )

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(self.dump_yaml())

    def to_experiment(
        self,
        *,
        result_table: str | None = None,
        result_field: str | None = None,
        logger: logging.Logger | None = None,
    ) -> GridExperiment:
        """Recreate the experiment, probing its profiles."""
        kwargs: dict[str, str] = {}
        if result_table is not None:
            kwargs["result_table"] = result_table
        if result_field is not None:
            kwargs["result_field"] = result_field
        return GridExperiment(
            self.profile_path,
            self.name,
            ParameterRanges(self.ranges),
            logger=logger,
            **kwargs,
        )
