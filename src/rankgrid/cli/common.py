# Copyright (c) Syntropy Systems
"""Helpers shared by the rankgrid commands."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NoReturn

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from rankgrid.config import RankgridConfig
from rankgrid.models.experiment import ExperimentFile, load_ranges

if TYPE_CHECKING:
    from pathlib import Path

    from rankgrid.experiment import GridExperiment

console = Console()


def fail(message: str, cause: BaseException | None = None) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1) from cause


def get_config(ctx: typer.Context) -> RankgridConfig:
    """The configuration loaded by the main callback."""
    if isinstance(ctx.obj, RankgridConfig):
        return ctx.obj
    return RankgridConfig()


def load_experiment(ctx: typer.Context, experiment_file: Path) -> GridExperiment:
    """Load an experiment file and gather its results."""
    config = get_config(ctx)
    try:
        definition = ExperimentFile.load(experiment_file)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        fail(f"Cannot read experiment file {experiment_file}: {e}", e)
    try:
        return definition.to_experiment(
            result_table=config.result_table,
            result_field=config.result_field,
            logger=logging.getLogger("rankgrid.experiment"),
        )
    except (OSError, ValueError) as e:
        fail(str(e), e)


def apply_filter(experiment: GridExperiment, filter_file: Path | None) -> GridExperiment:
    """Restrict an experiment to the ranges in a YAML filter file."""
    if filter_file is None:
        return experiment
    try:
        filter_ranges = load_ranges(filter_file)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        fail(f"Cannot read filter file {filter_file}: {e}", e)
    return experiment.filtered(filter_ranges)
