# Copyright (c) Syntropy Systems
"""rankgrid create command."""
from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from rankgrid.cli.common import fail, get_config
from rankgrid.experiment import GridExperiment, NoProfiles
from rankgrid.models.experiment import ExperimentFile, dump_ranges, load_ranges


def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Experiment name, e.g. jhpstg"),
    profile_path: Path = typer.Argument(
        Path(),
        help="Directory containing the profiles (default: current directory)",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
    ranges_file: Path | None = typer.Argument(
        None,
        help="YAML parameter ranges (default: taken from the existing profiles)",
        exists=True,
        dir_okay=False,
    ),
    ranges_output: Path | None = typer.Option(
        None,
        "--ranges-output", "-r",
        help="Also write the experiment's ranges to this YAML file",
    ),
) -> None:
    """Create a feature grid experiment and print it as YAML.

    Without RANGES_FILE the parameter ranges are the union of the
    configurations of the profiles named [NAME] in PROFILE_PATH.

    Example:
        rankgrid create jhpstg profiles/ > jhpstg.yaml

    """
    config = get_config(ctx)
    logger = logging.getLogger("rankgrid.experiment")

    if ranges_file is None:
        try:
            experiment = GridExperiment.from_profile_path(
                profile_path,
                name,
                result_table=config.result_table,
                result_field=config.result_field,
                logger=logger,
            )
        except (NoProfiles, ValueError) as e:
            fail(str(e), e)
    else:
        try:
            ranges = load_ranges(ranges_file)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            fail(f"Cannot read ranges file {ranges_file}: {e}", e)
        experiment = GridExperiment(
            profile_path,
            name,
            ranges,
            result_table=config.result_table,
            result_field=config.result_field,
            logger=logger,
        )

    if ranges_output is not None:
        _ = ranges_output.write_text(dump_ranges(experiment.ranges))

    typer.echo(ExperimentFile.from_experiment(experiment).dump_yaml(), nl=False)
