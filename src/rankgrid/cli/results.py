# Copyright (c) Syntropy Systems
"""rankgrid results command."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.markup import escape
from rich.table import Table

from rankgrid.cli.common import apply_filter, console, load_experiment
from rankgrid.experiment import Completed, Failed
from rankgrid.models.experiment import ExperimentFile

if TYPE_CHECKING:
    from rankgrid.experiment import GridExperiment


class Display(str, Enum):
    """Output formats for experiment results."""

    summary = "summary"
    details = "details"
    yaml = "yaml"


def results(
    ctx: typer.Context,
    experiment_file: Path = typer.Argument(
        ...,
        help="Experiment YAML file written by 'rankgrid create'",
        exists=True,
        dir_okay=False,
    ),
    display: Display = typer.Option(
        Display.summary,
        "--display", "-d",
        help="Output format",
        case_sensitive=False,
    ),
    filter_file: Path | None = typer.Option(
        None,
        "--filter", "-f",
        help="YAML parameter ranges restricting the results shown",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Show the current results of an experiment.

    The details format lists completed runs by descending mean accuracy,
    followed by the failed and missing runs.
    """
    experiment = apply_filter(load_experiment(ctx, experiment_file), filter_file)

    if display == Display.yaml:
        typer.echo(ExperimentFile.from_experiment(experiment).dump_yaml(), nl=False)
    elif display == Display.details:
        _show_details(experiment)
    else:
        console.print(str(experiment), markup=False, highlight=False)


def _show_details(experiment: GridExperiment) -> None:
    """Display completed, failed and missing runs in tables."""
    console.print(experiment.summary(), markup=False, highlight=False)

    completed = sorted(
        ((key, outcome) for key, outcome in experiment.results.items()
         if isinstance(outcome, Completed)),
        key=lambda item: (-item[1].stats.mean, str(item[0])),
    )
    table = Table(title="Completed Experiments", show_header=True, header_style="bold")
    table.add_column("Mean", justify="right")
    table.add_column("Sdev", justify="right")
    table.add_column("Range", justify="right")
    table.add_column("Profile")
    table.add_column("Modified", style="dim")
    for key, outcome in completed:
        stats = outcome.stats
        table.add_row(
            f"{stats.mean:.4f}",
            f"{stats.sdev:.4f}",
            f"{stats.range:.4f}",
            escape(str(key)),
            outcome.mtime.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)

    table = Table(title="Failed Experiments", show_header=True, header_style="bold")
    table.add_column("Profile")
    table.add_column("Reason", style="red")
    failed = sorted(
        ((key, outcome) for key, outcome in experiment.results.items()
         if isinstance(outcome, Failed)),
        key=lambda item: str(item[0]),
    )
    for key, outcome in failed:
        table.add_row(escape(str(key)), escape(outcome.error.short_message))
    console.print(table)

    table = Table(title="Missing Experiments", show_header=True, header_style="bold")
    table.add_column("Profile")
    for key in sorted(experiment.missing(), key=str):
        table.add_row(escape(str(key)))
    console.print(table)
