# Copyright (c) Syntropy Systems
"""rankgrid clean command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from rankgrid.cli.common import console, fail, load_experiment


def clean(
    ctx: typer.Context,
    experiment_file: Path = typer.Argument(
        ...,
        help="Experiment YAML file written by 'rankgrid create'",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Delete the profile directories of all failed runs.

    The deleted runs show up as missing afterwards and will be included
    by 'rankgrid generate'.
    """
    experiment = load_experiment(ctx, experiment_file)

    try:
        deleted = experiment.delete_failed()
    except OSError as e:
        fail(f"Cannot delete profile: {e}", e)

    if not deleted:
        console.print("[dim]No failed profiles[/dim]")
        return

    for key in deleted:
        console.print(f"  [dim]deleted:[/dim] {escape(str(key))}")
    console.print(f"[green]Deleted {len(deleted)} failed profiles[/green]")
