# Copyright (c) Syntropy Systems
"""rankgrid generate command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from rankgrid.cli.common import apply_filter, console, fail, get_config, load_experiment
from rankgrid.lisp import write_experiment_files


def generate(
    ctx: typer.Context,
    experiment_file: Path = typer.Argument(
        ...,
        help="Experiment YAML file written by 'rankgrid create'",
        exists=True,
        dir_okay=False,
    ),
    prefix: str | None = typer.Option(
        None,
        "--prefix", "-p",
        help="Prefix for the generated lisp file names",
    ),
    lisp_dir: Path | None = typer.Option(
        None,
        "--lisp-dir", "-o",
        help="Directory for the lisp files (default: the profile path)",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
    filter_file: Path | None = typer.Option(
        None,
        "--filter", "-f",
        help="YAML parameter ranges restricting the files generated",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Generate lisp files that run the missing and failed experiments.

    A master list of the generated files is written next to them.

    Example:
        rankgrid generate jhpstg.yaml --prefix retry --lisp-dir lisp/

    """
    config = get_config(ctx)
    experiment = apply_filter(load_experiment(ctx, experiment_file), filter_file)

    try:
        written, master_list = write_experiment_files(
            experiment,
            directory=lisp_dir,
            prefix=prefix,
            keep_together=config.keep_together,
        )
    except OSError as e:
        fail(f"Cannot write lisp files: {e}", e)

    console.print(
        f"[green]Generated {len(written)} lisp files.[/green] "
        f"Master list in {escape(str(master_list))}."
    )
