# Copyright (c) Syntropy Systems
"""Main CLI entry point for rankgrid."""
from __future__ import annotations

import typer

from rankgrid.cli.clean import clean
from rankgrid.cli.common import fail
from rankgrid.cli.create import create
from rankgrid.cli.generate import generate
from rankgrid.cli.results import results
from rankgrid.config import load_config
from rankgrid.logs import configure_logging

app = typer.Typer(
    name="rankgrid",
    help="Manage HPSG parse ranking feature grid experiments.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    ctx: typer.Context,
    logging_level: str | None = typer.Option(
        None,
        "--logging", "-l",
        help="Logging level: debug, info, warning, error (default: error)",
    ),
) -> None:
    """Manage HPSG parse ranking feature grid experiments."""
    config = load_config()
    try:
        _ = configure_logging(logging_level or config.log_level)
    except ValueError as e:
        fail(str(e), e)
    ctx.obj = config


# Register commands
_ = app.command()(create)
_ = app.command()(results)
_ = app.command()(clean)
_ = app.command()(generate)


if __name__ == "__main__":
    app()
