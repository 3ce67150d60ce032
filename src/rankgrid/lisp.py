# Copyright (c) Syntropy Systems
"""Lisp command files that run the incomplete points of an experiment."""
from __future__ import annotations

import logging
from pathlib import Path
from string import Template
from typing import TYPE_CHECKING

from rankgrid.experiment import KEEP_TOGETHER

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from os import PathLike

    from rankgrid.experiment import GridExperiment
    from rankgrid.ranges import ParameterRanges

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = """\
; $filename.lisp

(in-package :tsdb)

(load "parsing.lisp")

(batch-experiment
$lisp_parameters)
"""


def experiment_filename(experiment: GridExperiment, ranges: ParameterRanges) -> str:
    """Name a command file after the values of the experiment's variable parameters."""
    fragment = ranges.to_filename_fragment(experiment.variable_parameters())
    return f"{experiment.name}.{fragment}" if fragment else experiment.name


def lisp_parameters(experiment: GridExperiment, ranges: ParameterRanges) -> str:
    lines = [f':{p} "{experiment.name}"' for p in ("source", "skeleton", "prefix")]
    lines.append(":type :mem")
    lisp = ranges.to_lisp()
    if lisp:
        lines.append(lisp)
    return "\n".join(lines)


def incomplete_experiment_files(
    experiment: GridExperiment,
    template: str = DEFAULT_TEMPLATE,
    keep_together: Iterable[str] = KEEP_TOGETHER,
) -> Iterator[tuple[str, str]]:
    """Yield a filename stem and Lisp source for each incomplete point group.

    ``template`` is a :class:`string.Template` with ``$filename`` and
    ``$lisp_parameters`` placeholders.
    """
    compiled = Template(template)
    for ranges in experiment.incomplete_points(keep_together):
        filename = experiment_filename(experiment, ranges)
        yield filename, compiled.substitute(
            filename=filename,
            lisp_parameters=lisp_parameters(experiment, ranges),
        )


def write_experiment_files(
    experiment: GridExperiment,
    directory: str | PathLike[str] | None = None,
    prefix: str | None = None,
    template: str = DEFAULT_TEMPLATE,
    keep_together: Iterable[str] = KEEP_TOGETHER,
) -> tuple[list[Path], Path]:
    """Write the command files and a master list of them.

    Files go to ``directory``, the experiment's profile path by default.
    Returns the written files and the master list.
    """
    target = Path(directory) if directory is not None else experiment.profile_path
    written: list[Path] = []
    for filename, source in incomplete_experiment_files(
        experiment, template, keep_together
    ):
        if prefix is not None:
            filename = f"{prefix}.{filename}"
        path = target / f"{filename}.lisp"
        _ = path.write_text(source)
        logger.debug("Wrote %s", path)
        written.append(path)

    master_name = f"{experiment.name}.files"
    if prefix is not None:
        master_name = f"{prefix}.{master_name}"
    master_list = target / master_name
    _ = master_list.write_text("".join(f"{path}\n" for path in written))
    return written, master_list
