# Copyright (c) Syntropy Systems
"""Configuration management for rankgrid."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

import yaml

from rankgrid.experiment import KEEP_TOGETHER, RESULT_FIELD, RESULT_TABLE

CONFIG_FILENAME = ".rankgrid.yaml"


@dataclass
class RankgridConfig:
    """Configuration for rankgrid."""

    # Logging level name used when --logging is not given
    log_level: str = "ERROR"

    # Table and numeric field whose statistics score a profile
    result_table: str = RESULT_TABLE
    result_field: str = RESULT_FIELD

    # Parameters kept together in one generated lisp file
    keep_together: list[str] = field(default_factory=lambda: list(KEEP_TOGETHER))


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest .rankgrid.yaml by walking up from start_path.

    Returns None if there is none.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        config_path = current / CONFIG_FILENAME
        if config_path.is_file():
            return config_path
        current = current.parent

    # Check root
    config_path = current / CONFIG_FILENAME
    if config_path.is_file():
        return config_path

    return None


def get_global_config_path() -> Path:
    """Get the global config file (~/.rankgrid/config.yaml)."""
    return Path.home() / ".rankgrid" / "config.yaml"


def load_config(config_path: Path | None = None) -> RankgridConfig:
    """Load configuration from a YAML file or defaults.

    Looks for config in:
    1. Provided config_path
    2. Nearest .rankgrid.yaml walking up
    3. ~/.rankgrid/config.yaml
    4. Defaults
    """
    config = RankgridConfig()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        global_config = get_global_config_path()
        if global_config.exists():
            config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        log_level = data.get("log_level")
        if isinstance(log_level, str):
            config.log_level = log_level.upper()
        result_table = data.get("result_table")
        if isinstance(result_table, str):
            config.result_table = result_table
        result_field = data.get("result_field")
        if isinstance(result_field, str):
            config.result_field = result_field
        keep_together = data.get("keep_together")
        if isinstance(keep_together, list):
            config.keep_together = [str(p) for p in cast("list[object]", keep_together)]

    return config
