# Copyright (c) Syntropy Systems
"""Pytest fixtures for rankgrid tests."""

import gzip
import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from rankgrid.configuration import ConfigurationKey
from rankgrid.ranges import ParameterRanges

# Store original cwd at module load time
_original_cwd = Path.cwd()

FOLD_RELATIONS = """\
# Cross-validation results.
fold:
  f-id :integer :key
  f-accuracy :string
"""

GRID_NAME = "test"
GRID_RANGES = {"grandparenting": [1, 2], "ngram-size": [3, 4]}

ProfileBuilder = Callable[..., Path]


def grid_key(grandparenting: int, ngram_size: int) -> ConfigurationKey:
    """Key of one point of the test grid."""
    return ConfigurationKey(
        GRID_NAME, {"grandparenting": grandparenting, "ngram-size": ngram_size}
    )


def write_profile(
    directory: Path,
    accuracies: list[float] | None = None,
    *,
    relations: str | None = FOLD_RELATIONS,
    compress: bool = False,
) -> Path:
    """Create a profile directory with a fold table.

    ``relations=None`` leaves out the relations file and
    ``accuracies=None`` leaves out the fold data file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    if relations is not None:
        _ = (directory / "relations").write_text(relations)
    if accuracies is not None:
        data = "".join(f"{i}@{a}\n" for i, a in enumerate(accuracies, start=1))
        if compress:
            with gzip.open(directory / "fold.gz", "wt") as f:
                _ = f.write(data)
        else:
            _ = (directory / "fold").write_text(data)
    return directory


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_profile(temp_dir: Path) -> ProfileBuilder:
    """Build profile directories under the temporary directory."""

    def _make(name: str, accuracies: list[float] | None = None, **kwargs: object) -> Path:
        return write_profile(temp_dir / name, accuracies, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def grid_dir(temp_dir: Path) -> Path:
    """A profile directory for a 2x2 grid experiment named 'test'.

    GP 1 NS 3 is completed, GP 1 NS 4 has no relations file, GP 2 NS 3 has
    an empty fold table and GP 2 NS 4 is missing.
    """
    _ = write_profile(temp_dir / str(grid_key(1, 3)), [0.5, 0.6, 0.7])
    _ = write_profile(temp_dir / str(grid_key(1, 4)), [0.5], relations=None)
    _ = write_profile(temp_dir / str(grid_key(2, 3)), [])
    return temp_dir


@pytest.fixture
def grid_ranges() -> ParameterRanges:
    """The ranges of the test grid."""
    return ParameterRanges(GRID_RANGES)


@pytest.fixture
def in_temp_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Run the test from inside the temporary directory."""
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)
