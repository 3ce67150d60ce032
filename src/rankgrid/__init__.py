"""
rankgrid - Feature grid experiments for parse ranking.

Track which parameter combinations have run, read their TSDB profiles,
and generate the runs that are still missing.
"""

from rankgrid.configuration import ConfigurationKey
from rankgrid.experiment import Completed, Failed, GridExperiment, NoProfiles
from rankgrid.ranges import ParameterRanges
from rankgrid.tsdb import Profile, SchemaCatalog, SchemaTable, Statistics

__version__ = "1.0.1"
__all__ = [
    "Completed",
    "ConfigurationKey",
    "Failed",
    "GridExperiment",
    "NoProfiles",
    "ParameterRanges",
    "Profile",
    "SchemaCatalog",
    "SchemaTable",
    "Statistics",
    "__version__",
]
