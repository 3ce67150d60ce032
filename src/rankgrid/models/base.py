# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for rankgrid."""

from __future__ import annotations

from typing import ClassVar, Union

from pydantic import BaseModel, ConfigDict
from typing_extensions import TypeAlias

ParameterValue: TypeAlias = Union[bool, int, float, str, None]


class RankgridBaseModel(BaseModel):
    """Base model with shared config for rankgrid schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )
