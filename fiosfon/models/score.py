"""Pydantic model for the derived data collection intensity score."""

from __future__ import annotations

from typing import Literal

import pydantic

Band = Literal["Low", "Medium", "High"]


class IntensityScore(pydantic.BaseModel):
    """A 0–100 intensity score with its band.

    Derived on demand from a record; never persisted.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    score: int = pydantic.Field(ge=0, le=100)
    band: Band
    parts: dict[str, float] = pydantic.Field(default_factory=dict)
