"""Pydantic models validating user-supplied duplicate detection parameters."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class DuplicateQuery(BaseModel):
    mode: Literal["single", "batch", "clusters"] = Field(
        "single",
        description="single: one place vs the rest; batch: every place; clusters: grouped duplicates",
    )
    place_id: str | None = Field(
        None,
        description="Target place id (required for single mode)",
    )
    limit: int = Field(
        100,
        ge=1,
        le=1000,
        description="Maximum number of places loaded from the input",
    )
    min_confidence: float = Field(
        0.6,
        ge=0.0,
        le=1.0,
        description="Minimum match confidence reported (and admitted into clusters)",
    )
    name_threshold: float | None = Field(
        None,
        ge=0.0,
        le=1.0,
        description="Override the configured name-similarity acceptance threshold",
    )
    location_threshold_km: float | None = Field(
        None,
        gt=0.0,
        le=50.0,
        description="Override the configured location proximity radius (km)",
    )
    strategy: Literal["indexed", "baseline"] = Field(
        "indexed",
        description="Batch strategy: indexed candidate narrowing or full pairwise scan",
    )
    include_reasoning: bool = Field(
        True,
        description="Include reasoning phrases and full place records in the report",
    )

