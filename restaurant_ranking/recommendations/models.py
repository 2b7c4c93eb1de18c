from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

MAX_WEIGHT = 100.0

Weight = Annotated[float, Field(ge=0.0, le=MAX_WEIGHT, allow_inf_nan=False)]

Component = Annotated[float, Field(allow_inf_nan=False)]


class ScoredCandidate(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    scores: dict[str, float | None] = Field(
        default_factory=dict,
        description='Normalized [0, 1] dimension scores, e.g. {"ambiance": 0.8}',
    )


class VectorCandidate(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    vector: list[Component] = Field(..., min_length=1)


class WeightedRankRequest(BaseModel):
    weights: dict[str, Weight] = Field(
        ..., description='Relative importance per dimension, e.g. {"ambiance": 70, "foodQuality": 30}'
    )
    candidates: list[ScoredCandidate]
    limit: int | None = Field(default=None, ge=1, le=500)


class SimilarityRankRequest(BaseModel):
    user_vector: list[Component] = Field(..., min_length=1)
    candidates: list[VectorCandidate]
    limit: int | None = Field(default=None, ge=1, le=500)


class RankedItem(BaseModel):
    id: str
    name: str = ""
    score: float
    breakdown: dict[str, float] | None = None


class RankResponse(BaseModel):
    mode: Literal["weighted", "similarity"]
    ranked: list[RankedItem]
    total_candidates: int
