from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    source: str = "manual"


class RestaurantRecord(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    tag_ids: list[str] = Field(default_factory=list)
    scores: dict[str, float] = Field(
        default_factory=dict,
        description='Persisted score fields, e.g. {"ambianceScore": 0.81}',
    )


class ImageRecord(BaseModel):
    id: str = Field(..., min_length=1)
    restaurant_id: str = Field(..., min_length=1)
    url: str = ""
    tag_ids: list[str] = Field(default_factory=list)


class ReviewRecord(BaseModel):
    id: str = Field(..., min_length=1)
    restaurant_id: str = Field(..., min_length=1)
    text: str = ""
    tag_ids: list[str] = Field(default_factory=list)


class SwipeDecision(str, Enum):
    LIKE = "LIKE"
    PASS = "PASS"
    SUPERLIKE = "SUPERLIKE"


POSITIVE_DECISIONS = frozenset({SwipeDecision.LIKE, SwipeDecision.SUPERLIKE})


class Swipe(BaseModel):
    user_id: str = Field(..., min_length=1)
    restaurant_id: str = Field(..., min_length=1)
    decision: SwipeDecision


class Snapshot(BaseModel):
    """Serialisable copy of everything the in-memory store holds."""

    categories: list[str] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    restaurants: list[RestaurantRecord] = Field(default_factory=list)
    images: list[ImageRecord] = Field(default_factory=list)
    reviews: list[ReviewRecord] = Field(default_factory=list)
    swipes: list[Swipe] = Field(default_factory=list)


@dataclass(frozen=True)
class TagPaths:
    """Tags of one category reachable from a restaurant, grouped by path."""

    direct: list[Tag] = field(default_factory=list)
    images: list[Tag] = field(default_factory=list)
    reviews: list[Tag] = field(default_factory=list)

    def chained(self) -> list[Tag]:
        return [*self.direct, *self.images, *self.reviews]
