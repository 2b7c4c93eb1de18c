from __future__ import annotations

import logging
from typing import Protocol, Sequence

import numpy as np

from ..errors import NotFound
from ..scoring.ambiance import AmbianceScorer
from ..tags.aggregator import TagAggregator, dedupe_tags
from ..tags.models import Tag
from .models import RankedItem, VectorCandidate
from .ranker import rank_by_similarity

logger = logging.getLogger(__name__)


class SwipeSource(Protocol):
    async def liked_restaurant_ids(self, user_id: str) -> list[str]:
        """Restaurants the user swiped LIKE or SUPERLIKE on, oldest first."""
        ...


class UserVectorBuilder:
    """Builds a user's taste vector from the tags of restaurants they liked.

    The vector lives in the same space as restaurant vectors (one category,
    same embedding model), so the two can be compared with cosine affinity.
    """

    def __init__(self, swipes: SwipeSource, aggregator: TagAggregator, scorer: AmbianceScorer) -> None:
        self._swipes = swipes
        self._aggregator = aggregator
        self._scorer = scorer

    async def liked_tags(self, user_id: str, category: str) -> list[Tag]:
        tags: list[Tag] = []
        for restaurant_id in await self._swipes.liked_restaurant_ids(user_id):
            try:
                tags.extend(await self._aggregator.aggregate_tags(restaurant_id, category))
            except NotFound:
                logger.warning("User %s liked missing restaurant %s, ignoring", user_id, restaurant_id)
        return dedupe_tags(tags)

    async def build(self, user_id: str, category: str) -> np.ndarray:
        """Zero vector when the user has no positive swipes with tags in ``category``."""
        return await self._scorer.vector_for_tags(await self.liked_tags(user_id, category))


async def rank_for_user(
    builder: UserVectorBuilder,
    scorer: AmbianceScorer,
    user_id: str,
    category: str,
    restaurant_ids: Sequence[str],
    limit: int | None = None,
) -> list[RankedItem]:
    """Rank ``restaurant_ids`` by affinity to the user's swipe-derived vector."""
    user_vector = await builder.build(user_id, category)
    candidates = [
        VectorCandidate(
            id=restaurant_id,
            vector=(await scorer.restaurant_vector(restaurant_id, category)).tolist(),
        )
        for restaurant_id in restaurant_ids
    ]
    return rank_by_similarity(user_vector, candidates, limit)
