from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..embeddings.provider import EmbeddingProvider
from ..errors import ConfigurationError, ProviderRejected
from ..tags.aggregator import TagAggregator
from ..tags.models import Tag
from .vector_math import affinity, average, zero_vector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreResult:
    restaurant_id: str
    score: float
    tag_count: int


class AmbianceScorer:
    """Scores restaurants by how close their tags sit to an ideal tag profile.

    The ideal vector is computed once per run with
    :meth:`compute_ideal_vector` and passed to every
    :meth:`score_restaurant` call. Restaurants with no tags in the category
    score exactly 0 and never reach the embedding provider.
    """

    def __init__(self, aggregator: TagAggregator, provider: EmbeddingProvider) -> None:
        self._aggregator = aggregator
        self._provider = provider

    @property
    def dimension(self) -> int:
        return self._provider.dimension

    def check_ready(self) -> None:
        self._provider.check_ready()

    async def compute_ideal_vector(self, reference_tags: Sequence[str]) -> np.ndarray:
        reference_tags = [t for t in reference_tags if t.strip()]
        if not reference_tags:
            raise ConfigurationError("ideal profile has no reference tags")

        logger.info(
            "Generating ideal vector from %d tags: %s",
            len(reference_tags),
            ", ".join(reference_tags),
        )
        vectors = await self._provider.embed_batch(reference_tags)
        if len(vectors) != len(reference_tags):
            raise ProviderRejected(
                f"provider returned {len(vectors)} embeddings for {len(reference_tags)} reference tags"
            )
        return average(vectors, self.dimension)

    async def vector_for_tags(self, tags: Sequence[Tag]) -> np.ndarray:
        """Average embedding of the tag values; a zero vector when there are none."""
        if not tags:
            return zero_vector(self.dimension)
        vectors = await self._provider.embed_batch([tag.value for tag in tags])
        if len(vectors) != len(tags):
            raise ProviderRejected(f"provider returned {len(vectors)} embeddings for {len(tags)} tags")
        return average(vectors, self.dimension)

    async def restaurant_vector(self, restaurant_id: str, category: str) -> np.ndarray:
        tags = await self._aggregator.aggregate_tags(restaurant_id, category)
        return await self.vector_for_tags(tags)

    async def evaluate(self, restaurant_id: str, category: str, ideal_vector: np.ndarray) -> ScoreResult:
        tags = await self._aggregator.aggregate_tags(restaurant_id, category)
        if not tags:
            return ScoreResult(restaurant_id=restaurant_id, score=0.0, tag_count=0)

        vector = await self.vector_for_tags(tags)
        score = affinity(ideal_vector, vector)
        logger.debug("Restaurant %s scored %.4f from %d tags", restaurant_id, score, len(tags))
        return ScoreResult(restaurant_id=restaurant_id, score=score, tag_count=len(tags))

    async def score_restaurant(self, restaurant_id: str, category: str, ideal_vector: np.ndarray) -> float:
        """Affinity in [0, 1] between the restaurant's tags and ``ideal_vector``."""
        return (await self.evaluate(restaurant_id, category, ideal_vector)).score
