from __future__ import annotations

import math
from typing import Mapping, Sequence

import numpy as np

from ..errors import DimensionMismatch, InvalidPreference
from ..scoring.vector_math import affinity, affinity_matrix
from .models import MAX_WEIGHT, RankedItem, ScoredCandidate, VectorCandidate


def validate_weights(weights: Mapping[str, float]) -> dict[str, float]:
    """Return the weights as floats, rejecting negative, non-finite or oversized values."""
    validated: dict[str, float] = {}
    for name, weight in weights.items():
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise InvalidPreference(f"weight for {name!r} must be a number, got {weight!r}")
        if not math.isfinite(weight) or not 0.0 <= weight <= MAX_WEIGHT:
            raise InvalidPreference(f"weight for {name!r} must be between 0 and {MAX_WEIGHT:g}, got {weight}")
        validated[name] = float(weight)
    return validated


def _score_value(scores: Mapping[str, float | None], name: str) -> float:
    value = scores.get(name)
    if value is None or not math.isfinite(value):
        return 0.0
    return float(value)


def weighted_breakdown(weights: Mapping[str, float], scores: Mapping[str, float | None]) -> dict[str, float]:
    """Per-dimension contribution ``weight * score``; unscored dimensions contribute 0."""
    weights = validate_weights(weights)
    return {name: weight * _score_value(scores, name) for name, weight in weights.items()}


def weighted_score(weights: Mapping[str, float], scores: Mapping[str, float | None]) -> float:
    """Sum of ``weight * score`` over the weight dimensions.

    The result only orders restaurants relative to each other; it is not a
    percentage and has no upper bound beyond what the weights imply.
    """
    return float(sum(weighted_breakdown(weights, scores).values()))


def similarity_score(user_vector: np.ndarray, restaurant_vector: np.ndarray) -> float:
    """Normalized cosine affinity in [0, 1], comparable with other [0, 1] scores."""
    return affinity(user_vector, restaurant_vector)


def _ordered(items: list[RankedItem], limit: int | None) -> list[RankedItem]:
    # sorted() is stable, also with reverse=True: equal scores keep input order.
    ranked = sorted(items, key=lambda item: item.score, reverse=True)
    return ranked[:limit] if limit is not None else ranked


def rank_by_weights(
    candidates: Sequence[ScoredCandidate],
    weights: Mapping[str, float],
    limit: int | None = None,
) -> list[RankedItem]:
    weights = validate_weights(weights)
    items: list[RankedItem] = []
    for candidate in candidates:
        breakdown = weighted_breakdown(weights, candidate.scores)
        items.append(
            RankedItem(
                id=candidate.id,
                name=candidate.name,
                score=float(sum(breakdown.values())),
                breakdown=breakdown,
            )
        )
    return _ordered(items, limit)


def rank_by_similarity(
    user_vector: Sequence[float] | np.ndarray,
    candidates: Sequence[VectorCandidate],
    limit: int | None = None,
) -> list[RankedItem]:
    if not candidates:
        return []
    query = np.asarray(user_vector, dtype=float)
    for candidate in candidates:
        if len(candidate.vector) != query.shape[0]:
            raise DimensionMismatch(query.shape[0], len(candidate.vector))

    scores = affinity_matrix(query, np.vstack([c.vector for c in candidates]))
    items = [
        RankedItem(id=c.id, name=c.name, score=float(score))
        for c, score in zip(candidates, scores)
    ]
    return _ordered(items, limit)
