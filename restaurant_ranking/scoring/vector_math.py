from __future__ import annotations

from typing import Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as _pairwise_cosine

from ..errors import DimensionMismatch


def _check_same_length(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape[-1] != b.shape[-1]:
        raise DimensionMismatch(a.shape[-1], b.shape[-1])


def zero_vector(dimension: int) -> np.ndarray:
    return np.zeros(dimension, dtype=float)


def is_zero(vector: np.ndarray) -> bool:
    return not np.any(vector)


def average(vectors: Sequence[np.ndarray], dimension: int) -> np.ndarray:
    """Element-wise mean of ``vectors``.

    An empty input yields a zero vector of ``dimension``. Every vector must
    have exactly ``dimension`` entries.
    """
    if len(vectors) == 0:
        return zero_vector(dimension)
    for vector in vectors:
        if len(vector) != dimension:
            raise DimensionMismatch(dimension, len(vector))
    if len(vectors) == 1:
        return np.asarray(vectors[0], dtype=float)
    return np.mean(np.vstack(vectors), axis=0)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """dot(a, b) / (|a| |b|), defined as exactly 0 when either norm is 0."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    _check_same_length(a, b)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))


def normalize_similarity(similarity: float) -> float:
    """Map a raw cosine similarity from [-1, 1] to [0, 1]."""
    return max(0.0, min(1.0, (similarity + 1.0) / 2.0))


def affinity(a: np.ndarray, b: np.ndarray) -> float:
    """Normalized cosine similarity. A zero vector carries no signal and scores 0."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    _check_same_length(a, b)
    if is_zero(a) or is_zero(b):
        return 0.0
    return normalize_similarity(cosine_similarity(a, b))


def affinity_matrix(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Affinity of ``query`` against every row of ``matrix``, same zero rule as :func:`affinity`."""
    query = np.asarray(query, dtype=float).reshape(1, -1)
    matrix = np.asarray(matrix, dtype=float)
    if matrix.size == 0:
        return np.zeros(0, dtype=float)
    matrix = np.atleast_2d(matrix)
    _check_same_length(query, matrix)

    if is_zero(query):
        return np.zeros(matrix.shape[0], dtype=float)
    sims = np.clip(_pairwise_cosine(query, matrix).flatten(), -1.0, 1.0)
    # Normalise cosine similarity from [-1, 1] to [0, 1]
    scores = (sims + 1.0) / 2.0
    zero_rows = ~np.any(matrix, axis=1)
    scores[zero_rows] = 0.0
    return scores
