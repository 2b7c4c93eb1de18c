from __future__ import annotations

import asyncio
import math

import numpy as np
import pytest

from restaurant_ranking.errors import DimensionMismatch, InvalidPreference
from restaurant_ranking.recommendations.models import ScoredCandidate, VectorCandidate
from restaurant_ranking.recommendations.ranker import (
    rank_by_similarity,
    rank_by_weights,
    similarity_score,
    validate_weights,
    weighted_score,
)
from restaurant_ranking.recommendations.user_vector import UserVectorBuilder, rank_for_user
from restaurant_ranking.scoring.ambiance import AmbianceScorer
from restaurant_ranking.tags.aggregator import TagAggregator

WEIGHTS = {"ambiance": 70, "foodQuality": 30}


# ── Weighted score ───────────────────────────────────────────────────────


def test_weighted_score_sums_weight_times_score():
    assert weighted_score(WEIGHTS, {"ambiance": 0.8, "foodQuality": 0.2}) == pytest.approx(62.0)


def test_missing_dimension_contributes_zero():
    assert weighted_score(WEIGHTS, {"ambiance": 0.8}) == pytest.approx(56.0)
    assert weighted_score(WEIGHTS, {"ambiance": 0.8, "foodQuality": None}) == pytest.approx(56.0)


def test_scores_without_a_weight_are_ignored():
    assert weighted_score({"ambiance": 10}, {"ambiance": 0.5, "price": 1.0}) == pytest.approx(5.0)


@pytest.mark.parametrize("bad", [-1, 100.5, math.inf, math.nan, "high", True])
def test_invalid_weights_are_rejected(bad):
    with pytest.raises(InvalidPreference):
        validate_weights({"ambiance": bad})


def test_invalid_preference_is_a_value_error():
    with pytest.raises(ValueError):
        weighted_score({"ambiance": -5}, {"ambiance": 1.0})


def test_boundary_weights_are_accepted():
    assert validate_weights({"a": 0, "b": 100}) == {"a": 0.0, "b": 100.0}


# ── Ranking ──────────────────────────────────────────────────────────────


def _candidate(cid, ambiance):
    return ScoredCandidate(id=cid, name=cid.upper(), scores={"ambiance": ambiance})


def test_rank_by_weights_orders_descending_and_keeps_ties_stable():
    candidates = [_candidate("c", 0.3), _candidate("a", 0.5), _candidate("d", 0.9), _candidate("b", 0.5)]

    ranked = rank_by_weights(candidates, {"ambiance": 10})

    assert [item.id for item in ranked] == ["d", "a", "b", "c"]
    assert ranked[0].breakdown == {"ambiance": pytest.approx(9.0)}


def test_ties_keep_input_order():
    ranked = rank_by_weights(
        [_candidate("A", 0.5), _candidate("B", 0.5), _candidate("C", 0.3)],
        {"ambiance": 10},
    )
    assert [item.id for item in ranked] == ["A", "B", "C"]
    assert [item.score for item in ranked] == pytest.approx([5.0, 5.0, 3.0])


def test_rank_by_weights_respects_limit():
    candidates = [_candidate(str(i), i / 10) for i in range(5)]
    assert [item.id for item in rank_by_weights(candidates, {"ambiance": 1}, limit=2)] == ["4", "3"]


def test_rank_by_weights_with_no_candidates():
    assert rank_by_weights([], WEIGHTS) == []


def test_similarity_score_is_unit_range():
    assert similarity_score(np.array([1.0, 0.0]), np.array([-1.0, 0.0])) == pytest.approx(0.0)
    assert similarity_score(np.array([1.0, 0.0]), np.zeros(2)) == 0.0


def test_rank_by_similarity_orders_by_affinity():
    candidates = [
        VectorCandidate(id="away", vector=[-1.0, 0.0]),
        VectorCandidate(id="close", vector=[1.0, 0.1]),
        VectorCandidate(id="side", vector=[0.0, 1.0]),
        VectorCandidate(id="untagged", vector=[0.0, 0.0]),
    ]

    ranked = rank_by_similarity([1.0, 0.0], candidates)

    assert [item.id for item in ranked] == ["close", "side", "away", "untagged"]
    assert ranked[-1].score == 0.0
    assert ranked[0].breakdown is None


def test_rank_by_similarity_rejects_mismatched_candidates():
    with pytest.raises(DimensionMismatch):
        rank_by_similarity([1.0, 0.0], [VectorCandidate(id="x", vector=[1.0, 0.0, 0.0])])


# ── Swipe-derived user vectors ───────────────────────────────────────────


@pytest.fixture
def scored_setup(store, make_provider, add_restaurant):
    provider = make_provider(
        dimension=2,
        vectors={
            "cozy": [1.0, 0.0],
            "candle lit": [1.0, 0.2],
            "neon": [0.0, 1.0],
            "loud": [-0.2, 1.0],
        },
    )
    add_restaurant("bistro", ["cozy"])
    add_restaurant("wine-bar", ["candle lit"])
    add_restaurant("club", ["neon", "loud"])
    add_restaurant("empty")
    aggregator = TagAggregator(store)
    scorer = AmbianceScorer(aggregator, provider)
    return store, provider, UserVectorBuilder(store, aggregator, scorer), scorer


def test_user_vector_averages_liked_tags(scored_setup):
    store, provider, builder, _ = scored_setup
    store.record_swipe("u1", "bistro", "LIKE")
    store.record_swipe("u1", "club", "PASS")
    store.record_swipe("u1", "wine-bar", "SUPERLIKE")

    vector = asyncio.run(builder.build("u1", "ambiance"))

    assert np.allclose(vector, [1.0, 0.1])


def test_user_without_likes_gets_zero_vector(scored_setup):
    store, provider, builder, _ = scored_setup
    store.record_swipe("u1", "club", "PASS")

    vector = asyncio.run(builder.build("u1", "ambiance"))

    assert not vector.any()
    assert provider.calls == []


def test_rank_for_user_prefers_similar_places(scored_setup):
    store, _, builder, scorer = scored_setup
    store.record_swipe("u1", "bistro", "LIKE")

    ranked = asyncio.run(
        rank_for_user(builder, scorer, "u1", "ambiance", ["club", "empty", "wine-bar"], limit=2)
    )

    assert [item.id for item in ranked] == ["wine-bar", "club"]
    assert 0.0 <= ranked[1].score <= ranked[0].score <= 1.0
