from __future__ import annotations

import asyncio

import numpy as np
import pytest

from restaurant_ranking.errors import ConfigurationError, NotFound, ProviderRejected
from restaurant_ranking.scoring.ambiance import AmbianceScorer
from restaurant_ranking.scoring.profiles import AMBIANCE_PROFILE, get_profile
from restaurant_ranking.tags.aggregator import TagAggregator


def _scorer(store, provider) -> AmbianceScorer:
    return AmbianceScorer(TagAggregator(store), provider)


def test_ideal_vector_is_one_batch_call(store, provider):
    scorer = _scorer(store, provider)
    ideal = asyncio.run(scorer.compute_ideal_vector(AMBIANCE_PROFILE.reference_tags))

    assert provider.calls == [list(AMBIANCE_PROFILE.reference_tags)]
    expected = np.mean([provider.vector_for(t) for t in AMBIANCE_PROFILE.reference_tags], axis=0)
    assert np.allclose(ideal, expected)


def test_ideal_vector_needs_reference_tags(store, provider):
    with pytest.raises(ConfigurationError):
        asyncio.run(_scorer(store, provider).compute_ideal_vector([" ", ""]))


def test_restaurant_without_tags_scores_zero_without_embedding(store, provider, add_restaurant):
    add_restaurant("r1")
    add_restaurant("r2", ["thai"], category="cuisine")
    scorer = _scorer(store, provider)
    ideal = asyncio.run(scorer.compute_ideal_vector(["cozy"]))
    provider.calls.clear()

    assert asyncio.run(scorer.score_restaurant("r1", "ambiance", ideal)) == 0.0
    assert asyncio.run(scorer.score_restaurant("r2", "ambiance", ideal)) == 0.0
    assert provider.calls == []


def test_score_is_normalized_affinity(store, make_provider, add_restaurant):
    provider = make_provider(
        dimension=2,
        vectors={"cozy": [1.0, 0.0], "warm": [1.0, 0.0], "loud": [0.0, 1.0], "sterile": [-1.0, 0.0]},
    )
    add_restaurant("match", ["warm"])
    add_restaurant("orthogonal", ["loud"])
    add_restaurant("opposite", ["sterile"])
    scorer = _scorer(store, provider)
    ideal = asyncio.run(scorer.compute_ideal_vector(["cozy"]))

    assert asyncio.run(scorer.score_restaurant("match", "ambiance", ideal)) == pytest.approx(1.0)
    assert asyncio.run(scorer.score_restaurant("orthogonal", "ambiance", ideal)) == pytest.approx(0.5)
    assert asyncio.run(scorer.score_restaurant("opposite", "ambiance", ideal)) == pytest.approx(0.0)


def test_scores_stay_in_unit_range(store, provider, add_restaurant):
    add_restaurant("r1", ["cozy", "candle lit"])
    add_restaurant("r2", ["neon", "loud", "crowded"])
    scorer = _scorer(store, provider)
    ideal = asyncio.run(scorer.compute_ideal_vector(AMBIANCE_PROFILE.reference_tags))

    for rid in ("r1", "r2"):
        result = asyncio.run(scorer.evaluate(rid, "ambiance", ideal))
        assert 0.0 <= result.score <= 1.0
    assert asyncio.run(scorer.evaluate("r2", "ambiance", ideal)).tag_count == 3


def test_tags_are_embedded_in_one_call_per_restaurant(store, provider, add_restaurant):
    add_restaurant("r1", ["cozy", "warm"])
    store.add_image("img1", "r1")
    store.tag_image("img1", store.get_or_create_tag("rustic", "ambiance").id)
    scorer = _scorer(store, provider)

    asyncio.run(scorer.restaurant_vector("r1", "ambiance"))

    assert provider.calls == [["cozy", "warm", "rustic"]]


def test_provider_errors_propagate(store, make_provider, add_restaurant):
    provider = make_provider(fail_on={"broken": ProviderRejected("content filter")})
    add_restaurant("r1", ["broken"])
    scorer = _scorer(store, provider)
    ideal = asyncio.run(scorer.compute_ideal_vector(["cozy"]))

    with pytest.raises(ProviderRejected):
        asyncio.run(scorer.score_restaurant("r1", "ambiance", ideal))


def test_missing_restaurant_propagates_not_found(store, provider):
    scorer = _scorer(store, provider)
    ideal = asyncio.run(scorer.compute_ideal_vector(["cozy"]))
    with pytest.raises(NotFound):
        asyncio.run(scorer.score_restaurant("ghost", "ambiance", ideal))


def test_unknown_profile_is_a_configuration_error():
    assert get_profile("ambiance") is AMBIANCE_PROFILE
    with pytest.raises(ConfigurationError):
        get_profile("noise")
