from __future__ import annotations

import asyncio
import hashlib
from typing import Callable, Sequence

import numpy as np
import pytest

from restaurant_ranking.errors import ConfigurationError, ProviderTransient
from restaurant_ranking.tags.store import InMemoryTagStore

DIMENSION = 8


class FakeEmbeddingProvider:
    """Deterministic in-process embeddings; records every batch it receives."""

    def __init__(
        self,
        dimension: int = DIMENSION,
        fail_on: dict[str, Exception] | None = None,
        transient: dict[str, int] | None = None,
        vectors: dict[str, Sequence[float]] | None = None,
        ready: bool = True,
        on_call: Callable[[list[str]], None] | None = None,
    ) -> None:
        self.dimension = dimension
        self.fail_on = dict(fail_on or {})
        self.transient = dict(transient or {})
        self.vectors = dict(vectors or {})
        self.ready = ready
        self.on_call = on_call
        self.calls: list[list[str]] = []

    def check_ready(self) -> None:
        if not self.ready:
            raise ConfigurationError("OPENAI_API_KEY is not configured.")

    def vector_for(self, text: str) -> np.ndarray:
        if text in self.vectors:
            return np.asarray(self.vectors[text], dtype=float)
        seed = int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")
        return np.random.default_rng(seed).normal(size=self.dimension)

    async def embed(self, text: str) -> np.ndarray:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[np.ndarray]:
        texts = list(texts)
        self.calls.append(texts)
        if self.on_call is not None:
            self.on_call(texts)
        await asyncio.sleep(0)
        for text in texts:
            if text in self.fail_on:
                raise self.fail_on[text]
            if self.transient.get(text, 0) > 0:
                self.transient[text] -= 1
                raise ProviderTransient(f"rate limited on {text!r}")
        return [self.vector_for(t) for t in texts]

    @property
    def embedded_texts(self) -> list[str]:
        return [text for call in self.calls for text in call]


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def make_provider() -> Callable[..., FakeEmbeddingProvider]:
    return FakeEmbeddingProvider


@pytest.fixture
def store() -> InMemoryTagStore:
    s = InMemoryTagStore()
    s.get_or_create_category("ambiance")
    s.get_or_create_category("cuisine")
    return s


@pytest.fixture
def add_restaurant(store: InMemoryTagStore):
    """Add a restaurant with direct tags of one category."""

    def _add(restaurant_id: str, values: Sequence[str] = (), category: str = "ambiance", name: str = ""):
        store.add_restaurant(restaurant_id, name or f"Restaurant {restaurant_id}")
        for value in values:
            store.tag_restaurant(restaurant_id, store.get_or_create_tag(value, category).id)
        return restaurant_id

    return _add
