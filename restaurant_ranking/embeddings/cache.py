from __future__ import annotations

from typing import Sequence

import numpy as np

from ..errors import ProviderRejected
from .provider import EmbeddingProvider


class CachedEmbeddingProvider:
    """Memoises embeddings by exact text.

    Tags are interned, so the same handful of values ("cozy", "warm", ...)
    recur across hundreds of restaurants in one run.
    """

    def __init__(self, inner: EmbeddingProvider) -> None:
        self._inner = inner
        self._cache: dict[str, np.ndarray] = {}
        self._hits = 0
        self._misses = 0
        self.dimension = inner.dimension

    def check_ready(self) -> None:
        self._inner.check_ready()

    async def embed(self, text: str) -> np.ndarray:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[np.ndarray]:
        texts = list(texts)
        missing = list(dict.fromkeys(t for t in texts if t not in self._cache))
        self._hits += len(texts) - sum(1 for t in texts if t in missing)
        self._misses += len(missing)

        if missing:
            vectors = await self._inner.embed_batch(missing)
            if len(vectors) != len(missing):
                raise ProviderRejected(f"provider returned {len(vectors)} embeddings for {len(missing)} inputs")
            self._cache.update(zip(missing, vectors))

        return [self._cache[t] for t in texts]

    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "size": len(self._cache),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }

    def clear(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0
