from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

import numpy as np
import openai
from openai import AsyncOpenAI

from ..errors import ConfigurationError, DimensionMismatch, ProviderRejected, ProviderTransient
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy, Sleep, call_with_retry

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    dimension: int

    def check_ready(self) -> None:
        """Raise ``ConfigurationError`` if the provider cannot be called at all."""
        ...

    async def embed(self, text: str) -> np.ndarray: ...

    async def embed_batch(self, texts: Sequence[str]) -> list[np.ndarray]:
        """Embed ``texts`` in input order. One failed item fails the whole call."""
        ...


def _reject_blank(texts: Sequence[str]) -> None:
    for text in texts:
        if not text or not text.strip():
            raise ProviderRejected("cannot embed empty text")


class OpenAIEmbeddingProvider:
    """OpenAI embeddings endpoint, one request per chunk of texts."""

    def __init__(
        self,
        config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self.dimension = config.dimension

    def check_ready(self) -> None:
        if self._client is None and not self._config.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured.")

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self.check_ready()
            # Retries are handled by RetryPolicy, not by the SDK.
            self._client = AsyncOpenAI(
                api_key=self._config.api_key,
                timeout=self._config.timeout,
                max_retries=0,
            )
        return self._client

    async def embed(self, text: str) -> np.ndarray:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[np.ndarray]:
        texts = list(texts)
        if not texts:
            return []
        _reject_blank(texts)

        size = self._config.request_batch_size
        vectors: list[np.ndarray] = []
        for start in range(0, len(texts), size):
            vectors.extend(await self._request(texts[start : start + size]))
        return vectors

    async def _request(self, chunk: list[str]) -> list[np.ndarray]:
        try:
            response = await self._get_client().embeddings.create(
                model=self._config.model_name,
                input=chunk,
            )
        except (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError) as exc:
            raise ProviderTransient(f"OpenAI embeddings unavailable: {exc}") from exc
        except openai.APIStatusError as exc:
            raise ProviderRejected(f"OpenAI rejected embedding request: {exc}") from exc

        items = sorted(response.data, key=lambda item: item.index)
        if len(items) != len(chunk):
            raise ProviderRejected(f"OpenAI returned {len(items)} embeddings for {len(chunk)} inputs")

        vectors = [np.asarray(item.embedding, dtype=float) for item in items]
        for vector in vectors:
            if vector.shape != (self.dimension,):
                raise DimensionMismatch(self.dimension, vector.shape[0])
        return vectors


class SentenceTransformerProvider:
    """Local sentence-transformer model, for runs without network access."""

    def __init__(self, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> None:
        from sentence_transformers import SentenceTransformer

        self._model = SentenceTransformer(config.local_model_name)
        self.dimension = int(self._model.get_sentence_embedding_dimension())

    def check_ready(self) -> None:
        return None

    async def embed(self, text: str) -> np.ndarray:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[np.ndarray]:
        texts = list(texts)
        if not texts:
            return []
        _reject_blank(texts)
        try:
            matrix = await asyncio.to_thread(self._model.encode, texts, show_progress_bar=False)
        except (RuntimeError, ValueError) as exc:
            raise ProviderRejected(f"local embedding model failed: {exc}") from exc
        return [np.asarray(row, dtype=float) for row in matrix]


class RetryingEmbeddingProvider:
    """Wraps another provider so every call goes through one RetryPolicy."""

    def __init__(
        self,
        inner: EmbeddingProvider,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._inner = inner
        self._policy = policy
        self._sleep = sleep
        self.dimension = inner.dimension

    def check_ready(self) -> None:
        self._inner.check_ready()

    async def embed(self, text: str) -> np.ndarray:
        return await call_with_retry(
            lambda: self._inner.embed(text),
            self._policy,
            context=f'embedding "{text}"',
            sleep=self._sleep,
        )

    async def embed_batch(self, texts: Sequence[str]) -> list[np.ndarray]:
        texts = list(texts)
        return await call_with_retry(
            lambda: self._inner.embed_batch(texts),
            self._policy,
            context=f"embedding batch of {len(texts)} texts",
            sleep=self._sleep,
        )


def build_provider(
    kind: str = "openai",
    config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> EmbeddingProvider:
    """Construct the provider stack used by the CLI: cache over retry over backend."""
    from .cache import CachedEmbeddingProvider

    if kind == "openai":
        backend: EmbeddingProvider = OpenAIEmbeddingProvider(config)
    elif kind == "local":
        backend = SentenceTransformerProvider(config)
    else:
        raise ConfigurationError(f"unknown embedding provider {kind!r}")
    logger.info("Using %s embeddings (dimension %d)", kind, backend.dimension)
    return CachedEmbeddingProvider(RetryingEmbeddingProvider(backend, policy))
