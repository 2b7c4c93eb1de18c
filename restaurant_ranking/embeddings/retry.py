from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..errors import ProviderTransient

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for provider calls.

    ``max_attempts`` counts the first try, so the default of 4 means one
    call plus three retries, waiting 1s, 2s and 4s in between. ``timeout``
    bounds every single attempt; a timed out attempt is retried like any
    other transient failure.
    """

    max_attempts: int = int(os.getenv("EMBEDDING_MAX_ATTEMPTS", "4"))
    base_delay: float = float(os.getenv("EMBEDDING_RETRY_DELAY", "1.0"))
    factor: float = 2.0
    timeout: float | None = float(os.getenv("EMBEDDING_CALL_TIMEOUT", "30"))

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return self.base_delay * self.factor ** (attempt - 1)


DEFAULT_RETRY_POLICY = RetryPolicy()


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    context: str = "operation",
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await ``fn()`` until it succeeds, retrying only ``ProviderTransient``.

    Any other exception, ``ProviderRejected`` included, propagates on the
    first attempt.
    """
    last_error: ProviderTransient | None = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            if policy.timeout is None:
                return await fn()
            return await asyncio.wait_for(fn(), policy.timeout)
        except asyncio.TimeoutError:
            last_error = ProviderTransient(f"{context} timed out after {policy.timeout}s")
        except ProviderTransient as exc:
            last_error = exc

        if attempt < policy.max_attempts:
            delay = policy.delay_for(attempt)
            logger.warning(
                "Retry %d/%d for %s after %.2fs: %s",
                attempt,
                policy.max_attempts - 1,
                context,
                delay,
                last_error,
            )
            await sleep(delay)

    raise ProviderTransient(
        f"{context} failed after {policy.max_attempts} attempts: {last_error}"
    ) from last_error
