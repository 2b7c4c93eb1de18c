from __future__ import annotations


class RankingError(Exception):
    """Base class for every error raised by the ranking engine."""


class NotFound(RankingError):
    """A referenced restaurant or entity does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class DimensionMismatch(RankingError):
    """Vectors of unequal length were combined or compared."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"vector dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class ProviderError(RankingError):
    """The embedding provider failed to return vectors."""


class ProviderTransient(ProviderError):
    """Network, rate-limit or timeout failure. Safe to retry."""


class ProviderRejected(ProviderError):
    """The provider refused the input. Retrying will not help."""


class ConfigurationError(RankingError):
    """A batch run cannot start: missing credentials or reference data."""


class InvalidPreference(RankingError, ValueError):
    """User preference weights are outside the accepted range."""
