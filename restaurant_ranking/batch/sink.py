from __future__ import annotations

from typing import Protocol

from ..tags.models import RestaurantRecord


class RestaurantSource(Protocol):
    async def has_category(self, category: str) -> bool: ...

    async def count_restaurants(self) -> int: ...

    async def fetch_restaurants(self, offset: int, limit: int) -> list[RestaurantRecord]:
        """One page of restaurants in a stable order (oldest first)."""
        ...


class ScoreSink(Protocol):
    async def write_score(self, restaurant_id: str, score_field: str, value: float) -> None:
        """Overwrite one score field on one restaurant. No other side effects."""
        ...
