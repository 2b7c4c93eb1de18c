from __future__ import annotations

from typing import Iterable

from ..errors import NotFound
from .models import Tag
from .store import TagSource


def dedupe_tags(tags: Iterable[Tag]) -> list[Tag]:
    """Drop repeated tags by identity, keeping the first occurrence."""
    seen: dict[str, Tag] = {}
    for tag in tags:
        seen.setdefault(tag.id, tag)
    return list(seen.values())


class TagAggregator:
    """Collects the effective tag set of a restaurant for one category.

    The effective set is the union of tags attached directly to the
    restaurant, to any of its images and to any of its reviews. Two rows
    with the same text are still distinct tags; only the tag id is used
    to deduplicate.
    """

    def __init__(self, source: TagSource) -> None:
        self._source = source

    async def aggregate_tags(self, restaurant_id: str, category: str) -> list[Tag]:
        paths = await self._source.tag_paths(restaurant_id, category)
        if paths is None:
            raise NotFound("restaurant", restaurant_id)
        return dedupe_tags(paths.chained())
