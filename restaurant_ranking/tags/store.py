from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Protocol

from ..errors import NotFound
from .models import (
    POSITIVE_DECISIONS,
    ImageRecord,
    RestaurantRecord,
    ReviewRecord,
    Snapshot,
    Swipe,
    SwipeDecision,
    Tag,
    TagPaths,
)

logger = logging.getLogger(__name__)


class TagSource(Protocol):
    async def tag_paths(self, restaurant_id: str, category: str) -> TagPaths | None:
        """Return the category's tags per path, or ``None`` for an unknown restaurant."""
        ...

    async def has_category(self, category: str) -> bool: ...


class InMemoryTagStore:
    """Dictionary-backed stand-in for the relational tag tables.

    Implements the read side the engine needs (tag paths, restaurant pages,
    liked restaurants) and the single-field score write.
    """

    def __init__(self) -> None:
        self._categories: set[str] = set()
        self._tags: dict[str, Tag] = {}
        self._tag_index: dict[tuple[str, str], str] = {}
        self._restaurants: dict[str, RestaurantRecord] = {}
        self._images: dict[str, ImageRecord] = {}
        self._reviews: dict[str, ReviewRecord] = {}
        self._swipes: list[Swipe] = []

    # ── Categories and tags ─────────────────────────────────────────────

    def get_or_create_category(self, category: str) -> str:
        if category not in self._categories:
            self._categories.add(category)
            logger.info("Created tag category %r", category)
        return category

    def add_tag(self, tag: Tag) -> Tag:
        """Insert a tag row as-is. The first row for a (value, category) pair is the interned one."""
        self._categories.add(tag.category)
        self._tags[tag.id] = tag
        self._tag_index.setdefault((tag.value, tag.category), tag.id)
        return tag

    def get_or_create_tag(self, value: str, category: str, source: str = "manual") -> Tag:
        if category not in self._categories:
            raise NotFound("tag category", category)
        existing = self._tag_index.get((value, category))
        if existing is not None:
            return self._tags[existing]
        tag = Tag(id=uuid.uuid4().hex, value=value, category=category, source=source)
        logger.debug("Created tag %r in %r", value, category)
        return self.add_tag(tag)

    def get_tag(self, tag_id: str) -> Tag:
        try:
            return self._tags[tag_id]
        except KeyError:
            raise NotFound("tag", tag_id) from None

    # ── Entities ────────────────────────────────────────────────────────

    def add_restaurant(self, restaurant_id: str, name: str = "") -> RestaurantRecord:
        record = RestaurantRecord(id=restaurant_id, name=name)
        self._restaurants[restaurant_id] = record
        return record

    def add_image(self, image_id: str, restaurant_id: str, url: str = "") -> ImageRecord:
        self._require_restaurant(restaurant_id)
        record = ImageRecord(id=image_id, restaurant_id=restaurant_id, url=url)
        self._images[image_id] = record
        return record

    def add_review(self, review_id: str, restaurant_id: str, text: str = "") -> ReviewRecord:
        self._require_restaurant(restaurant_id)
        record = ReviewRecord(id=review_id, restaurant_id=restaurant_id, text=text)
        self._reviews[review_id] = record
        return record

    def tag_restaurant(self, restaurant_id: str, tag_id: str) -> None:
        _connect(self._require_restaurant(restaurant_id).tag_ids, self.get_tag(tag_id).id)

    def tag_image(self, image_id: str, tag_id: str) -> None:
        image = self._images.get(image_id)
        if image is None:
            raise NotFound("restaurant image", image_id)
        _connect(image.tag_ids, self.get_tag(tag_id).id)

    def tag_review(self, review_id: str, tag_id: str) -> None:
        review = self._reviews.get(review_id)
        if review is None:
            raise NotFound("review", review_id)
        _connect(review.tag_ids, self.get_tag(tag_id).id)

    def record_swipe(self, user_id: str, restaurant_id: str, decision: SwipeDecision | str) -> Swipe:
        self._require_restaurant(restaurant_id)
        swipe = Swipe(user_id=user_id, restaurant_id=restaurant_id, decision=decision)
        self._swipes.append(swipe)
        return swipe

    def get_restaurant(self, restaurant_id: str) -> RestaurantRecord:
        return self._require_restaurant(restaurant_id).model_copy(deep=True)

    def _require_restaurant(self, restaurant_id: str) -> RestaurantRecord:
        record = self._restaurants.get(restaurant_id)
        if record is None:
            raise NotFound("restaurant", restaurant_id)
        return record

    # ── Read contracts used by the engine ───────────────────────────────

    async def tag_paths(self, restaurant_id: str, category: str) -> TagPaths | None:
        restaurant = self._restaurants.get(restaurant_id)
        if restaurant is None:
            return None

        def _of_category(tag_ids: list[str]) -> list[Tag]:
            return [self._tags[t] for t in tag_ids if self._tags[t].category == category]

        image_tags: list[Tag] = []
        for image in self._images.values():
            if image.restaurant_id == restaurant_id:
                image_tags.extend(_of_category(image.tag_ids))

        review_tags: list[Tag] = []
        for review in self._reviews.values():
            if review.restaurant_id == restaurant_id:
                review_tags.extend(_of_category(review.tag_ids))

        return TagPaths(
            direct=_of_category(restaurant.tag_ids),
            images=image_tags,
            reviews=review_tags,
        )

    async def has_category(self, category: str) -> bool:
        return category in self._categories

    async def count_restaurants(self) -> int:
        return len(self._restaurants)

    async def fetch_restaurants(self, offset: int, limit: int) -> list[RestaurantRecord]:
        """Return one page of restaurants in the order they were added."""
        page = list(self._restaurants.values())[offset : offset + limit]
        return [r.model_copy(deep=True) for r in page]

    async def liked_restaurant_ids(self, user_id: str) -> list[str]:
        liked: dict[str, None] = {}
        for swipe in self._swipes:
            if swipe.user_id == user_id and swipe.decision in POSITIVE_DECISIONS:
                liked.setdefault(swipe.restaurant_id, None)
        return list(liked)

    # ── Score sink ──────────────────────────────────────────────────────

    async def write_score(self, restaurant_id: str, score_field: str, value: float) -> None:
        self._require_restaurant(restaurant_id).scores[score_field] = float(value)

    # ── Snapshots ───────────────────────────────────────────────────────

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> InMemoryTagStore:
        store = cls()
        for category in snapshot.categories:
            store._categories.add(category)
        for tag in snapshot.tags:
            store.add_tag(tag)
        for restaurant in snapshot.restaurants:
            store._restaurants[restaurant.id] = restaurant.model_copy(deep=True)
        for image in snapshot.images:
            store._require_restaurant(image.restaurant_id)
            store._images[image.id] = image.model_copy(deep=True)
        for review in snapshot.reviews:
            store._require_restaurant(review.restaurant_id)
            store._reviews[review.id] = review.model_copy(deep=True)
        store._swipes = list(snapshot.swipes)

        for record in (*store._restaurants.values(), *store._images.values(), *store._reviews.values()):
            for tag_id in record.tag_ids:
                if tag_id not in store._tags:
                    raise NotFound("tag", tag_id)
        return store

    def to_snapshot(self) -> Snapshot:
        return Snapshot(
            categories=sorted(self._categories),
            tags=list(self._tags.values()),
            restaurants=[r.model_copy(deep=True) for r in self._restaurants.values()],
            images=[i.model_copy(deep=True) for i in self._images.values()],
            reviews=[r.model_copy(deep=True) for r in self._reviews.values()],
            swipes=list(self._swipes),
        )


def _connect(tag_ids: list[str], tag_id: str) -> None:
    if tag_id not in tag_ids:
        tag_ids.append(tag_id)


def load_snapshot(path: Path) -> InMemoryTagStore:
    snapshot = Snapshot.model_validate_json(Path(path).read_text(encoding="utf-8"))
    return InMemoryTagStore.from_snapshot(snapshot)


def save_snapshot(store: InMemoryTagStore, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(store.to_snapshot().model_dump_json(indent=2), encoding="utf-8")
    return path
