"""
Attach classifier output to images and reviews.

The vision model and the review tagger run outside this package. They hand
back small JSON payloads; this module validates them and turns every phrase
into an interned tag linked to its image or review.
"""
from __future__ import annotations

import logging
from typing import Iterable, Literal

from pydantic import BaseModel, Field, field_validator

from .models import Tag
from .store import InMemoryTagStore

logger = logging.getLogger(__name__)

VISION_SOURCE = "openai-vision"
REVIEW_SOURCE = "openai-gpt4o"

# Images are classified as either food or ambiance shots.
IMAGE_CATEGORY_TO_TAG_CATEGORY = {
    "food": "cuisine",
    "ambiance": "ambiance",
}


class ImageClassification(BaseModel):
    category: Literal["food", "ambiance"]
    tags: list[str] = Field(default_factory=list)


class ReviewTagPhrase(BaseModel):
    phrase: str
    category: str = Field(..., min_length=1)

    @field_validator("category")
    @classmethod
    def _normalise_category(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("category must not be blank")
        return value


def _clean(values: Iterable[str]) -> list[str]:
    cleaned: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def attach_image_classification(
    store: InMemoryTagStore,
    image_id: str,
    classification: ImageClassification,
    source: str = VISION_SOURCE,
) -> list[Tag]:
    """Get-or-create the classified tags and connect them to the image."""
    category = store.get_or_create_category(IMAGE_CATEGORY_TO_TAG_CATEGORY[classification.category])
    tags = [store.get_or_create_tag(value, category, source) for value in _clean(classification.tags)]
    for tag in tags:
        store.tag_image(image_id, tag.id)
    logger.info("Attached %d %s tags to image %s", len(tags), category, image_id)
    return tags


def attach_review_phrases(
    store: InMemoryTagStore,
    review_id: str,
    phrases: Iterable[ReviewTagPhrase],
    source: str = REVIEW_SOURCE,
) -> list[Tag]:
    """Get-or-create one tag per extracted phrase and connect them to the review."""
    tags: list[Tag] = []
    for item in phrases:
        values = _clean([item.phrase])
        if not values:
            continue
        category = store.get_or_create_category(item.category)
        tag = store.get_or_create_tag(values[0], category, source)
        store.tag_review(review_id, tag.id)
        if tag not in tags:
            tags.append(tag)
    logger.info("Attached %d tags to review %s", len(tags), review_id)
    return tags
