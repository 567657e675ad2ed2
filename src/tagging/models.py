"""Data models for tag generation."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

TAG_PATTERN = re.compile(r"^[a-z0-9/-]+$")
CATEGORY_PATTERN = re.compile(r"^[A-Za-z &-]{1,50}$")
MAX_TAG_CHARS = 100


def is_valid_tag(tag: str) -> bool:
    return bool(TAG_PATTERN.match(tag)) and 0 < len(tag) <= MAX_TAG_CHARS


def is_valid_category(category: str) -> bool:
    return bool(CATEGORY_PATTERN.match(category))


class TagGenerationResult(BaseModel):
    """Validated tags, in response order, and an optional filing category."""

    tags: list[str] = Field(default_factory=list)
    category: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.tags and self.category is None
