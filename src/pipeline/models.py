"""Result types for the article enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from docreader.authors.models import AuthorLinkResult

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Outcome of one best-effort pipeline step: a value or a failure reason."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> StepResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> StepResult[T]:
        return cls(error=reason)


class ProcessingResult(BaseModel):
    """Aggregate outcome of enriching one article."""

    success: bool = False
    path: str
    images_downloaded: int = 0
    images_failed: int = 0
    author_results: list[AuthorLinkResult] = Field(default_factory=list)
    author_names: list[str] = Field(default_factory=list)
    authors_created: int = 0
    tags_generated: list[str] = Field(default_factory=list)
    category: str | None = None
    moved_to: str | None = None
    reading_time_minutes: int = 0
    skipped_duplicate: bool = False
    duplicate_of: str | None = None
    related_count: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def name(self) -> str:
        stem = self.path.rsplit("/", 1)[-1]
        return stem[:-3] if stem.endswith(".md") else stem
