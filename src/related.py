"""Related-article scoring by shared tags and category folder.

A candidate scores 2 points per tag it shares with the new article and
3 more when it is filed in the same category folder. Zero-score
candidates are dropped; the rest are ranked by score, ties keeping
corpus order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from pydantic import BaseModel

from docreader.config import DocReaderConfig
from docreader.vault.models import DocumentRecord, is_under, normalize_path
from docreader.vault.store import DocumentStore

logger = logging.getLogger(__name__)

TAG_MATCH_POINTS = 2
CATEGORY_MATCH_POINTS = 3
RELATED_HEADING = "## Related Articles"
# The heading line through the next level-2 heading or the end of the body.
_RELATED_SECTION_RE = re.compile(
    r"\n*^## Related Articles[ \t]*$.*?(?=^## |\Z)", re.MULTILINE | re.DOTALL
)


class RelatedArticle(BaseModel):
    """A scored candidate."""

    path: str
    name: str
    score: int

    @property
    def wiki_link(self) -> str:
        return f"[[{self.name}]]"


def score(
    candidate_tags: Iterable[str],
    candidate_category: str | None,
    new_tags: Iterable[str],
    new_category: str | None,
) -> int:
    """Relevance of a candidate to a new article; always >= 0."""
    shared = set(candidate_tags) & set(new_tags)
    total = TAG_MATCH_POINTS * len(shared)
    if new_category and candidate_category == new_category:
        total += CATEGORY_MATCH_POINTS
    return total


def category_of(path: str, articles_folder: str) -> str | None:
    """The category folder a path is filed in, e.g. ``Articles/Science/x.md`` -> ``Science``."""
    path = normalize_path(path)
    folder = normalize_path(articles_folder)
    if not is_under(path, folder) or path == folder:
        return None
    parts = path[len(folder) + 1 :].split("/") if folder else path.split("/")
    if len(parts) < 2:
        return None
    return parts[0]


def format_related_section(related: list[RelatedArticle]) -> str:
    """Markdown section listing related articles; empty string for none."""
    if not related:
        return ""
    links = "\n".join(f"- {article.wiki_link}" for article in related)
    return f"\n{RELATED_HEADING}\n\n{links}\n"


def strip_related_section(body: str) -> str:
    """Remove any existing related-articles section from ``body``."""

    def replace(match: re.Match[str]) -> str:
        return "" if match.end() == len(body) else "\n\n"

    return _RELATED_SECTION_RE.sub(replace, body)


class RelatednessScorer:
    """Ranks articles in the articles folder against a new article."""

    def __init__(self, store: DocumentStore, config: DocReaderConfig) -> None:
        self._store = store
        self._config = config

    def update_settings(self, config: DocReaderConfig) -> None:
        self._config = config

    def _score_record(self, record: DocumentRecord, tags: list[str], category: str | None) -> int:
        return score(
            record.header_list("tags"),
            category_of(record.path, self._config.vault.articles_folder),
            tags,
            category,
        )

    def find_related(
        self,
        current_path: str,
        tags: list[str],
        category: str | None,
        max_results: int | None = None,
    ) -> list[RelatedArticle]:
        if max_results is None:
            max_results = self._config.related.max_articles
        if max_results <= 0:
            return []

        articles_folder = self._config.vault.articles_folder
        current = normalize_path(current_path)

        scored: list[RelatedArticle] = []
        for record in self._store.list_documents(articles_folder):
            if record.path == current or not is_under(record.path, articles_folder):
                continue
            points = self._score_record(record, tags, category)
            if points > 0:
                scored.append(RelatedArticle(path=record.path, name=record.basename, score=points))

        # sorted() is stable, so ties keep corpus order
        ranked = sorted(scored, key=lambda article: article.score, reverse=True)
        return ranked[:max_results]
