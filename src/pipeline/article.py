"""Article enrichment: one clipped document in, one enriched document out.

Step order::

    duplicate check -> images -> authors -> tags/category -> content rewrite
    -> move to category folder -> header patch -> related articles

A duplicate URL stops processing before anything is touched. The image,
author, tag, move and related steps are best-effort: each returns a
:class:`StepResult` and a failure is recorded in ``errors`` without
stopping later steps. The content rewrite and header patch are not
guarded; if they raise, the whole document fails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any, TypeVar

from docreader.authors.models import MultiAuthorLinkResult
from docreader.authors.search import search_author
from docreader.authors.services import AuthorResolver
from docreader.config import DocReaderConfig
from docreader.duplicates import URL_KEY, DuplicateDetector
from docreader.errors import DocumentNotFoundError
from docreader.frontmatter import reading_time_minutes, render_document
from docreader.images import ImageDownloader, ImageProcessingResult, fetch_image
from docreader.llm import ClaudeOracle, TextOracle
from docreader.pipeline.models import ProcessingResult, StepResult
from docreader.related import (
    RelatedArticle,
    RelatednessScorer,
    format_related_section,
    strip_related_section,
)
from docreader.tagging.models import TagGenerationResult
from docreader.tagging.services import TagGenerator, existing_tags
from docreader.vault.models import DocumentRecord, join_path, normalize_path
from docreader.vault.store import DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROCESSED_KEY = "dr-processed"
PROCESSED_AT_KEY = "dr-processed-at"
READING_TIME_KEY = "reading-time"
PUBLISHED_KEY = "published"
PUBLISHED_DATE_KEY = "published-date"
SOURCE_KEY = "source"


def should_process(
    header: dict[str, Any] | None,
    source_marker: str = "web-clipper",
    force: bool = False,
) -> bool:
    """Whether a document is an unprocessed web clip.

    ``force`` bypasses both the source check and the processed flag.
    """
    if force:
        return True
    if not header:
        return False
    if header.get(SOURCE_KEY) != source_marker:
        return False
    return header.get(PROCESSED_KEY) is not True


def published_date(value: Any) -> str | None:
    """Date portion of a ``published`` header value."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and value.strip():
        return value.strip().split("T", 1)[0].split(" ", 1)[0]
    return None


def merge_tags(existing: list[str], generated: list[str]) -> list[str]:
    """Union preserving order: existing tags first, then new ones."""
    return list(dict.fromkeys([*existing, *generated]))


def _guard(failure_prefix: str, step: Callable[[], T]) -> StepResult[T]:
    try:
        return StepResult.success(step())
    except Exception as exc:
        logger.warning("%s", failure_prefix, exc_info=True)
        return StepResult.failure(f"{failure_prefix}: {exc}")


class ArticleProcessor:
    """Runs the enrichment steps over one document at a time.

    Not re-entrant per path: callers serialize work on the same document
    (see :class:`docreader.pipeline.runner.ProcessingQueue`).
    """

    def __init__(
        self,
        store: DocumentStore,
        oracle: TextOracle,
        config: DocReaderConfig,
        *,
        image_fetch=fetch_image,
        author_search=search_author,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._config = config
        self._clock = clock or (lambda: datetime.now(UTC))

        self.images = ImageDownloader(store, config, fetch=image_fetch)
        self.authors = AuthorResolver(store, oracle, config, search=author_search)
        self.tags = TagGenerator(oracle, config)
        self.duplicates = DuplicateDetector(store, config)
        self.related = RelatednessScorer(store, config)

    @property
    def config(self) -> DocReaderConfig:
        return self._config

    def update_settings(self, config: DocReaderConfig) -> None:
        """Swap the configuration snapshot on every component."""
        self._config = config
        if isinstance(self._oracle, ClaudeOracle):
            self._oracle.update_settings(config.claude)
        self.images.update_settings(config)
        self.authors.update_settings(config)
        self.tags.update_settings(config)
        self.duplicates.update_settings(config)
        self.related.update_settings(config)

    def should_process(self, header: dict[str, Any] | None, force: bool = False) -> bool:
        return should_process(header, self._config.processing.source_marker, force)

    # ── Steps ────────────────────────────────────────────────────

    def _image_step(self, body: str) -> StepResult[ImageProcessingResult]:
        return _guard("Image processing failed", lambda: self.images.process(body))

    def _author_step(
        self, content: str, header: dict[str, Any]
    ) -> StepResult[MultiAuthorLinkResult]:
        return _guard("Author linking failed", lambda: self.authors.link_authors(content, header))

    def _tag_step(self, content: str, header: dict[str, Any]) -> StepResult[TagGenerationResult]:
        return _guard("Tag generation failed", lambda: self.tags.generate(content, header))

    def _move_step(self, record: DocumentRecord, category: str) -> StepResult[str | None]:
        def move() -> str | None:
            target = join_path(self._config.vault.articles_folder, category, record.name)
            if target == record.path:
                return None
            return self._store.move_document(record.path, target).path

        return _guard("Failed to move to category folder", move)

    def _related_step(
        self, path: str, tags: list[str], category: str | None
    ) -> StepResult[list[RelatedArticle]]:
        def link_related() -> list[RelatedArticle]:
            related = self.related.find_related(path, tags, category)
            section = format_related_section(related)
            current = self._store.get_document(path)
            if current is None:
                raise DocumentNotFoundError(path)
            # A reprocessed article replaces its previous section.
            body = strip_related_section(current.body)
            if not section and body == current.body:
                return related
            self._store.write_body(path, body.rstrip("\n") + "\n" + section)
            return related

        return _guard("Related articles failed", link_related)

    def _patch_header(
        self,
        path: str,
        author_links: list[str],
        generated_tags: list[str],
        reading_minutes: int,
    ) -> None:
        author_key = self._config.authors.frontmatter_key
        processed_at = self._clock().isoformat()

        def mutate(header: dict[str, Any]) -> None:
            if author_links:
                header[author_key] = author_links[0] if len(author_links) == 1 else author_links
            if generated_tags:
                header["tags"] = merge_tags(existing_tags(header), generated_tags)
            if reading_minutes > 0:
                header[READING_TIME_KEY] = f"{reading_minutes} min"
            if PUBLISHED_DATE_KEY not in header:
                published = published_date(header.get(PUBLISHED_KEY))
                if published:
                    header[PUBLISHED_DATE_KEY] = published
            header[PROCESSED_KEY] = True
            header[PROCESSED_AT_KEY] = processed_at

        self._store.patch_header(path, mutate)

    # ── Orchestration ────────────────────────────────────────────

    def process(self, path: str) -> ProcessingResult:
        """Enrich the document at ``path`` and report what changed."""
        path = normalize_path(path)
        result = ProcessingResult(path=path)

        try:
            record = self._store.get_document(path)
            if record is None:
                raise DocumentNotFoundError(path)

            url = record.header.get(URL_KEY)
            duplicate = self.duplicates.find_duplicate(url if isinstance(url, str) else None, path)
            if duplicate:
                logger.info("Skipping %s: duplicate of %s", path, duplicate)
                result.skipped_duplicate = True
                result.duplicate_of = duplicate
                result.success = True
                return result

            processing = self._config.processing
            header = record.header
            body = record.body

            if processing.download_images:
                image_step = self._image_step(body)
                if image_step.ok and image_step.value is not None:
                    images = image_step.value
                    body = images.updated_content
                    result.images_downloaded = images.downloaded_count
                    result.images_failed = len(images.failed_urls)
                    if images.failed_urls:
                        result.errors.append(f"Failed to download {len(images.failed_urls)} image(s)")
                else:
                    result.errors.append(image_step.error or "Image processing failed")

            content = render_document(header, body)

            author_links: list[str] = []
            if self._config.authors.create_pages or self._config.authors.use_claude:
                author_step = self._author_step(content, header)
                if author_step.ok and author_step.value is not None:
                    authors = author_step.value
                    result.author_results = list(authors.results)
                    result.author_names = authors.all_author_names
                    result.authors_created = authors.authors_created
                    author_links = authors.all_author_links
                else:
                    result.errors.append(author_step.error or "Author linking failed")

            if processing.generate_tags:
                tag_step = self._tag_step(content, header)
                if tag_step.ok and tag_step.value is not None:
                    result.tags_generated = tag_step.value.tags
                    result.category = tag_step.value.category
                else:
                    result.errors.append(tag_step.error or "Tag generation failed")

            if result.images_downloaded > 0:
                record = self._store.write_body(path, body)

            if processing.organize_by_category and result.category:
                move_step = self._move_step(record, result.category)
                if move_step.ok:
                    if move_step.value:
                        path = move_step.value
                        result.path = path
                        result.moved_to = path
                else:
                    result.errors.append(move_step.error or "Failed to move to category folder")

            result.reading_time_minutes = reading_time_minutes(strip_related_section(body))
            self._patch_header(path, author_links, result.tags_generated, result.reading_time_minutes)

            if self._config.related.enabled:
                related_step = self._related_step(path, result.tags_generated, result.category)
                if related_step.ok and related_step.value is not None:
                    result.related_count = len(related_step.value)
                else:
                    result.errors.append(related_step.error or "Related articles failed")

            result.success = True
        except Exception as exc:
            logger.exception("Processing failed for %s", path)
            result.success = False
            result.errors.append(f"Processing failed: {exc}")

        return result


def summarize_result(result: ProcessingResult) -> str:
    """One-line notice describing what processing changed."""
    if result.skipped_duplicate:
        return f'Skipped "{result.name}" - an article with the same URL already exists'
    if not result.success:
        reason = result.errors[-1] if result.errors else "unknown error"
        return f'Failed to process "{result.name}" - {reason}'

    parts: list[str] = []
    if result.images_downloaded > 0:
        parts.append(f"{result.images_downloaded} images")
    if result.author_names:
        noun = "author" if len(result.author_names) == 1 else "authors"
        verb = "created" if result.authors_created > 0 else "linked"
        parts.append(f"{verb} {noun}: {', '.join(result.author_names)}")
    if result.tags_generated:
        parts.append(f"{len(result.tags_generated)} tags")
    if result.category:
        parts.append(f"filed in: {result.category}")
    if result.related_count > 0:
        parts.append(f"{result.related_count} related")

    if not parts:
        return f'Processed "{result.name}" (no changes)'
    return f'Processed "{result.name}" - {", ".join(parts)}'
