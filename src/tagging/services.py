"""Tag and category generation.

:func:`parse_tag_response` is the pure parser for the oracle's
``CATEGORY:`` / ``TAGS:`` answer. It never raises: malformed lines are
skipped and a missing section yields no tags or no category.
:class:`TagGenerator` wraps prompt building and the oracle call.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from docreader.config import DocReaderConfig
from docreader.llm import LLMError, TextOracle
from docreader.tagging.models import (
    MAX_TAG_CHARS,
    TagGenerationResult,
    is_valid_category,
    is_valid_tag,
)
from docreader.tagging.prompts import get_tag_prompt

logger = logging.getLogger(__name__)

_CATEGORY_RE = re.compile(r"^CATEGORY:[ \t]*(.+)$", re.IGNORECASE | re.MULTILINE)
_TAGS_SECTION_RE = re.compile(r"TAGS:\s*([\s\S]*)$", re.IGNORECASE)
_BULLET_RE = re.compile(r"^[-*•]\s*")
_QUOTES_RE = re.compile(r"^[\"']|[\"']$")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_category(response: str) -> str | None:
    match = _CATEGORY_RE.search(response)
    if not match:
        return None
    category = match.group(1).strip()
    return category if is_valid_category(category) else None


def clean_tag(line: str, prefix: str) -> str | None:
    """Turn one response line into a prefixed tag, or ``None`` to skip it."""
    tag = _BULLET_RE.sub("", line.strip())
    tag = tag.removeprefix("#")
    tag = _QUOTES_RE.sub("", tag).strip().lower()

    # Prose lines have spaces but no hierarchy
    if not tag or len(tag) > MAX_TAG_CHARS or (" " in tag and "/" not in tag):
        return None

    tag = _WHITESPACE_RE.sub("-", tag)
    if not tag.startswith(prefix):
        tag = prefix + tag
    return tag if is_valid_tag(tag) else None


def parse_tags(response: str, prefix: str, max_tags: int) -> list[str]:
    match = _TAGS_SECTION_RE.search(response)
    if not match:
        return []

    tags: list[str] = []
    for line in match.group(1).split("\n"):
        if len(tags) >= max_tags:
            break
        line = line.strip()
        if not line or line.upper().startswith("CATEGORY:"):
            continue
        tag = clean_tag(line, prefix)
        if tag is not None:
            tags.append(tag)
    return tags


def parse_tag_response(response: str, prefix: str, max_tags: int) -> TagGenerationResult:
    """Parse an oracle response into validated tags and a category."""
    return TagGenerationResult(
        tags=parse_tags(response, prefix, max_tags),
        category=parse_category(response),
    )


def existing_tags(header: dict[str, Any] | None) -> list[str]:
    """Tags already on a document header (string or list form)."""
    tags = (header or {}).get("tags")
    if isinstance(tags, str):
        return [tags]
    if isinstance(tags, list):
        return [t for t in tags if isinstance(t, str)]
    return []


class TagGenerator:
    """Asks the oracle for tags and a filing category."""

    def __init__(self, oracle: TextOracle, config: DocReaderConfig) -> None:
        self._oracle = oracle
        self._config = config

    def update_settings(self, config: DocReaderConfig) -> None:
        self._config = config

    def parse(self, response: str) -> TagGenerationResult:
        return parse_tag_response(response, self._config.tags.prefix, self._config.tags.max_tags)

    def generate(self, content: str, header: dict[str, Any] | None = None) -> TagGenerationResult:
        """Generate tags for ``content``; empty result when the oracle is unavailable."""
        if not self._oracle.is_configured():
            return TagGenerationResult()

        prompt = get_tag_prompt(
            content,
            tag_prefix=self._config.tags.prefix,
            max_tags=self._config.tags.max_tags,
            existing_tags=existing_tags(header),
        )
        try:
            response = self._oracle.generate(prompt, label="tags")
        except LLMError as exc:
            logger.warning("Tag generation failed: %s", exc)
            return TagGenerationResult()
        return self.parse(response)
