"""Author resolution against the people folder.

:class:`AuthorResolver` turns the author credit of a document into wiki
links: it splits and normalizes the credit, looks each name up among the
existing author pages (exact name or alias, never substring), and creates
a page for names it has not seen before.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from docreader.authors.models import (
    AuthorBio,
    AuthorIdentity,
    AuthorLinkResult,
    MultiAuthorLinkResult,
)
from docreader.authors.names import normalize_name, split_authors
from docreader.authors.prompts import (
    UNKNOWN_AUTHOR,
    get_author_bio_prompt,
    get_author_extraction_prompt,
    render_author_page,
)
from docreader.authors.search import extract_social_links, search_author
from docreader.config import DocReaderConfig
from docreader.errors import DocReaderError
from docreader.frontmatter import extract_scalar_field, render_document
from docreader.llm import LLMError, TextOracle
from docreader.vault.models import DocumentRecord, join_path
from docreader.vault.store import DocumentStore

logger = logging.getLogger(__name__)

MAX_AUTHOR_NAME_CHARS = 100

_BIO_RE = re.compile(r"BIO:\s*([\s\S]*?)(?=SOCIAL:|$)", re.IGNORECASE)
_SOCIAL_RE = re.compile(r"SOCIAL:\s*([\s\S]*?)$", re.IGNORECASE)

# Template lines the model sometimes echoes back unfilled.
_PLACEHOLDER_SUFFIXES = (
    ": []",
    ": [URL if found]",
    ": [handle or URL if found]",
    ": [@handle or URL]",
)
_PLACEHOLDER_FRAGMENTS = ("if found]", "if applicable]")

AuthorSearch = Callable[[str], str]


def _is_real_social_line(line: str) -> bool:
    trimmed = line.strip()
    if not trimmed or ":" not in trimmed:
        return False
    if trimmed.endswith(_PLACEHOLDER_SUFFIXES):
        return False
    if any(fragment in trimmed for fragment in _PLACEHOLDER_FRAGMENTS):
        return False
    return bool(trimmed.split(":", 1)[1].strip())


def parse_bio_response(response: str) -> AuthorBio:
    """Parse a ``BIO:`` / ``SOCIAL:`` response into bio and social-link text.

    Labels are matched case-insensitively. Social lines that are unfilled
    template placeholders or have no value after the first colon are dropped.
    """
    bio_match = _BIO_RE.search(response)
    social_match = _SOCIAL_RE.search(response)

    bio = bio_match.group(1).strip() if bio_match else ""
    social = social_match.group(1).strip() if social_match else ""
    if social:
        social = "\n".join(line for line in social.split("\n") if _is_real_social_line(line))

    return AuthorBio(bio=bio, social_links=social)


def clean_extracted_author(response: str) -> str | None:
    """Validate an oracle answer to the author-extraction prompt."""
    name = response.strip()
    lowered = name.lower()
    if (
        not name
        or name == UNKNOWN_AUTHOR
        or len(name) > MAX_AUTHOR_NAME_CHARS
        or "about the author" in lowered
        or "written by" in lowered
        or lowered == "author"
    ):
        return None
    return name


def _identity_from_record(record: DocumentRecord) -> AuthorIdentity:
    return AuthorIdentity(
        name=record.basename, path=record.path, aliases=record.header_list("aliases")
    )


class AuthorResolver:
    """Links author credits to pages in the people folder."""

    def __init__(
        self,
        store: DocumentStore,
        oracle: TextOracle,
        config: DocReaderConfig,
        search: AuthorSearch = search_author,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._config = config
        self._search = search

    def update_settings(self, config: DocReaderConfig) -> None:
        self._config = config

    # ── Lookup ───────────────────────────────────────────────────

    def find_identity(self, canonical_name: str) -> AuthorIdentity | None:
        """Return the first people-folder page whose name or alias matches exactly."""
        for record in self._store.list_documents(self._config.vault.people_folder):
            identity = _identity_from_record(record)
            if identity.matches(canonical_name):
                return identity
        return None

    def resolve_or_create(
        self,
        canonical_name: str,
        context_text: str,
        create_if_missing: bool | None = None,
    ) -> AuthorLinkResult:
        """Resolve one canonical name to a wiki link, creating a page if allowed.

        With creation disabled the link still targets the canonical name so
        the document's header stays consistent once a page appears.
        """
        if create_if_missing is None:
            create_if_missing = self._config.authors.create_pages

        existing = self.find_identity(canonical_name)
        if existing is not None:
            return AuthorLinkResult(author_name=canonical_name, author_link=existing.wiki_link)

        if not create_if_missing:
            return AuthorLinkResult(author_name=canonical_name, author_link=f"[[{canonical_name}]]")

        return self._create_identity(canonical_name, context_text)

    def _create_identity(self, canonical_name: str, context_text: str) -> AuthorLinkResult:
        path = join_path(self._config.vault.people_folder, f"{canonical_name}.md")
        link = f"[[{canonical_name}]]"

        if self._store.exists(path):
            return AuthorLinkResult(author_name=canonical_name, author_link=link)

        bio = AuthorBio()
        if self._oracle.is_configured():
            bio = self.generate_bio(canonical_name, context_text) or AuthorBio()

        page = render_author_page(canonical_name, bio.bio, bio.social_links)
        try:
            self._store.create_document(path, render_document({"aliases": []}, "\n" + page))
        except (DocReaderError, OSError):
            logger.warning("Failed to create author page %s", path, exc_info=True)
            return AuthorLinkResult(author_name=canonical_name, author_link=link)

        logger.info("Created author page %s", path)
        return AuthorLinkResult(author_name=canonical_name, author_link=link, created=True)

    # ── Oracle-backed helpers ────────────────────────────────────

    def generate_bio(self, author_name: str, article_content: str) -> AuthorBio | None:
        """Ask the oracle for a bio; ``None`` when the call fails."""
        web_results = self._search(author_name) if self._config.authors.web_search else ""
        prompt = get_author_bio_prompt(
            author_name,
            article_content,
            web_results=web_results,
            article_links=extract_social_links(article_content),
        )
        try:
            response = self._oracle.generate(prompt, label="author-bio")
        except LLMError as exc:
            logger.warning("Bio generation failed for %s: %s", author_name, exc)
            return None
        return parse_bio_response(response)

    def extract_with_oracle(self, content: str) -> str | None:
        try:
            response = self._oracle.generate(
                get_author_extraction_prompt(content), label="author-extraction"
            )
        except LLMError as exc:
            logger.warning("Author extraction failed: %s", exc)
            return None
        return clean_extracted_author(response)

    # ── Document-level linking ───────────────────────────────────

    def read_author_credit(self, content: str, header: dict[str, Any] | None = None) -> str | None:
        """Find the raw author credit for a document.

        Tries the raw-text header read first, then the parsed header, then
        (if enabled) the oracle. Values that are already wiki links count
        as absent.
        """
        key = self._config.authors.frontmatter_key
        credit = extract_scalar_field(content, key)

        if not credit and header:
            value = header.get(key)
            if isinstance(value, str) and value.strip() and not value.strip().startswith("[["):
                credit = value.strip()

        if not credit and self._config.authors.use_claude and self._oracle.is_configured():
            credit = self.extract_with_oracle(content)

        return credit

    def link_authors(
        self, content: str, header: dict[str, Any] | None = None
    ) -> MultiAuthorLinkResult:
        """Resolve every author in the document's credit, in credit order."""
        multi = MultiAuthorLinkResult()

        credit = self.read_author_credit(content, header)
        if not credit:
            return multi

        for raw_name in split_authors(credit):
            multi.add(self.resolve_or_create(normalize_name(raw_name), content))
        return multi
