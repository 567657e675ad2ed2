"""Duplicate-capture detection by source URL."""

from __future__ import annotations

import logging

from docreader.config import DocReaderConfig
from docreader.vault.models import normalize_path
from docreader.vault.store import DocumentStore

logger = logging.getLogger(__name__)

URL_KEY = "url"


class DuplicateDetector:
    """Finds other articles that were clipped from the same URL.

    Matching is exact and case-sensitive: no scheme, trailing-slash or
    query-string normalization. Every call re-scans the articles folder.
    """

    def __init__(self, store: DocumentStore, config: DocReaderConfig) -> None:
        self._store = store
        self._config = config

    def update_settings(self, config: DocReaderConfig) -> None:
        self._config = config

    def find_duplicate(self, url: str | None, excluding_path: str = "") -> str | None:
        """Return the path of the first other article with ``url``, if any."""
        if not url:
            return None
        excluded = normalize_path(excluding_path)
        for record in self._store.list_documents(self._config.vault.articles_folder):
            if record.path == excluded:
                continue
            if record.header.get(URL_KEY) == url:
                logger.debug("Duplicate of %s found at %s", url, record.path)
                return record.path
        return None

    def is_duplicate(self, url: str | None, excluding_path: str = "") -> bool:
        return self.find_duplicate(url, excluding_path) is not None
