"""Sequential processing of articles with a per-path in-flight guard."""

from __future__ import annotations

import logging
import threading

from docreader.pipeline.article import ArticleProcessor
from docreader.pipeline.models import ProcessingResult
from docreader.vault.models import normalize_path
from docreader.vault.store import DocumentStore

logger = logging.getLogger(__name__)


class ProcessingQueue:
    """Runs :class:`ArticleProcessor` so one path is never processed twice at once.

    A request for a path that is already in flight is dropped rather than
    queued; the running pass will see the latest content anyway.
    """

    def __init__(self, processor: ArticleProcessor, store: DocumentStore) -> None:
        self._processor = processor
        self._store = store
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    def is_in_flight(self, path: str) -> bool:
        with self._lock:
            return normalize_path(path) in self._in_flight

    def _claim(self, path: str) -> bool:
        with self._lock:
            if path in self._in_flight:
                return False
            self._in_flight.add(path)
            return True

    def _release(self, path: str) -> None:
        with self._lock:
            self._in_flight.discard(path)

    def submit(self, path: str, force: bool = False) -> ProcessingResult | None:
        """Process ``path`` if it is eligible and not already being processed.

        Returns None when the document was skipped without running the
        pipeline (ineligible, missing, or already in flight).
        """
        path = normalize_path(path)
        if not self._claim(path):
            logger.info("Already processing %s, skipping", path)
            return None
        try:
            if not force:
                header = self._store.get_header(path)
                if not self._processor.should_process(header):
                    logger.debug("Not eligible for processing: %s", path)
                    return None
            elif not self._store.exists(path):
                logger.warning("Document not found: %s", path)
                return None
            return self._processor.process(path)
        finally:
            self._release(path)

    def eligible_paths(self) -> list[str]:
        """Paths under the articles folder that would be processed without ``force``."""
        folder = self._processor.config.vault.articles_folder
        return [
            record.path
            for record in self._store.list_documents(folder)
            if self._processor.should_process(record.header)
        ]

    def scan(self) -> list[ProcessingResult]:
        """Process every eligible article, one after another."""
        results: list[ProcessingResult] = []
        for path in self.eligible_paths():
            result = self.submit(path)
            if result is not None:
                results.append(result)
        return results
