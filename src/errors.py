"""Exception hierarchy for vault and header I/O.

Oracle failures live in :mod:`docreader.llm` as :class:`LLMError`.
"""

from __future__ import annotations


class DocReaderError(Exception):
    """Base error for docreader."""


class FrontmatterError(DocReaderError):
    """Raised when a document header cannot be parsed."""


class DocumentStoreError(DocReaderError):
    """Base error for document store operations."""


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a document path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Document not found: {path}")
        self.path = path


class DocumentExistsError(DocumentStoreError):
    """Raised when creating or moving onto an occupied path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Destination already exists: {path}")
        self.path = path
