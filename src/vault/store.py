"""Filesystem-backed document store.

The pipeline talks to documents only through the :class:`DocumentStore`
protocol. :class:`FileSystemVault` implements it over a directory of
markdown files, the layout an Obsidian vault uses on disk.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from docreader.errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentStoreError,
    FrontmatterError,
)
from docreader.frontmatter import parse_document, render_document
from docreader.vault.models import DocumentRecord, normalize_path

logger = logging.getLogger(__name__)

HeaderMutator = Callable[[dict[str, Any]], None]


class DocumentStore(Protocol):
    """Narrow document-store interface consumed by the pipeline."""

    def list_documents(self, folder_prefix: str = "") -> list[DocumentRecord]: ...

    def get_document(self, path: str) -> DocumentRecord | None: ...

    def get_header(self, path: str) -> dict[str, Any] | None: ...

    def exists(self, path: str) -> bool: ...

    def create_document(self, path: str, initial_body: str) -> DocumentRecord: ...

    def move_document(self, path: str, new_path: str) -> DocumentRecord: ...

    def patch_header(self, path: str, mutator: HeaderMutator) -> DocumentRecord: ...

    def write_body(self, path: str, body: str) -> DocumentRecord: ...

    def write_binary(self, path: str, data: bytes) -> None: ...


def _atomic_write(path: Path, content: str | bytes) -> None:
    """Write to a temp file beside ``path`` and rename it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        if isinstance(content, bytes):
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        else:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileSystemVault:
    """:class:`DocumentStore` over a directory of markdown files."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    # ── Private helpers ──────────────────────────────────────────

    def _abs(self, path: str) -> Path:
        rel = normalize_path(path)
        if not rel:
            raise DocumentStoreError("Empty document path")
        if any(part == ".." for part in rel.split("/")):
            raise DocumentStoreError(f"Path escapes the vault: {path}")
        return self.root / rel

    def _rel(self, abs_path: Path) -> str:
        return abs_path.relative_to(self.root).as_posix()

    def _read(self, abs_path: Path) -> DocumentRecord:
        text = abs_path.read_text(encoding="utf-8")
        header, body = parse_document(text)
        return DocumentRecord(path=self._rel(abs_path), header=header, body=body)

    def _require(self, path: str) -> Path:
        abs_path = self._abs(path)
        if not abs_path.is_file():
            raise DocumentNotFoundError(normalize_path(path))
        return abs_path

    # ── Read operations ──────────────────────────────────────────

    def list_documents(self, folder_prefix: str = "") -> list[DocumentRecord]:
        """Return every markdown document under ``folder_prefix``.

        Documents whose header cannot be parsed are returned with an empty
        header so scans over the corpus never fail on one bad file.
        """
        prefix = normalize_path(folder_prefix)
        base = self.root / prefix if prefix else self.root
        if not base.is_dir():
            return []

        records: list[DocumentRecord] = []
        for abs_path in sorted(base.rglob("*.md")):
            if not abs_path.is_file():
                continue
            if any(part.startswith(".") for part in abs_path.relative_to(self.root).parts):
                continue
            try:
                records.append(self._read(abs_path))
            except FrontmatterError as exc:
                logger.warning("Unreadable header in %s: %s", self._rel(abs_path), exc)
                text = abs_path.read_text(encoding="utf-8")
                records.append(DocumentRecord(path=self._rel(abs_path), body=text))
        return records

    def get_document(self, path: str) -> DocumentRecord | None:
        abs_path = self._abs(path)
        if not abs_path.is_file():
            return None
        return self._read(abs_path)

    def get_header(self, path: str) -> dict[str, Any] | None:
        """Return the parsed header, or None if the document is missing or has none."""
        record = self.get_document(path)
        if record is None or not record.header:
            return None
        return record.header

    def exists(self, path: str) -> bool:
        return self._abs(path).exists()

    # ── Write operations ─────────────────────────────────────────

    def create_document(self, path: str, initial_body: str) -> DocumentRecord:
        """Create a new document; ``initial_body`` is the full file text.

        Raises DocumentExistsError if the path is occupied.
        """
        abs_path = self._abs(path)
        if abs_path.exists():
            raise DocumentExistsError(normalize_path(path))
        _atomic_write(abs_path, initial_body)
        logger.debug("Created %s", self._rel(abs_path))
        return self._read(abs_path)

    def move_document(self, path: str, new_path: str) -> DocumentRecord:
        """Move a document, creating destination folders as needed.

        Raises DocumentNotFoundError if the source is missing and
        DocumentExistsError if the destination is occupied.
        """
        src = self._require(path)
        dest = self._abs(new_path)
        if dest == src:
            return self._read(src)
        if dest.exists():
            raise DocumentExistsError(normalize_path(new_path))
        dest.parent.mkdir(parents=True, exist_ok=True)
        src.rename(dest)
        logger.debug("Moved %s -> %s", self._rel(src), self._rel(dest))
        return self._read(dest)

    def patch_header(self, path: str, mutator: HeaderMutator) -> DocumentRecord:
        """Apply ``mutator`` to the header and write the document back atomically."""
        abs_path = self._require(path)
        record = self._read(abs_path)
        header = dict(record.header)
        mutator(header)
        _atomic_write(abs_path, render_document(header, record.body))
        return DocumentRecord(path=record.path, header=header, body=record.body)

    def write_body(self, path: str, body: str) -> DocumentRecord:
        """Replace the body while keeping the header as-is."""
        abs_path = self._require(path)
        record = self._read(abs_path)
        _atomic_write(abs_path, render_document(record.header, body))
        return DocumentRecord(path=record.path, header=record.header, body=body)

    def write_binary(self, path: str, data: bytes) -> None:
        _atomic_write(self._abs(path), data)
