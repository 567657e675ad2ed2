"""Pure data models for vault documents.

No I/O here. Paths are vault-relative, forward-slash separated strings
(``Articles/Technology/some-article.md``), independent of the host OS.
"""

from __future__ import annotations

import posixpath
import re
from typing import Any

from pydantic import BaseModel, Field

_SLASH_RUN_RE = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path.

    Converts backslashes, collapses repeated slashes, and strips leading
    and trailing slashes and whitespace.
    """
    cleaned = path.replace("\\", "/").strip()
    cleaned = _SLASH_RUN_RE.sub("/", cleaned)
    return cleaned.strip("/")


def join_path(*parts: str) -> str:
    """Join vault path segments, skipping empty ones."""
    return normalize_path("/".join(p for p in parts if p))


def is_under(path: str, folder: str) -> bool:
    """Whether ``path`` is inside ``folder`` (any depth), or equal to it."""
    path = normalize_path(path)
    folder = normalize_path(folder)
    if not folder:
        return True
    return path == folder or path.startswith(folder + "/")


class DocumentRecord(BaseModel):
    """A markdown document: path, parsed header, and body text."""

    path: str
    header: dict[str, Any] = Field(default_factory=dict)
    body: str = ""

    @property
    def name(self) -> str:
        """File name with extension."""
        return posixpath.basename(self.path)

    @property
    def basename(self) -> str:
        """File name without extension, used as the wiki-link target."""
        stem, _ext = posixpath.splitext(self.name)
        return stem

    @property
    def folder(self) -> str:
        return posixpath.dirname(self.path)

    @property
    def wiki_link(self) -> str:
        return f"[[{self.basename}]]"

    def header_list(self, key: str) -> list[str]:
        """Read a header field that may be a string or a list of strings."""
        value = self.header.get(key)
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [v for v in value if isinstance(v, str)]
        return []
