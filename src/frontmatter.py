"""YAML frontmatter handling for markdown documents.

Headers are parsed into plain dicts with PyYAML and serialized back in
insertion order, so a parse → mutate → render round trip keeps unrelated
fields intact.
"""

from __future__ import annotations

import math
import re
from typing import Any

import yaml

from docreader.errors import FrontmatterError

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

WORDS_PER_MINUTE = 200


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split a document into its raw header block and body.

    Returns ``(None, text)`` when the document has no header.
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    return match.group(1) or "", text[match.end():]


def parse_header(raw: str | None) -> dict[str, Any]:
    """Parse a raw YAML header block into a dict.

    Raises:
        FrontmatterError: If the block is not valid YAML or not a mapping.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Invalid YAML header: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontmatterError(f"Header must be a mapping, got {type(data).__name__}")
    return data


def parse_document(text: str) -> tuple[dict[str, Any], str]:
    """Parse a markdown document into ``(header, body)``."""
    raw, body = split_frontmatter(text)
    return parse_header(raw), body


def render_header(header: dict[str, Any]) -> str:
    dumped = yaml.safe_dump(
        header,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=1000,
    )
    return f"---\n{dumped}---\n"


def render_document(header: dict[str, Any], body: str) -> str:
    """Serialize a header and body back into markdown text."""
    if not header:
        return body
    return render_header(header) + body


def extract_scalar_field(text: str, key: str) -> str | None:
    """Best-effort read of a single-line scalar header field.

    Works on raw text without a YAML parser, so it can run against content
    that was written moments ago. Only the simplest form is recognised:
    ``key: value`` on one line, optionally wrapped in single or double
    quotes. Lists, block scalars, and values that are already wiki links
    yield ``None``.
    """
    match = re.match(r"^---\r?\n([\s\S]*?)\r?\n---", text)
    if not match:
        return None

    field_match = re.search(
        rf"^{re.escape(key)}:[ \t]*[\"']?([^\"'\n]+)[\"']?[ \t]*$",
        match.group(1),
        re.MULTILINE,
    )
    if not field_match:
        return None

    value = field_match.group(1).strip()
    if not value or value.startswith("[["):
        return None
    return value


def count_words(body: str) -> int:
    return len(body.split())


def reading_time_minutes(body: str) -> int:
    """Minutes to read ``body`` at 200 words per minute, rounded up.

    An empty body reads in 0 minutes; any content takes at least 1.
    """
    words = count_words(body)
    if words == 0:
        return 0
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
