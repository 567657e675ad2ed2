"""Author-credit splitting and name normalization.

Pure string functions, no I/O. ``split_authors`` turns a byline such as
``"John Smith, Jane Doe, and Bob Johnson"`` into individual names, and
``normalize_name`` maps each one to its canonical display form.
"""

from __future__ import annotations

import re

_AND_SEPARATOR_RE = re.compile(r"\s+and\s+", re.IGNORECASE)
_AMPERSAND_SEPARATOR_RE = re.compile(r"\s+&\s+")
_COMMA_SPLIT_RE = re.compile(r",\s+")
_PREFIX_RE = re.compile(r"^(?:(?:written )?by\s+|author:\s*)", re.IGNORECASE)

# Words that mark a "X, Y" credit as an organization rather than "Last, First".
ORGANIZATION_INDICATORS: tuple[str, ...] = (
    "association",
    "guild",
    "foundation",
    "institute",
    "society",
    "organization",
    "corporation",
    "inc",
    "llc",
    "ltd",
    "company",
    "group",
    "committee",
    "board",
    "council",
    "department",
    "office",
)


def split_authors(raw: str | None) -> list[str]:
    """Split an author credit into individual names.

    ``" and "`` (any case), ``" & "`` and ``", "`` are equivalent
    separators, so "A, B, and C" yields three names. Blank input yields
    an empty list.
    """
    if not raw or not raw.strip():
        return []

    authors = raw.strip()
    authors = _AND_SEPARATOR_RE.sub(", ", authors)
    authors = _AMPERSAND_SEPARATOR_RE.sub(", ", authors)

    parts = (part.strip() for part in _COMMA_SPLIT_RE.split(authors))
    return [part for part in parts if part]


def looks_like_organization(text: str) -> bool:
    """Whether ``text`` contains any organization indicator (case-insensitive substring)."""
    lowered = text.lower()
    return any(word in lowered for word in ORGANIZATION_INDICATORS)


def _invert_last_first(name: str) -> str:
    if "," not in name:
        return name

    parts = [p.strip() for p in name.split(",")]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return name

    last, first = parts
    if looks_like_organization(f"{last} {first}"):
        return name
    # Approximate: a second part of up to two words is taken as given names.
    if len(first.split(" ")) > 2:
        return name
    return f"{first} {last}"


def _title_case_token(token: str) -> str:
    if not token:
        return token
    # Short all-caps tokens are initials ("J.K.", "JR"); periods don't count
    if len(token.replace(".", "")) <= 3 and token == token.upper():
        return token
    return token[0].upper() + token[1:].lower()


def title_case(name: str) -> str:
    return " ".join(_title_case_token(token) for token in name.split(" "))


def normalize_name(name: str) -> str:
    """Return the canonical display form of one author name.

    Strips a "by" / "written by" / "author:" prefix, turns "Last, First"
    into "First Last" unless the credit looks like an organization, and
    title-cases each token while keeping short all-caps initials.
    """
    normalized = _PREFIX_RE.sub("", name.strip())
    normalized = _invert_last_first(normalized)
    return title_case(normalized)
