"""Pure data models for author resolution.

No I/O, no business logic. Services import from this module.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class AuthorIdentity(BaseModel):
    """A known author page in the people folder."""

    name: str
    path: str
    aliases: list[str] = Field(default_factory=list)

    @property
    def wiki_link(self) -> str:
        return f"[[{self.name}]]"

    def matches(self, canonical_name: str) -> bool:
        """Exact case-insensitive match on the display name or any alias."""
        needle = canonical_name.lower()
        if self.name.lower() == needle:
            return True
        return any(alias.lower() == needle for alias in self.aliases)


class AuthorLinkResult(BaseModel):
    """Outcome of resolving one canonical author name."""

    author_name: str | None = None
    author_link: str | None = None
    created: bool = False


class MultiAuthorLinkResult(BaseModel):
    """Per-author results for one document, in credit order."""

    results: list[AuthorLinkResult] = Field(default_factory=list)

    @property
    def all_author_names(self) -> list[str]:
        return list(dict.fromkeys(r.author_name for r in self.results if r.author_name))

    @property
    def all_author_links(self) -> list[str]:
        return list(dict.fromkeys(r.author_link for r in self.results if r.author_link))

    @property
    def authors_created(self) -> int:
        return sum(1 for r in self.results if r.created)

    def add(self, result: AuthorLinkResult) -> None:
        self.results.append(result)


class AuthorBio(BaseModel):
    """Bio and social-link text parsed from an oracle response."""

    bio: str = ""
    social_links: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.bio and not self.social_links
