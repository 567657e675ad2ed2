"""Context gathering for author bios: web search and in-article links."""

from __future__ import annotations

import html
import logging
import re
import urllib.parse
import urllib.request

logger = logging.getLogger(__name__)

SEARCH_URL = "https://html.duckduckgo.com/html/?q={query}"
USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
MAX_SNIPPETS = 5
MAX_LINKS = 5
MIN_SNIPPET_CHARS = 50

_SNIPPET_RE = re.compile(r'<a class="result__snippet"[^>]*>([\s\S]*?)</a>', re.IGNORECASE)
_RESULT_RE = re.compile(r'<a class="result__a"[^>]*href="([^"]*)"[^>]*>([\s\S]*?)</a>', re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")

_MD_LINK_RE = re.compile(r"\[([^\]]+)\]\((https?://[^)]+)\)")
_SOCIAL_URL_RE = re.compile(
    r"https?://(?:www\.)?(twitter\.com|x\.com|substack\.com|patreon\.com|linkedin\.com)[^\s)>\]]+"
)
_SOCIAL_TEXT_HINTS = ("twitter", "@", "substack", "patreon", "linkedin", "blog", "website", "author")
_SOCIAL_URL_HINTS = (
    "twitter.com",
    "x.com",
    "substack.com",
    "patreon.com",
    "linkedin.com",
    "medium.com",
)


def _clean_html(fragment: str) -> str:
    return html.unescape(_TAG_RE.sub("", fragment)).replace("\xa0", " ").strip()


def _fetch_html(url: str, timeout: int = 15) -> str:
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return resp.read().decode("utf-8", errors="replace")


def parse_search_results(page: str) -> str:
    """Format snippets and result links from a DuckDuckGo HTML results page.

    Returns an empty string when the page holds nothing usable.
    """
    snippets: list[str] = []
    for match in _SNIPPET_RE.finditer(page):
        if len(snippets) >= MAX_SNIPPETS:
            break
        snippet = _clean_html(match.group(1))
        if len(snippet) > MIN_SNIPPET_CHARS:
            snippets.append(snippet)

    links: list[str] = []
    for match in _RESULT_RE.finditer(page):
        if len(links) >= MAX_LINKS:
            break
        url = match.group(1)
        title = _clean_html(match.group(2))
        if url and title and "duckduckgo.com" not in url:
            links.append(f"{title}: {url}")

    sections: list[str] = []
    if snippets:
        sections.append("Search snippets:\n" + "\n".join(f"- {s}" for s in snippets))
    if links:
        sections.append("Relevant links:\n" + "\n".join(f"- {link}" for link in links))
    return "\n\n".join(sections)


def search_author(author_name: str, fetch=_fetch_html) -> str:
    """Search the web for background on ``author_name``.

    Never raises: any network or parsing failure yields an empty string.
    """
    query = urllib.parse.quote_plus(f"{author_name} writer author biography")
    try:
        page = fetch(SEARCH_URL.format(query=query))
    except Exception:
        logger.warning("Author web search failed for %s", author_name, exc_info=True)
        return ""
    return parse_search_results(page)


def extract_social_links(content: str) -> str:
    """Collect author-related links from article markdown, one per line."""
    links: list[str] = []

    for match in _MD_LINK_RE.finditer(content):
        text, url = match.group(1), match.group(2)
        lowered = text.lower()
        if any(hint in lowered for hint in _SOCIAL_TEXT_HINTS) or any(
            hint in url for hint in _SOCIAL_URL_HINTS
        ):
            links.append(f"{text}: {url}")

    for match in _SOCIAL_URL_RE.finditer(content):
        url = match.group(0)
        if not any(url in link for link in links):
            links.append(url)

    return "\n".join(links)
