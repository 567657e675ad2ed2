"""Prompt templates for author extraction and bio generation."""

from __future__ import annotations

AUTHOR_EXTRACTION_CHARS = 3000
BIO_EXCERPT_CHARS = 2000

UNKNOWN_AUTHOR = "UNKNOWN"

BIO_PLACEHOLDER = "*Author of clipped articles. Bio to be added.*"
SOCIAL_PLACEHOLDER = "*Social media links to be added.*"

ARTICLES_QUERY = """\
```dataview
TABLE WITHOUT ID file.link as "Title", clipped-at as "Clipped"
FROM [[]]
SORT clipped-at DESC
```"""


def get_author_extraction_prompt(content: str) -> str:
    """Prompt asking for the article author's name, or UNKNOWN."""
    return f"""Extract the author's full name from this article. \
Look for bylines, author credits, or signatures.

IMPORTANT: Return ONLY the person's actual name (e.g., "John Smith"). Do NOT return:
- Generic text like "About The Author" or "Written By"
- Website names or publication names

If you cannot find a specific person's name, respond with exactly: {UNKNOWN_AUTHOR}

Article content (first {AUTHOR_EXTRACTION_CHARS} characters):
{content[:AUTHOR_EXTRACTION_CHARS]}"""


def get_author_bio_prompt(
    author_name: str,
    article_content: str,
    web_results: str = "",
    article_links: str = "",
) -> str:
    """Prompt asking for a short bio plus a SOCIAL block of links."""
    web_section = ""
    if web_results:
        web_section = f"WEB SEARCH RESULTS about {author_name}:\n{web_results}\n\n"

    return f"""Generate a brief author bio and compile social media links for {author_name}.

{web_section}LINKS FOUND IN ARTICLE:
{article_links or "None found"}

ARTICLE EXCERPT (for additional context):
{article_content[:BIO_EXCERPT_CHARS]}

Based on the web search results and article, respond in this exact format:

BIO:
[2-3 sentence bio about the author - who they are, what they're known for, \
their expertise. Use information from web search results primarily.]

SOCIAL:
- Website: [personal website or blog URL]
- Twitter/X: [@handle or URL]
- Substack: [URL if applicable]
- LinkedIn: [URL if found]
- Other: [any other relevant professional links]

Only include social links you actually found. Do not make up URLs. \
If a platform isn't found, omit that line entirely."""


def render_author_page(author_name: str, bio: str = "", social_links: str = "") -> str:
    """Body of a new author page (header is added by the caller)."""
    return f"""# {author_name}

## Bio

{bio or BIO_PLACEHOLDER}

## Social Media

{social_links or SOCIAL_PLACEHOLDER}

## Articles

{ARTICLES_QUERY}
"""
