"""Prompt template for tag and category generation."""

from __future__ import annotations

TAG_CONTENT_CHARS = 4000

PREFERRED_CATEGORIES: tuple[str, ...] = (
    "Economics",
    "Technology",
    "Politics",
    "Culture",
    "Science",
    "Business",
    "Health",
    "Law",
    "History",
    "Philosophy",
    "Religion",
    "Media",
    "Sports",
    "Arts",
)


def get_tag_prompt(
    content: str,
    *,
    tag_prefix: str,
    max_tags: int,
    existing_tags: list[str] | None = None,
) -> str:
    """Build the prompt asking for ``CATEGORY:`` and ``TAGS:`` sections."""
    existing_note = ""
    if existing_tags:
        existing_note = (
            "\n- The article already has these tags (avoid duplicating these concepts): "
            + ", ".join(existing_tags)
        )

    categories = ", ".join(PREFERRED_CATEGORIES)

    return f"""Analyze this article and:
1. Generate {max_tags} hierarchical tags for categorization
2. Determine the PRIMARY category for filing

For tags:
- Use hierarchical format with "/" separators (e.g., "economics/trade-policy", \
"technology/ai/machine-learning")
- Tags should be lowercase with hyphens for spaces
- Focus on the main topics, themes, and subject areas
- Be specific but not too narrow{existing_note}
- Each tag should start with the prefix "{tag_prefix}" (I will add it if missing)

For the category:
- Use Title Case
- Choose from these common categories when appropriate:
  {categories}
- If none fit well, create a new appropriate category name
- Choose the single most appropriate subject area
- Prefer broader categories (e.g., "Technology" over "Machine Learning")

Respond in this exact format:
CATEGORY: [category name]
TAGS:
- tag1
- tag2

Article content (first {TAG_CONTENT_CHARS} characters):
{content[:TAG_CONTENT_CHARS]}"""
