"""Tests for docreader.frontmatter."""

import pytest

from docreader.errors import FrontmatterError
from docreader.frontmatter import (
    extract_scalar_field,
    parse_document,
    parse_header,
    reading_time_minutes,
    render_document,
    split_frontmatter,
)


class TestSplitFrontmatter:
    def test_with_header(self):
        assert split_frontmatter("---\na: 1\n---\nbody") == ("a: 1", "body")

    def test_without_header(self):
        assert split_frontmatter("body only") == (None, "body only")

    def test_empty_header(self):
        assert split_frontmatter("---\n---\nbody") == ("", "body")


class TestParseHeader:
    def test_mapping(self):
        assert parse_header("title: A\ntags: [x, y]") == {"title": "A", "tags": ["x", "y"]}

    def test_invalid_yaml(self):
        with pytest.raises(FrontmatterError):
            parse_header("key: [unclosed")

    def test_not_a_mapping(self):
        with pytest.raises(FrontmatterError):
            parse_header("- a\n- b")

    def test_round_trip(self):
        text = "---\ntitle: A\nauthor: '[[Jane Smith]]'\ntags:\n- research/ai\n---\nBody\n"
        header, body = parse_document(text)
        assert render_document(header, body) == text

    def test_render_without_header(self):
        assert render_document({}, "Body") == "Body"


class TestExtractScalarField:
    def test_plain(self):
        assert extract_scalar_field("---\nauthor: Jane Smith\n---\n", "author") == "Jane Smith"

    @pytest.mark.parametrize("quote", ['"', "'"])
    def test_quoted(self, quote):
        text = f"---\nauthor: {quote}Jane Smith{quote}\n---\n"
        assert extract_scalar_field(text, "author") == "Jane Smith"

    def test_wiki_link_is_absent(self):
        assert extract_scalar_field('---\nauthor: "[[Jane Smith]]"\n---\n', "author") is None

    def test_list_is_absent(self):
        assert extract_scalar_field("---\nauthor:\n  - Jane\n---\n", "author") is None

    def test_no_header(self):
        assert extract_scalar_field("author: Jane", "author") is None

    def test_other_key(self):
        assert extract_scalar_field("---\ntitle: X\n---\n", "author") is None


class TestReadingTime:
    @pytest.mark.parametrize(
        "words, minutes",
        [(0, 0), (1, 1), (200, 1), (201, 2), (1000, 5)],
    )
    def test_minutes(self, words, minutes):
        assert reading_time_minutes(" ".join(["word"] * words)) == minutes
