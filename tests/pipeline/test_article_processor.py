"""Tests for docreader.pipeline - the enrichment orchestrator and runner."""

from datetime import UTC, date, datetime
from unittest.mock import MagicMock

import pytest

from docreader.images import FetchedImage
from docreader.llm import ClaudeOracle
from docreader.pipeline import (
    ArticleProcessor,
    ProcessingQueue,
    ProcessingResult,
    StepResult,
    should_process,
    summarize_result,
)
from docreader.pipeline.article import merge_tags, published_date

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
TAG_RESPONSE = "CATEGORY: Technology\nTAGS:\n- ai\n- machine-learning"

ARTICLE = """\
---
source: web-clipper
url: https://example.com/ai-post
author: "Jane Smith and John Doe"
published: 2025-02-14T09:30:00Z
tags:
  - clippings
---
# Thinking Machines

Some words about artificial intelligence.
"""


def _no_search(name: str) -> str:
    return ""


def _fail_fetch(url: str) -> FetchedImage:
    raise AssertionError(f"unexpected download of {url}")


@pytest.fixture
def make_processor(vault, config):
    def _make(oracle, *, config=config, image_fetch=_fail_fetch):
        return ArticleProcessor(
            vault,
            oracle,
            config,
            image_fetch=image_fetch,
            author_search=_no_search,
            clock=lambda: FIXED_NOW,
        )

    return _make


class TestEndToEnd:
    def test_full_enrichment(self, make_processor, make_oracle, vault, write):
        write("People/John Doe.md", "---\naliases: []\n---\n# John Doe\n")
        write(
            "Articles/Technology/Older.md",
            "---\nsource: web-clipper\ntags:\n  - research/ai\n---\nOld\n",
        )
        path = "Articles/Thinking Machines.md"
        write(path, ARTICLE)
        oracle = make_oracle({"tags": TAG_RESPONSE, "author-bio": "BIO:\nJane writes.\nSOCIAL:\n"})
        processor = make_processor(oracle)

        result = processor.process(path)

        assert result.success is True
        assert result.errors == []
        assert result.tags_generated == ["research/ai", "research/machine-learning"]
        assert result.category == "Technology"
        assert [r.author_name for r in result.author_results] == ["Jane Smith", "John Doe"]
        assert [r.created for r in result.author_results] == [True, False]
        assert result.author_names == ["Jane Smith", "John Doe"]
        assert result.authors_created == 1
        assert result.moved_to == "Articles/Technology/Thinking Machines.md"
        assert result.path == result.moved_to
        assert result.reading_time_minutes == 1
        assert result.related_count == 1
        assert result.skipped_duplicate is False

        doc = vault.get_document(result.path)
        assert doc.header["author"] == ["[[Jane Smith]]", "[[John Doe]]"]
        assert doc.header["tags"] == ["clippings", "research/ai", "research/machine-learning"]
        assert doc.header["reading-time"] == "1 min"
        assert doc.header["published-date"] == "2025-02-14"
        assert doc.header["dr-processed"] is True
        assert doc.header["dr-processed-at"] == FIXED_NOW.isoformat()
        assert doc.body.endswith("\n## Related Articles\n\n- [[Older]]\n")
        assert not vault.exists(path)
        assert vault.exists("People/Jane Smith.md")

    def test_reprocessing_replaces_related_section(self, make_processor, make_oracle, vault, write):
        write(
            "Articles/Technology/Older.md",
            "---\nsource: web-clipper\ntags:\n  - research/ai\n---\nOld\n",
        )
        write("Articles/new.md", "---\nsource: web-clipper\n---\nA short note on machines.\n")
        processor = make_processor(make_oracle({"tags": TAG_RESPONSE}))

        first = processor.process("Articles/new.md")
        second = processor.process(first.path)

        assert second.success is True
        assert second.path == "Articles/Technology/new.md"
        assert second.reading_time_minutes == first.reading_time_minutes
        body = vault.get_document(second.path).body
        assert body.count("## Related Articles") == 1
        assert body == "A short note on machines.\n\n## Related Articles\n\n- [[Older]]\n"

    def test_single_author_written_as_string(self, make_processor, make_oracle, vault, write, config):
        write("Articles/post.md", "---\nsource: web-clipper\nauthor: Smith\n---\nBody\n")
        config = config.with_updates("processing", generate_tags=False)
        processor = make_processor(make_oracle(), config=config)

        result = processor.process("Articles/post.md")

        assert result.success
        assert vault.get_header("Articles/post.md")["author"] == "[[Smith]]"


class TestDuplicateGate:
    def test_duplicate_skips_everything(self, make_processor, make_oracle, vault, write, vault_root):
        write("Articles/Tech/original.md", "---\nurl: https://example.com/ai-post\n---\nOld\n")
        path = "Articles/Thinking Machines.md"
        write(path, ARTICLE + "\n![img](https://cdn.example/a.png)\n")
        before = (vault_root / path).read_text()
        oracle = make_oracle({"tags": TAG_RESPONSE})
        fetch = MagicMock()
        processor = make_processor(oracle, image_fetch=fetch)

        result = processor.process(path)

        assert result.skipped_duplicate is True
        assert result.success is True
        assert result.duplicate_of == "Articles/Tech/original.md"
        assert result.images_downloaded == 0
        assert oracle.calls == []
        fetch.assert_not_called()
        assert (vault_root / path).read_text() == before
        assert not vault.exists("People/Jane Smith.md")

    def test_duplicate_check_failure_is_fatal(self, make_oracle, config):
        store = MagicMock()
        store.get_document.return_value = MagicMock(header={"url": "https://x"}, body="")
        store.list_documents.side_effect = OSError("disk gone")
        processor = ArticleProcessor(store, make_oracle(), config)

        result = processor.process("Articles/a.md")

        assert result.success is False
        assert result.errors == ["Processing failed: disk gone"]
        store.patch_header.assert_not_called()


class TestStepFailures:
    def test_tag_failure_does_not_block_authors(self, make_processor, make_oracle, vault, write, config):
        write("Articles/post.md", "---\nsource: web-clipper\nauthor: Jane Smith\n---\nBody\n")
        processor = make_processor(make_oracle({"tags": TAG_RESPONSE}))
        processor.tags.generate = MagicMock(side_effect=RuntimeError("parser exploded"))

        result = processor.process("Articles/post.md")

        assert result.success is True
        assert result.errors == ["Tag generation failed: parser exploded"]
        assert result.author_names == ["Jane Smith"]
        assert vault.get_header("Articles/post.md")["dr-processed"] is True

    def test_author_failure_does_not_block_tags(self, make_processor, make_oracle, vault, write):
        write("Articles/post.md", "---\nsource: web-clipper\nauthor: Jane Smith\n---\nBody\n")
        processor = make_processor(make_oracle({"tags": TAG_RESPONSE}))
        processor.authors.link_authors = MagicMock(side_effect=RuntimeError("people folder locked"))

        result = processor.process("Articles/post.md")

        assert result.success is True
        assert result.errors == ["Author linking failed: people folder locked"]
        assert result.tags_generated == ["research/ai", "research/machine-learning"]
        assert vault.get_header(result.path)["author"] == "Jane Smith"

    def test_move_conflict_recorded(self, make_processor, make_oracle, vault, write):
        write("Articles/post.md", "---\nsource: web-clipper\n---\nBody\n")
        write("Articles/Technology/post.md", "---\ntitle: other\n---\n")
        processor = make_processor(make_oracle({"tags": TAG_RESPONSE}))

        result = processor.process("Articles/post.md")

        assert result.success is True
        assert result.moved_to is None
        assert result.path == "Articles/post.md"
        assert result.errors[0].startswith("Failed to move to category folder: ")
        assert vault.get_header("Articles/post.md")["dr-processed"] is True

    def test_already_in_category_folder(self, make_processor, make_oracle, write):
        write("Articles/Technology/post.md", "---\nsource: web-clipper\n---\nBody\n")
        result = make_processor(make_oracle({"tags": TAG_RESPONSE})).process(
            "Articles/Technology/post.md"
        )
        assert result.moved_to is None
        assert result.path == "Articles/Technology/post.md"
        assert result.errors == []

    def test_image_failures_counted(self, make_processor, make_oracle, vault, write):
        good = "https://cdn.example/good.png"
        bad = "https://cdn.example/bad.png"
        write("Articles/post.md", f"---\nsource: web-clipper\n---\n![g]({good})\n![b]({bad})\n")

        def fetch(url: str) -> FetchedImage:
            if url == bad:
                raise OSError("404")
            return FetchedImage(data=b"png", content_type="image/png")

        result = make_processor(make_oracle(configured=False), image_fetch=fetch).process(
            "Articles/post.md"
        )

        assert result.images_downloaded == 1
        assert result.images_failed == 1
        assert result.errors == ["Failed to download 1 image(s)"]
        body = vault.get_document("Articles/post.md").body
        assert "![g](assets/images/img-" in body
        assert f"![b]({bad})" in body

    def test_header_patch_failure_is_fatal(self, make_oracle, config):
        store = MagicMock()
        store.get_document.return_value = MagicMock(
            header={"source": "web-clipper"}, body="Body", path="Articles/a.md"
        )
        store.list_documents.return_value = []
        store.patch_header.side_effect = OSError("read-only")
        processor = ArticleProcessor(store, make_oracle(configured=False), config)

        result = processor.process("Articles/a.md")

        assert result.success is False
        assert result.errors[-1] == "Processing failed: read-only"

    def test_unconfigured_oracle_still_marks_processed(self, make_processor, make_oracle, vault, write):
        write("Articles/post.md", "---\nsource: web-clipper\n---\n")

        result = make_processor(make_oracle(configured=False)).process("Articles/post.md")

        assert result.success is True
        assert result.tags_generated == []
        assert result.reading_time_minutes == 0
        header = vault.get_header("Articles/post.md")
        assert header["dr-processed"] is True
        assert "reading-time" not in header

    def test_missing_document(self, make_processor, make_oracle):
        result = make_processor(make_oracle()).process("Articles/nope.md")
        assert result.success is False
        assert result.errors == ["Processing failed: Document not found: Articles/nope.md"]


class TestShouldProcess:
    def test_rules(self):
        assert should_process({"source": "web-clipper"})
        assert not should_process({"source": "web-clipper", "dr-processed": True})
        assert not should_process({"source": "manual"})
        assert not should_process(None)
        assert should_process(None, force=True)
        assert should_process({"source": "web-clipper", "dr-processed": "yes"})

    def test_custom_marker(self):
        assert should_process({"source": "clipper"}, source_marker="clipper")


class TestHelpers:
    def test_published_date(self):
        assert published_date("2025-02-14T09:30:00Z") == "2025-02-14"
        assert published_date("2025-02-14 09:30") == "2025-02-14"
        assert published_date(date(2025, 2, 14)) == "2025-02-14"
        assert published_date(datetime(2025, 2, 14, 9, 30)) == "2025-02-14"
        assert published_date(None) is None

    def test_merge_tags(self):
        assert merge_tags(["a", "b"], ["b", "c"]) == ["a", "b", "c"]

    def test_step_result(self):
        ok = StepResult.success(3)
        failed = StepResult.failure("nope")
        assert ok.ok and ok.value == 3
        assert not failed.ok and failed.error == "nope"


class TestSummarizeResult:
    def test_changes(self):
        result = ProcessingResult(
            success=True,
            path="Articles/Technology/Post.md",
            images_downloaded=2,
            author_names=["Jane Smith"],
            authors_created=1,
            tags_generated=["research/ai"],
            category="Technology",
            related_count=3,
        )
        assert summarize_result(result) == (
            'Processed "Post" - 2 images, created author: Jane Smith, 1 tags, '
            "filed in: Technology, 3 related"
        )

    def test_linked_authors(self):
        result = ProcessingResult(success=True, path="a.md", author_names=["A B", "C D"])
        assert summarize_result(result) == 'Processed "a" - linked authors: A B, C D'

    def test_no_changes(self):
        assert summarize_result(ProcessingResult(success=True, path="a.md")) == (
            'Processed "a" (no changes)'
        )

    def test_duplicate_and_failure(self):
        dup = ProcessingResult(success=True, path="a.md", skipped_duplicate=True)
        failed = ProcessingResult(path="a.md", errors=["Processing failed: boom"])
        assert summarize_result(dup).startswith('Skipped "a"')
        assert summarize_result(failed) == 'Failed to process "a" - Processing failed: boom'


class TestUpdateSettings:
    def test_propagates_to_components(self, vault, config):
        oracle = ClaudeOracle(config.claude)
        processor = ArticleProcessor(vault, oracle, config)
        updated = config.with_updates("tags", prefix="topics/").with_updates(
            "claude", api_key="sk-new"
        )

        processor.update_settings(updated)

        assert processor.config is updated
        assert processor.tags.parse("TAGS:\n- ai").tags == ["topics/ai"]
        assert oracle.is_configured()


class TestProcessingQueue:
    def test_skips_ineligible(self, make_processor, make_oracle, vault, write):
        write("Articles/done.md", "---\nsource: web-clipper\ndr-processed: true\n---\n")
        queue = ProcessingQueue(make_processor(make_oracle(configured=False)), vault)
        assert queue.submit("Articles/done.md") is None
        assert queue.submit("Articles/done.md", force=True).success

    def test_in_flight_path_dropped(self, make_processor, make_oracle, vault, write):
        write("Articles/a.md", "---\nsource: web-clipper\n---\n")
        processor = make_processor(make_oracle(configured=False))
        queue = ProcessingQueue(processor, vault)
        inner: list = []

        original = processor.process

        def reentrant(path):
            assert queue.is_in_flight(path)
            inner.append(queue.submit(path))
            return original(path)

        processor.process = reentrant

        assert queue.submit("Articles/a.md").success
        assert inner == [None]
        assert not queue.is_in_flight("Articles/a.md")

    def test_scan(self, make_processor, make_oracle, vault, write):
        write("Articles/a.md", "---\nsource: web-clipper\n---\n")
        write("Articles/b.md", "---\nsource: web-clipper\ndr-processed: true\n---\n")
        write("Articles/c.md", "---\ntitle: manual note\n---\n")
        write("Notes/d.md", "---\nsource: web-clipper\n---\n")
        queue = ProcessingQueue(make_processor(make_oracle(configured=False)), vault)

        assert queue.eligible_paths() == ["Articles/a.md"]
        results = queue.scan()

        assert [r.path for r in results] == ["Articles/a.md"]
        assert queue.eligible_paths() == []
