"""Pipeline layer: orchestrates the enrichment steps over vault documents.

  article  - one document through duplicate gate, images, authors, tags,
             filing, header patch and related links
  runner   - eligibility checks, per-path in-flight guard, vault scans
"""

from docreader.pipeline.article import ArticleProcessor, should_process, summarize_result
from docreader.pipeline.models import ProcessingResult, StepResult
from docreader.pipeline.runner import ProcessingQueue

__all__ = [
    "ArticleProcessor",
    "ProcessingQueue",
    "ProcessingResult",
    "StepResult",
    "should_process",
    "summarize_result",
]
