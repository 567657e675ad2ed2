"""docreader - enrichment pipeline for clipped web articles in a markdown vault."""

__version__ = "0.1.0"
