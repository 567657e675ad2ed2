"""Author-credit parsing and author-page resolution."""
