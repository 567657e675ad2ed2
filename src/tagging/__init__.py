"""Tag and category generation for clipped articles."""
