"""A* search engine: incremental stepping, run to completion, path extraction."""
