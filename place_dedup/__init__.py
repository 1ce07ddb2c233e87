"""Place Deduplication — find, score and cluster duplicate place records."""

__version__ = "0.1.0"
