"""Turn batches of URLs into summarized, categorized Obsidian notes."""

__version__ = "0.1.0"
