"""Custom exceptions for link2vault."""

from typing import Optional


class Link2VaultError(Exception):
    """Base exception for link2vault."""


class ConfigError(Link2VaultError):
    """Raised when configuration is missing or invalid."""


class VaultClientError(Link2VaultError):
    """Raised when a call to the Obsidian Local REST API fails.

    ``status`` is the HTTP status code, or None when the request never got
    a response (connection refused, DNS, TLS, timeout).
    """

    def __init__(self, message: str, status: Optional[int] = None, endpoint: str = ""):
        super().__init__(message)
        self.status = status
        self.endpoint = endpoint


class LLMProcessingError(Link2VaultError):
    """Raised when summarization or categorization fails."""

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage  # "summarization" or "categorization"
