"""Map failures to error categories and user-facing retry metadata.

The policy table below is the single source of truth for whether a category
is worth retrying and what the user should do about it.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Optional

import httpx

from .exceptions import LLMProcessingError, VaultClientError
from .models import ErrorMetadata

NETWORK = "network"
TIMEOUT = "timeout"
LOGIN_REQUIRED = "login-required"
BOT_PROTECTION = "bot-protection"
PAGE_NOT_FOUND = "page-not-found"
EXTRACTION = "extraction"
LLM = "llm"
VAULT = "vault"
UNKNOWN = "unknown"

ERROR_CATEGORIES = (
    NETWORK, TIMEOUT, LOGIN_REQUIRED, BOT_PROTECTION, PAGE_NOT_FOUND,
    EXTRACTION, LLM, VAULT, UNKNOWN,
)

# category -> (retryable, suggested action)
_POLICY = {
    NETWORK: (True, "retry"),
    TIMEOUT: (True, "retry"),
    EXTRACTION: (True, "retry"),
    UNKNOWN: (True, "retry"),
    LLM: (True, "settings"),
    VAULT: (True, "settings"),
    LOGIN_REQUIRED: (False, "open"),
    BOT_PROTECTION: (False, "open"),
    PAGE_NOT_FOUND: (False, "skip"),
}

_USER_MESSAGES = {
    NETWORK: (
        "The URL couldn't be reached. This usually means your internet "
        "connection is offline or unstable, the website is temporarily down, "
        "or the URL is invalid."
    ),
    TIMEOUT: (
        "The webpage took too long to respond. The website may be very slow "
        "or temporarily down."
    ),
    LOGIN_REQUIRED: (
        "This webpage requires you to be logged in. Content behind a login "
        "wall can't be accessed."
    ),
    BOT_PROTECTION: (
        "This website uses security technology (Cloudflare, reCAPTCHA, etc.) "
        "that blocked automated access."
    ),
    PAGE_NOT_FOUND: (
        "The URL doesn't exist or was deleted. Trying again won't help."
    ),
    EXTRACTION: (
        "The page was downloaded but no readable content could be extracted. "
        "It may rely on heavy JavaScript or unusual formatting."
    ),
    LLM: (
        "The content couldn't be processed by the AI provider. Your API key "
        "may be invalid, your account may be out of credits, you may have hit "
        "a rate limit, or the service may be down."
    ),
    VAULT: (
        "Couldn't reach your Obsidian vault. Obsidian may not be running, the "
        "Local REST API plugin may be disabled, or the vault URL/API key is wrong."
    ),
    UNKNOWN: "Something unexpected happened.",
}

_TIMEOUT_PATTERNS = ("timeout", "timed out", "aborted")
_NETWORK_PATTERNS = (
    "failed to fetch", "fetch failed", "network", "connection", "connect error",
    "name or service not known", "nodename nor servname", "getaddrinfo",
    "err_internet_disconnected", "err_name_not_resolved", "err_connection",
    "dns", "ssl", "tls", "certificate verify",
)
_BOT_PATTERNS = (
    "cloudflare", "captcha", "bot protection", "access denied", "blocked",
    "ddos-guard", "datadome", "perimeterx", "akamai",
)
_LOGIN_PATTERNS = (
    "sign in", "log in", "login required", "authentication required",
    "unauthorized",
)
_EXTRACTION_PATTERNS = (
    "could not parse", "extracted content is empty", "extraction failed",
    "non-html content", "empty response", "no markdown content",
)
_LLM_PATTERNS = (
    "openrouter", "anthropic", "openai", "api key", "rate limit",
    "quota exceeded", "llm",
)
_VAULT_PATTERNS = ("vault", "obsidian", "rest api")

_HTTP_STATUS_RE = re.compile(r"\bhttp (\d{3})\b")


def _status_category(status: int) -> Optional[str]:
    if status in (401, 403):
        return LOGIN_REQUIRED
    if status in (404, 410) or 500 <= status < 600:
        return PAGE_NOT_FOUND
    return None


def _explicit_status(err: object, message: str) -> Optional[int]:
    if isinstance(err, httpx.HTTPStatusError):
        return err.response.status_code
    match = _HTTP_STATUS_RE.search(message)
    if match:
        return int(match.group(1))
    return None


def _contains(message: str, patterns: tuple[str, ...]) -> bool:
    return any(p in message for p in patterns)


def classify_error(
    err: object,
    http_status: Optional[int] = None,
    message: Optional[str] = None,
) -> str:
    """Classify a failure into one of ERROR_CATEGORIES.

    Args:
        err: The exception (or any object) that describes the failure.
        http_status: A known HTTP status for the failed request, if any.
        message: Overrides the text used for pattern matching.
    """
    text = message if message is not None else str(err)
    lower = text.lower()

    status = http_status or _explicit_status(err, lower)
    if status:
        category = _status_category(status)
        if category:
            return category

    if isinstance(
        err, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)
    ) or _contains(lower, _TIMEOUT_PATTERNS):
        return TIMEOUT
    if isinstance(err, (ConnectionError, httpx.NetworkError)) or _contains(
        lower, _NETWORK_PATTERNS
    ):
        return NETWORK
    if _contains(lower, _BOT_PATTERNS):
        return BOT_PROTECTION
    if _contains(lower, _LOGIN_PATTERNS):
        return LOGIN_REQUIRED
    if _contains(lower, _EXTRACTION_PATTERNS):
        return EXTRACTION
    if isinstance(err, LLMProcessingError) or _contains(lower, _LLM_PATTERNS):
        return LLM
    if isinstance(err, VaultClientError) or _contains(lower, _VAULT_PATTERNS):
        return VAULT
    return UNKNOWN


def is_retryable(category: str) -> bool:
    return _POLICY.get(category, _POLICY[UNKNOWN])[0]


def suggested_action(category: str) -> str:
    return _POLICY.get(category, _POLICY[UNKNOWN])[1]


def build_error_metadata(
    category: str,
    technical_details: str,
    retry_count: Optional[int] = None,
) -> ErrorMetadata:
    """Describe a categorized failure for display next to a failed URL."""
    if category not in _POLICY:
        category = UNKNOWN
    retryable, action = _POLICY[category]
    return ErrorMetadata(
        category=category,
        user_message=_USER_MESSAGES[category],
        technical_details=technical_details,
        suggested_action=action,
        is_retryable=retryable,
        timestamp=datetime.now(timezone.utc).isoformat(),
        retry_count=retry_count,
    )
