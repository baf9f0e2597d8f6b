"""Utility functions for link2vault."""

import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Query parameters that only carry referral/analytics data
TRACKING_PARAMS = frozenset({
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "s", "ref_src", "ref_url", "fbclid", "gclid", "twclid",
    "mc_cid", "mc_eid",
})

# Mirror hosts that serve the same content as a canonical host
HOST_ALIASES = {
    "old.reddit.com": "reddit.com",
}

_MAX_SLUG_LENGTH = 60


def normalize_url(raw_url: str) -> str:
    """Canonicalize a URL for duplicate comparison.

    Returns the input unchanged if it is not an absolute URL.
    """
    try:
        parts = urlsplit(raw_url.strip())
        host = parts.hostname
    except ValueError:
        return raw_url
    if not parts.scheme or not host:
        return raw_url

    if host.startswith("www."):
        host = host[4:]
    host = HOST_ALIASES.get(host, host)

    netloc = f"[{host}]" if ":" in host else host
    try:
        port = parts.port
    except ValueError:
        return raw_url
    if port and port != 443:
        netloc = f"{netloc}:{port}"

    query = urlencode(
        [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key not in TRACKING_PARAMS
        ]
    )

    path = parts.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]

    normalized = urlunsplit(("https", netloc, path, query, ""))
    if normalized.endswith("?"):
        normalized = normalized[:-1]
    return normalized


def extract_domain(url: str) -> str:
    """Extract the domain from a URL."""
    domain = urlsplit(url).netloc
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def search_query_for(url: str) -> str:
    """Host + path of the normalized URL, used as a vault search query."""
    parts = urlsplit(normalize_url(url))
    if not parts.scheme or not parts.hostname:
        return url
    return parts.netloc + parts.path.rstrip("/")


def generate_filename(title: str) -> str:
    """Convert a note title to a filesystem-safe markdown file name."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")

    if len(slug) > _MAX_SLUG_LENGTH:
        truncated = slug[:_MAX_SLUG_LENGTH]
        last_hyphen = truncated.rfind("-")
        if last_hyphen > 40:
            slug = truncated[:last_hyphen]
        else:
            slug = truncated.rstrip("-")

    return f"{slug or 'untitled'}.md"


def count_words(text: str) -> int:
    return len(text.split())
