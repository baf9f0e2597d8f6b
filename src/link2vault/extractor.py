"""Firecrawl SDK wrapper for content extraction.

extract() never raises: every failure comes back as an ExtractedContent with
status "failed" and an error message.
"""

import asyncio
from typing import Optional

from firecrawl import FirecrawlApp

from .config import Config
from .log import get_logger
from .models import ExtractedContent
from .utils import count_words, extract_domain

logger = get_logger(__name__)

MAX_CONTENT_CHARS = 32_000
FETCH_TIMEOUT = 30.0

_PLATFORMS = {
    "x.com": "x",
    "twitter.com": "x",
    "mobile.twitter.com": "x",
    "linkedin.com": "linkedin",
    "reddit.com": "reddit",
    "old.reddit.com": "reddit",
}


def detect_platform(url: str) -> str:
    return _PLATFORMS.get(extract_domain(url).lower(), "web")


def truncate_at_boundary(text: str, max_length: int = MAX_CONTENT_CHARS) -> str:
    """Cut text to max_length, preferring a paragraph, sentence or line break."""
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    floor = int(max_length * 0.8)

    last_para = truncated.rfind("\n\n")
    if last_para > floor:
        return truncated[:last_para]
    last_sentence = truncated.rfind(". ")
    if last_sentence > floor:
        return truncated[: last_sentence + 1]
    last_newline = truncated.rfind("\n")
    if last_newline > floor:
        return truncated[:last_newline]
    return truncated


def _metadata_dict(result) -> dict:
    metadata_obj = result.metadata if hasattr(result, "metadata") else result.get("metadata", {})

    # Convert Pydantic model to dict if needed
    if hasattr(metadata_obj, "model_dump"):
        return metadata_obj.model_dump()
    if isinstance(metadata_obj, dict):
        return metadata_obj
    return {}


def _first(metadata: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = metadata.get(key)
        if isinstance(value, list):
            value = value[0] if value else None
        if value:
            return str(value)
    return None


class Extractor:
    """Fetches a URL through Firecrawl and turns it into ExtractedContent."""

    def __init__(self, config: Config, timeout: float = FETCH_TIMEOUT):
        self._app = FirecrawlApp(api_key=config.firecrawl_api_key)
        self._timeout = timeout

    async def extract(self, url: str) -> ExtractedContent:
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self._app.scrape, url, formats=["markdown"]),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            return ExtractedContent.failed(url, "Request timed out")
        except Exception as e:
            logger.debug("scrape_failed", url=url, error=str(e))
            return ExtractedContent.failed(url, f"Fetch failed: {e}")

        return self._to_content(url, result)

    def _to_content(self, url: str, result) -> ExtractedContent:
        if not result:
            return ExtractedContent.failed(url, "Empty response from Firecrawl")

        metadata = _metadata_dict(result)
        status_code = metadata.get("status_code") or metadata.get("statusCode")
        if isinstance(status_code, int) and status_code >= 400:
            return ExtractedContent.failed(url, f"HTTP {status_code}")

        markdown = result.markdown if hasattr(result, "markdown") else result.get("markdown", "")
        if not markdown or not markdown.strip():
            return ExtractedContent.failed(url, "No markdown content returned")

        content = truncate_at_boundary(markdown.strip())
        platform = detect_platform(url)
        return ExtractedContent(
            url=url,
            title=_first(metadata, "title", "og_title", "ogTitle") or "",
            content=content,
            author=_first(metadata, "author", "article_author"),
            date_published=_first(
                metadata, "published_time", "publishedTime", "article_published_time"
            ),
            word_count=count_words(content),
            type="article" if platform == "web" else "social-media",
            platform=platform,
        )
