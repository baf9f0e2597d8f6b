"""Tests for the Firecrawl extraction wrapper."""

from __future__ import annotations

import time
from types import SimpleNamespace

import pytest

import link2vault.extractor as extractor_module
from link2vault.extractor import Extractor, detect_platform, truncate_at_boundary

MARKDOWN = "# Heading\n\nSome article text that is long enough to count as real content."


class FakeFirecrawl:
    result = None
    error = None
    delay = 0.0

    def __init__(self, api_key):
        self.api_key = api_key

    def scrape(self, url, formats):
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def firecrawl(monkeypatch):
    class Fake(FakeFirecrawl):
        pass

    monkeypatch.setattr(extractor_module, "FirecrawlApp", Fake)
    return Fake


class TestExtract:
    @pytest.mark.asyncio
    async def test_document_object(self, firecrawl, config):
        firecrawl.result = SimpleNamespace(
            markdown=MARKDOWN,
            metadata={"title": "Hello", "author": ["Ada"], "publishedTime": "2026-01-02", "statusCode": 200},
        )
        content = await Extractor(config).extract("https://www.example.com/a")
        assert content.status == "success"
        assert content.title == "Hello"
        assert content.author == "Ada"
        assert content.date_published == "2026-01-02"
        assert content.platform == "web"
        assert content.type == "article"
        assert content.word_count == len(MARKDOWN.split())

    @pytest.mark.asyncio
    async def test_dict_result_and_social_platform(self, firecrawl, config):
        firecrawl.result = {"markdown": MARKDOWN, "metadata": {"ogTitle": "Post"}}
        content = await Extractor(config).extract("https://x.com/user/status/1")
        assert content.title == "Post"
        assert content.platform == "x"
        assert content.type == "social-media"

    @pytest.mark.asyncio
    async def test_http_error_status(self, firecrawl, config):
        firecrawl.result = {"markdown": MARKDOWN, "metadata": {"statusCode": 404}}
        content = await Extractor(config).extract("https://example.com/gone")
        assert content.status == "failed"
        assert content.error == "HTTP 404"

    @pytest.mark.asyncio
    async def test_empty_markdown(self, firecrawl, config):
        firecrawl.result = {"markdown": "  ", "metadata": {}}
        content = await Extractor(config).extract("https://example.com/a")
        assert content.error == "No markdown content returned"

    @pytest.mark.asyncio
    async def test_no_result(self, firecrawl, config):
        firecrawl.result = None
        content = await Extractor(config).extract("https://example.com/a")
        assert content.error == "Empty response from Firecrawl"

    @pytest.mark.asyncio
    async def test_sdk_error(self, firecrawl, config):
        firecrawl.error = RuntimeError("402 Payment Required")
        content = await Extractor(config).extract("https://example.com/a")
        assert content.status == "failed"
        assert content.error == "Fetch failed: 402 Payment Required"

    @pytest.mark.asyncio
    async def test_timeout(self, firecrawl, config):
        firecrawl.delay = 0.2
        firecrawl.result = {"markdown": MARKDOWN}
        content = await Extractor(config, timeout=0.05).extract("https://example.com/a")
        assert content.error == "Request timed out"


def test_detect_platform():
    assert detect_platform("https://twitter.com/u/status/1") == "x"
    assert detect_platform("https://www.linkedin.com/posts/x") == "linkedin"
    assert detect_platform("https://old.reddit.com/r/python") == "reddit"
    assert detect_platform("https://example.com") == "web"


def test_truncate_prefers_paragraph_break():
    text = "a" * 90 + "\n\n" + "b" * 50
    assert truncate_at_boundary(text, 100) == "a" * 90
    assert truncate_at_boundary("short", 100) == "short"
    assert truncate_at_boundary("c" * 150, 100) == "c" * 100
