"""Tests for duplicate detection against existing vault notes."""

from __future__ import annotations

import pytest

from conftest import FakeVaultClient
from link2vault.dedup import is_duplicate, source_url_of

EXISTING_NOTE = """---
source: "https://example.com/a"
tags:
  - ai
status: unread
---

# Existing
"""


class TestSourceUrlOf:
    def test_quoted(self):
        assert source_url_of(EXISTING_NOTE) == "https://example.com/a"

    def test_unquoted(self):
        assert source_url_of("---\nsource: https://x.com/u/status/1\n---\nbody") == "https://x.com/u/status/1"

    def test_no_frontmatter(self):
        assert source_url_of("source: https://example.com/a\n") is None

    def test_no_source_key(self):
        assert source_url_of("---\ntitle: hello\n---\n") is None


class TestIsDuplicate:
    @pytest.mark.asyncio
    async def test_equivalent_url_is_duplicate(self):
        client = FakeVaultClient(notes={"Tech/existing.md": EXISTING_NOTE})
        assert await is_duplicate("http://www.example.com/a/?utm_source=feed", client)

    @pytest.mark.asyncio
    async def test_different_path_is_not_duplicate(self):
        client = FakeVaultClient(notes={"Tech/existing.md": EXISTING_NOTE})
        assert not await is_duplicate("https://example.com/b", client)

    @pytest.mark.asyncio
    async def test_mention_in_body_only_is_not_duplicate(self):
        note = "---\nsource: https://other.com/post\n---\nSee https://example.com/a"
        client = FakeVaultClient(notes={"Tech/other.md": note})
        assert not await is_duplicate("https://example.com/a", client)

    @pytest.mark.asyncio
    async def test_search_failure_is_not_duplicate(self):
        client = FakeVaultClient(notes={"Tech/existing.md": EXISTING_NOTE})

        async def broken_search(query):
            raise RuntimeError("search endpoint down")

        client.search_notes = broken_search
        assert not await is_duplicate("https://example.com/a", client)

    @pytest.mark.asyncio
    async def test_unreadable_match_is_skipped(self):
        client = FakeVaultClient(notes={"Tech/existing.md": EXISTING_NOTE})

        async def search(query):
            return ["Tech/missing.md", "Tech/existing.md"]

        client.search_notes = search
        assert await is_duplicate("https://example.com/a", client)
