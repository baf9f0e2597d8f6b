"""Tests for batch orchestration: ordering, concurrency and fatal errors."""

from __future__ import annotations

import asyncio
import dataclasses
import time

import pytest

from conftest import FakeProvider, FakeVaultClient, make_extract
from link2vault.models import TagGroup
from link2vault.orchestrator import process_urls, run_with_concurrency


class TestRunWithConcurrency:
    @pytest.mark.asyncio
    async def test_preserves_input_order(self):
        delays = [0.03, 0.01, 0.02]

        async def task(delay):
            await asyncio.sleep(delay)
            return delay

        assert await run_with_concurrency(delays, 3, task) == delays

    @pytest.mark.asyncio
    async def test_bounds_in_flight_tasks(self):
        in_flight = 0
        peak = 0

        async def task(item):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return item * 2

        assert await run_with_concurrency(list(range(7)), 3, task) == [0, 2, 4, 6, 8, 10, 12]
        assert peak == 3

    @pytest.mark.asyncio
    async def test_empty(self):
        async def task(item):
            raise AssertionError("should not run")

        assert await run_with_concurrency([], 5, task) == []


class TestProcessUrls:
    @pytest.mark.asyncio
    async def test_results_in_input_order(self, vault, provider, config, cache):
        urls = ["https://example.com/a", "https://example.com/b", "https://example.com/c"]
        extract = make_extract(delays={urls[0]: 0.03, urls[1]: 0.01, urls[2]: 0.02})

        results = await process_urls(urls, config, provider, extract_fn=extract,
                                     client=vault, cache=cache)

        assert [r.url for r in results] == urls
        assert all(r.status == "success" for r in results)

    @pytest.mark.asyncio
    async def test_concurrency_limit_timing(self, config, cache):
        vault = FakeVaultClient()
        provider = FakeProvider(tags=())
        urls = [f"https://example.com/{i}" for i in range(5)]
        extract = make_extract(delays={url: 0.05 for url in urls})

        start = time.perf_counter()
        results = await process_urls(urls, config, provider, extract_fn=extract,
                                     client=vault, cache=cache, concurrency=2)
        elapsed = time.perf_counter() - start

        assert len(results) == 5
        assert 0.15 <= elapsed < 0.25

    @pytest.mark.asyncio
    async def test_duplicate_and_failure_in_one_batch(self, vault, provider, config, cache):
        urls = ["https://example.com/a", "https://example.com/a/", "https://bad.example/x"]
        extract = make_extract(failures={"https://bad.example/x": "HTTP 404"})
        seen: dict[int, str] = {}

        results = await process_urls(
            urls, config, provider, extract_fn=extract, client=vault, cache=cache,
            on_result=lambda i, r: seen.__setitem__(i, r.progress_label),
        )

        assert [r.status for r in results] == ["success", "skipped", "failed"]
        assert results[2].error_category == "extraction"
        assert seen == {0: "done", 1: "skipped", 2: "failed"}
        assert len([p for p in vault.notes if p.startswith("Tech/")]) == 1

    @pytest.mark.asyncio
    async def test_context_failure_is_fatal(self, vault, provider, config, cache):
        vault.fail_list_folders = RuntimeError("vault unreachable")
        with pytest.raises(RuntimeError, match="vault unreachable"):
            await process_urls(["https://example.com/a"], config, provider,
                               extract_fn=make_extract(), client=vault, cache=cache)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_context_is_cached_across_batches(self, vault, provider, config, cache):
        extract = make_extract()
        await process_urls(["https://example.com/a"], config, provider,
                           extract_fn=extract, client=vault, cache=cache)
        await process_urls(["https://example.com/b"], config, provider,
                           extract_fn=extract, client=vault, cache=cache)
        assert vault.list_folder_calls == 1

    @pytest.mark.asyncio
    async def test_config_settings_reach_provider(self, vault, config, cache):
        contexts = []

        class RecordingProvider(FakeProvider):
            async def process_content(self, content, vault_context):
                contexts.append(vault_context)
                return await super().process_content(content, vault_context)

        groups = (TagGroup(name="Topics", tags=("ai",)),)
        config = dataclasses.replace(config, vault_organization="para", tag_groups=groups)

        await process_urls(["https://example.com/a"], config, RecordingProvider(),
                           extract_fn=make_extract(), client=vault, cache=cache)

        assert contexts[0].organization == "para"
        assert contexts[0].tag_groups == groups
        assert contexts[0].folders == ("Inbox", "Tech")


class TestInvalidConcurrency:
    @pytest.mark.asyncio
    async def test_pool_rejects_zero_workers(self):
        async def task(item):
            return item

        with pytest.raises(ValueError, match="concurrency must be at least 1"):
            await run_with_concurrency([1, 2], 0, task)

    @pytest.mark.asyncio
    async def test_process_urls_rejects_zero_workers(self, vault, provider, config, cache):
        with pytest.raises(ValueError, match="concurrency must be at least 1"):
            await process_urls(["https://example.com/a"], config, provider,
                               extract_fn=make_extract(), client=vault, cache=cache,
                               concurrency=0)
        assert vault.list_folder_calls == 0
