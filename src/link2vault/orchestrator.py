"""Batch orchestrator: runs the pipeline over many URLs concurrently."""

import asyncio
import dataclasses
import itertools
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from .config import DEFAULT_CONCURRENCY, Config
from .extractor import Extractor
from .llm.base import LLMProvider
from .log import get_logger
from .models import ProcessingResult
from .pipeline import (
    BatchUrlRegistry,
    CancelPredicate,
    ExtractFn,
    HubTagRegistry,
    ProgressCallback,
    UrlPipeline,
)
from .vault_client import VaultClient
from .vault_context import VaultContextCache, default_cache

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ResultCallback = Callable[[int, ProcessingResult], None]


async def run_with_concurrency(
    items: Sequence[T],
    concurrency: int,
    task: Callable[[T], Awaitable[R]],
) -> list[R]:
    """Run task over items with at most `concurrency` in flight.

    Results are returned in input order regardless of completion order.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")
    results: list[Optional[R]] = [None] * len(items)
    # next() on a shared counter is atomic between awaits
    next_index = itertools.count()

    async def worker() -> None:
        while True:
            index = next(next_index)
            if index >= len(items):
                return
            results[index] = await task(items[index])

    await asyncio.gather(*(worker() for _ in range(min(concurrency, len(items)))))
    return results  # type: ignore[return-value]


async def process_urls(
    urls: Sequence[str],
    config: Config,
    provider: LLMProvider,
    on_progress: Optional[ProgressCallback] = None,
    extract_fn: Optional[ExtractFn] = None,
    is_cancelled: Optional[CancelPredicate] = None,
    *,
    client: Optional[VaultClient] = None,
    cache: Optional[VaultContextCache] = None,
    on_result: Optional[ResultCallback] = None,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[ProcessingResult]:
    """Process a batch of URLs into vault notes.

    Building the vault context is the only fatal step: if it fails the
    exception propagates and no URL is processed. Every per-URL failure is
    returned as a failed ProcessingResult.

    Args:
        urls: URLs to process, in order.
        config: Application config; supplies the vault connection, tag groups
            and organization mode.
        provider: AI provider used to summarize and categorize.
        on_progress: Called with (url, status) on every stage transition.
        extract_fn: Extractor to use; defaults to Firecrawl.
        is_cancelled: Polled before each stage.
        client: Vault client to use instead of one built from config.
        cache: Vault context cache; defaults to the process-wide cache.
        on_result: Called with (index, result) as each URL finishes.
        concurrency: Maximum URLs in flight at once.

    Returns:
        One ProcessingResult per URL, in input order.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    if client is None:
        async with VaultClient(config.vault_url, config.vault_api_key) as owned:
            return await process_urls(
                urls, config, provider, on_progress, extract_fn, is_cancelled,
                client=owned, cache=cache, on_result=on_result,
                concurrency=concurrency,
            )

    cache = cache if cache is not None else default_cache
    extract = extract_fn or Extractor(config).extract

    base_context = await cache.get_context(client)
    vault_context = dataclasses.replace(
        base_context,
        tag_groups=tuple(config.tag_groups),
        organization=config.vault_organization,
    )

    pipeline = UrlPipeline(
        client=client,
        provider=provider,
        vault_context=vault_context,
        extract=extract,
        hub_tags=HubTagRegistry(),
        on_progress=on_progress,
        is_cancelled=is_cancelled,
        batch_urls=BatchUrlRegistry(),
    )

    logger.info("batch_started", urls=len(urls), concurrency=concurrency)
    indexed = list(enumerate(urls))

    async def run_one(item: tuple[int, str]) -> ProcessingResult:
        index, url = item
        result = await pipeline.run(url)
        if on_result:
            on_result(index, result)
        return result

    results = await run_with_concurrency(indexed, concurrency, run_one)
    logger.info("batch_finished", urls=len(urls))
    return results
