"""Per-URL processing pipeline.

Each URL moves through checking -> extracting -> processing -> creating and
ends as done, review, skipped or failed. The cancellation predicate is
checked before every stage; an in-flight call is allowed to finish.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional

from .dedup import is_duplicate
from .error_classifier import EXTRACTION, classify_error
from .formatter import backlink_line, format_note, format_tag_hub_note, hub_note_path
from .llm.base import LLMProvider
from .log import get_logger
from .models import (
    CANCELLED,
    CHECKING,
    CREATING,
    DONE,
    EXTRACTING,
    FAILED,
    PROCESSING,
    REVIEW,
    SKIPPED,
    SUCCESS,
    ExtractedContent,
    ProcessingResult,
    ProcessedNote,
    VaultContext,
)
from .quality import assess_content_quality
from .utils import generate_filename, normalize_url
from .vault_client import VaultClient

logger = get_logger(__name__)

# Results after which a note for the URL exists in the vault
_SAVED_STATUSES = (SUCCESS, REVIEW, SKIPPED)

ExtractFn = Callable[[str], Awaitable[ExtractedContent]]
ProgressCallback = Callable[[str, str], None]
CancelPredicate = Callable[[], bool]


class HubTagRegistry:
    """Tags whose hub note has been handled in the current batch.

    claim() answers "am I the first worker to see this tag?" atomically, and
    holds a per-tag lock so the first worker's create finishes before any
    other worker appends to the same hub note.
    """

    def __init__(self):
        self._guard = asyncio.Lock()
        self._seen: set[str] = set()
        self._tag_locks: dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def claim(self, tag: str) -> AsyncIterator[bool]:
        async with self._guard:
            first = tag not in self._seen
            self._seen.add(tag)
            tag_lock = self._tag_locks.setdefault(tag, asyncio.Lock())
        async with tag_lock:
            yield first

    def __contains__(self, tag: str) -> bool:
        return tag in self._seen


class BatchUrlRegistry:
    """Normalized URLs owned by a worker in the current batch.

    A later URL that normalizes like an earlier one waits for the earlier
    worker. If that worker saved a note (or found one), the later URL is a
    duplicate; otherwise it takes over ownership and proceeds.
    """

    def __init__(self):
        self._owners: dict[str, asyncio.Future] = {}

    async def acquire(self, key: str) -> Optional[asyncio.Future]:
        """Return an ownership future, or None if an earlier twin saved a note."""
        while True:
            owner = self._owners.get(key)
            if owner is None:
                future = asyncio.get_running_loop().create_future()
                self._owners[key] = future
                return future
            if await asyncio.shield(owner):
                return None
            if self._owners.get(key) is owner:
                del self._owners[key]

    @staticmethod
    def release(future: asyncio.Future, saved: bool) -> None:
        if not future.done():
            future.set_result(saved)


class UrlPipeline:
    """Runs one URL at a time through the pipeline with shared batch state."""

    def __init__(
        self,
        client: VaultClient,
        provider: LLMProvider,
        vault_context: VaultContext,
        extract: ExtractFn,
        hub_tags: HubTagRegistry,
        on_progress: Optional[ProgressCallback] = None,
        is_cancelled: Optional[CancelPredicate] = None,
        batch_urls: Optional[BatchUrlRegistry] = None,
    ):
        self._client = client
        self._provider = provider
        self._vault_context = vault_context
        self._extract = extract
        self._hub_tags = hub_tags
        self._batch_urls = batch_urls if batch_urls is not None else BatchUrlRegistry()
        self._on_progress = on_progress
        self._is_cancelled = is_cancelled

    def _emit(self, url: str, status: str) -> None:
        if not self._on_progress:
            return
        try:
            self._on_progress(url, status)
        except Exception as e:
            logger.warning("progress_callback_failed", url=url, status=status, error=str(e))

    def _enter_stage(self, url: str, stage: str) -> bool:
        """Report the next stage, or False if the batch was cancelled."""
        if self._is_cancelled and self._is_cancelled():
            self._emit(url, CANCELLED)
            return False
        self._emit(url, stage)
        return True

    def _fail(
        self, url: str, err: object, category: Optional[str] = None
    ) -> ProcessingResult:
        message = str(err) or type(err).__name__
        category = category or classify_error(err)
        logger.warning("url_failed", url=url, category=category, error=message)
        self._emit(url, FAILED)
        return ProcessingResult.failed(url, message, category)

    async def run(self, url: str) -> ProcessingResult:
        """Process a single URL. Never raises."""
        ownership = None
        result = None
        try:
            if not self._enter_stage(url, CHECKING):
                result = ProcessingResult.cancelled(url)
            else:
                ownership = await self._batch_urls.acquire(normalize_url(url))
                if ownership is None or await is_duplicate(url, self._client):
                    self._emit(url, SKIPPED)
                    result = ProcessingResult.skipped(url)
                else:
                    result = await self._process(url)
        except Exception as e:
            result = self._fail(url, e)
        finally:
            if ownership is not None:
                saved = result is not None and result.status in _SAVED_STATUSES
                self._batch_urls.release(ownership, saved)
        return result

    async def _process(self, url: str) -> ProcessingResult:
        if not self._enter_stage(url, EXTRACTING):
            return ProcessingResult.cancelled(url)
        extracted = await self._extract(url)
        if extracted.status == FAILED:
            return self._fail(url, extracted.error or "Extraction failed", EXTRACTION)
        quality = assess_content_quality(extracted)

        if not self._enter_stage(url, PROCESSING):
            return ProcessingResult.cancelled(url)
        try:
            note = await self._provider.process_content(extracted, self._vault_context)
        except Exception as e:
            return self._fail(url, e)

        if not self._enter_stage(url, CREATING):
            return ProcessingResult.cancelled(url)
        filename = generate_filename(note.title)
        try:
            await self._client.create_note(
                f"{note.suggested_folder}/{filename}", format_note(note)
            )
        except Exception as e:
            return self._fail(url, e)

        await self._update_hub_notes(note, filename.removesuffix(".md"))

        if quality.is_low_quality:
            logger.info("url_needs_review", url=url, reason=quality.reason)
            self._emit(url, REVIEW)
            return ProcessingResult(
                url=url,
                status=REVIEW,
                note=note,
                folder=note.suggested_folder,
                content_quality=quality,
            )

        self._emit(url, DONE)
        return ProcessingResult(
            url=url, status=SUCCESS, note=note, folder=note.suggested_folder
        )

    async def _update_hub_notes(self, note: ProcessedNote, note_title: str) -> None:
        """Add a backlink to each tag's hub note. Failures are logged and ignored."""
        for tag in note.suggested_tags:
            path = hub_note_path(tag)
            try:
                async with self._hub_tags.claim(tag) as first:
                    if first and not await self._client.note_exists(path):
                        await self._client.create_note(
                            path, format_tag_hub_note(tag, [note_title])
                        )
                    else:
                        await self._client.append_to_note(path, backlink_line(note_title))
            except Exception as e:
                logger.debug("hub_note_update_failed", tag=tag, error=str(e))
