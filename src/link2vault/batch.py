"""Batch lifecycle: owns the observable ProcessingState for one run.

The runner seeds every URL as queued, tracks stage transitions, persists
snapshots as the batch advances, and always finalizes the state, even when
the orchestrator raises or the task is cancelled. A finalized state has
exactly one result per URL.
"""

import time
from typing import Optional, Sequence

from .config import Config
from .error_classifier import classify_error
from .llm.base import LLMProvider
from .log import get_logger
from .models import CANCELLED_ERROR, QUEUED, ProcessingResult, ProcessingState
from .orchestrator import process_urls
from .pipeline import ExtractFn, ProgressCallback
from .storage import StateStore
from .vault_client import VaultClient
from .vault_context import VaultContextCache

logger = get_logger(__name__)


class BatchRunner:
    """Runs one batch at a time and keeps its ProcessingState current."""

    def __init__(
        self,
        store: Optional[StateStore] = None,
        cache: Optional[VaultContextCache] = None,
        client: Optional[VaultClient] = None,
    ):
        self._store = store
        self._cache = cache
        self._client = client
        self._cancel_requested = False
        self.state = ProcessingState()

    def cancel(self) -> None:
        """Ask running workers to stop at their next stage boundary."""
        if self.state.active:
            logger.info("batch_cancel_requested")
        self._cancel_requested = True

    def is_cancelled(self) -> bool:
        return self._cancel_requested

    def _persist(self) -> None:
        """Save the snapshot. A write failure is logged and the batch goes on."""
        if self._store is None:
            return
        try:
            self._store.save_state(self.state)
        except OSError as e:
            logger.warning("state_save_failed", error=str(e))

    async def run(
        self,
        urls: Sequence[str],
        config: Config,
        provider: LLMProvider,
        extract_fn: Optional[ExtractFn] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ProcessingState:
        """Process urls and return the finalized state."""
        urls = list(urls)
        self._cancel_requested = False
        self.state = ProcessingState(
            active=True,
            urls=urls,
            url_statuses={url: QUEUED for url in urls},
            started_at=time.time(),
        )
        self._persist()

        completed: dict[int, ProcessingResult] = {}

        def handle_progress(url: str, status: str) -> None:
            self.state.url_statuses[url] = status
            self._persist()
            if on_progress:
                on_progress(url, status)

        def handle_result(index: int, result: ProcessingResult) -> None:
            completed[index] = result
            self.state.results.append(result)
            self._persist()

        results: Optional[list[ProcessingResult]] = None
        fatal_category: Optional[str] = None
        try:
            results = await process_urls(
                urls,
                config,
                provider,
                on_progress=handle_progress,
                extract_fn=extract_fn,
                is_cancelled=self.is_cancelled,
                client=self._client,
                cache=self._cache,
                on_result=handle_result,
                concurrency=config.concurrency,
            )
        except Exception as e:
            self.state.error = str(e) or type(e).__name__
            fatal_category = classify_error(e)
            logger.error("batch_failed", error=self.state.error, exc_info=True)
        finally:
            self._finalize(results, completed, fatal_category)

        return self.state

    def _finalize(
        self,
        results: Optional[list[ProcessingResult]],
        completed: dict[int, ProcessingResult],
        fatal_category: Optional[str],
    ) -> None:
        state = self.state
        if results is None:
            # Orchestrator raised or was cancelled: fill the gaps
            fallback = state.error or CANCELLED_ERROR
            results = [
                completed.get(index)
                or ProcessingResult.failed(url, fallback, fatal_category)
                for index, url in enumerate(state.urls)
            ]

        state.results = list(results)
        for result in results:
            state.url_statuses[result.url] = result.progress_label
        state.active = False
        state.cancelled = self._cancel_requested
        self._persist()

        if self._store is not None:
            try:
                self._store.append_history(state.results)
            except OSError as e:
                logger.warning("history_save_failed", error=str(e))
        logger.info(
            "batch_finalized",
            urls=len(state.urls),
            cancelled=state.cancelled,
            error=state.error,
        )
