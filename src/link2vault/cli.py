"""CLI entry point for link2vault."""

import asyncio
import signal
import sys
from pathlib import Path

import click

from .batch import BatchRunner
from .config import PROVIDERS, Config, load_config
from .error_classifier import build_error_metadata, is_retryable
from .exceptions import ConfigError
from .llm import get_llm_provider
from .log import setup_logging
from .models import FAILED, REVIEW, SKIPPED, SUCCESS, ProcessingState
from .storage import StateStore

_STATUS_LABELS = {
    "checking": "Checking for duplicates",
    "extracting": "Extracting content",
    "processing": "Summarizing and categorizing",
    "creating": "Creating note",
    "done": "Done",
    "review": "Saved, needs review",
    "skipped": "Skipped",
    "failed": "Failed",
    "cancelled": "Cancelled",
}


def _read_url_file(path: Path) -> list[str]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


def _retryable_urls(store: StateStore) -> list[str]:
    """URLs from the last batch that failed for a reason worth retrying."""
    state = store.load_state()
    if state is None:
        return []
    return [
        r.url
        for r in state.results
        if r.status == FAILED and (r.is_cancelled or is_retryable(r.error_category or "unknown"))
    ]


async def _run_batch(
    runner: BatchRunner,
    urls: list[str],
    config: Config,
    verbose: bool,
) -> ProcessingState:
    provider = get_llm_provider(config)

    def on_progress(url: str, status: str) -> None:
        if verbose or status in ("done", "review", "skipped", "failed", "cancelled"):
            click.echo(f"  [{_STATUS_LABELS.get(status, status)}] {url}")

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, runner.cancel)
    except NotImplementedError:
        pass  # Windows: Ctrl+C falls back to KeyboardInterrupt

    return await runner.run(urls, config, provider, on_progress=on_progress)


def _print_summary(state: ProcessingState) -> None:
    counts = {SUCCESS: 0, REVIEW: 0, SKIPPED: 0, FAILED: 0}
    for result in state.results:
        counts[result.status] = counts.get(result.status, 0) + 1

    click.echo(
        f"\n{counts[SUCCESS]} saved, {counts[REVIEW]} need review, "
        f"{counts[SKIPPED]} skipped, {counts[FAILED]} failed"
    )

    for result in state.results:
        if result.status == REVIEW and result.note:
            detail = result.content_quality.detail if result.content_quality else ""
            click.echo(f"  Review: {result.url} -> {result.folder} ({detail})")
        elif result.status == FAILED and not result.is_cancelled:
            meta = build_error_metadata(result.error_category or "unknown", result.error or "")
            click.echo(f"  Failed: {result.url}", err=True)
            click.echo(f"    {meta.user_message}", err=True)
            click.echo(f"    Details: {meta.technical_details}", err=True)
            click.echo(f"    Suggested action: {meta.suggested_action}", err=True)

    if state.cancelled:
        click.echo("Batch was cancelled; unfinished URLs can be rerun with --retry-failed.")


@click.command()
@click.argument("urls", nargs=-1)
@click.option(
    "--file", "-f", "url_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read URLs from a file, one per line",
)
@click.option(
    "--retry-failed",
    is_flag=True,
    default=False,
    help="Reprocess retryable failures from the last batch",
)
@click.option(
    "--provider",
    type=click.Choice(list(PROVIDERS)),
    default=None,
    help="LLM provider (default: claude, or LLM_PROVIDER env var)",
)
@click.option(
    "--vault-url",
    type=str,
    default=None,
    help="Obsidian Local REST API URL (default: http://localhost:27123 or OBSIDIAN_VAULT_URL env var)",
)
@click.option(
    "--model",
    type=str,
    default=None,
    help="LLM model to use for categorization",
)
@click.option(
    "--concurrency", "-c",
    type=int,
    default=None,
    help="Maximum URLs processed at once (default: 5)",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
def main(urls, url_file, retry_failed, provider, vault_url, model, concurrency, verbose):
    """Summarize URL(s) into categorized notes in an Obsidian vault.

    Example: link2vault https://example.com/article https://x.com/user/status/1
    """
    setup_logging(verbose)

    # Load config
    try:
        config = load_config(
            vault_url=vault_url,
            provider=provider,
            model=model,
            concurrency=concurrency,
            verbose=verbose,
        )
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    store = StateStore(config.state_dir)

    batch_urls = list(urls)
    if url_file:
        batch_urls.extend(_read_url_file(url_file))
    if retry_failed:
        retry_urls = _retryable_urls(store)
        click.echo(f"Retrying {len(retry_urls)} failed URL(s) from the last batch")
        batch_urls.extend(retry_urls)

    if not batch_urls:
        click.echo("No URLs to process.", err=True)
        sys.exit(2)

    if verbose:
        click.echo(f"Provider: {config.llm_provider} ({config.default_model})")
        click.echo(f"Vault: {config.vault_url}")

    click.echo(f"Processing {len(batch_urls)} URL(s)...")
    runner = BatchRunner(store=store)
    state = asyncio.run(_run_batch(runner, batch_urls, config, verbose))

    if state.error:
        click.echo(f"\nBatch failed: {state.error}", err=True)
        sys.exit(2)

    _print_summary(state)

    # Exit code
    succeeded = sum(1 for r in state.results if r.status in (SUCCESS, REVIEW, SKIPPED))
    if succeeded == 0:
        sys.exit(2)
    elif succeeded < len(state.results):
        sys.exit(1)
    else:
        click.echo("\nDone!")
        sys.exit(0)
