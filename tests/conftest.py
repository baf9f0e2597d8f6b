"""
Shared pytest fixtures: in-memory fakes for the vault, extractor and provider.

No network access or API keys needed.
"""

from __future__ import annotations

import asyncio

import pytest

from link2vault.config import Config
from link2vault.llm.base import LLMProvider
from link2vault.models import ExtractedContent, NotePreview, ProcessedNote, VaultContext
from link2vault.vault_context import VaultContextCache

ARTICLE_TEXT = (
    "Large language models are increasingly used to summarize long articles. "
    "This piece walks through how retrieval, prompting and evaluation fit "
    "together in a production note-taking workflow."
)


class FakeVaultClient:
    """In-memory stand-in for VaultClient that records every write."""

    def __init__(self, folders=None, tags=None, notes=None):
        self.folders = list(folders if folders is not None else ["Inbox", "Tech"])
        self.tags = list(tags if tags is not None else ["ai", "python"])
        self.notes: dict[str, str] = dict(notes or {})
        self.calls: list[tuple[str, str]] = []
        self.list_folder_calls = 0
        self.fail_create_for: set[str] = set()
        self.fail_list_folders: Exception | None = None
        self.fail_sample_for: set[str] = set()

    async def list_folders(self):
        self.list_folder_calls += 1
        if self.fail_list_folders:
            raise self.fail_list_folders
        return list(self.folders)

    async def list_tags(self):
        return list(self.tags)

    async def sample_notes(self, folder, limit):
        if folder in self.fail_sample_for:
            raise RuntimeError(f"cannot list {folder}")
        titles = [
            path.rsplit("/", 1)[-1].removesuffix(".md")
            for path in self.notes
            if path.startswith(f"{folder}/")
        ]
        return [NotePreview(folder=folder, title=t) for t in titles[:limit]]

    async def search_notes(self, query):
        await asyncio.sleep(0)
        needle = query.rstrip("/")
        return [path for path, text in self.notes.items() if needle in text]

    async def read_note(self, path):
        return self.notes[path]

    async def note_exists(self, path):
        await asyncio.sleep(0)
        return path in self.notes

    async def create_note(self, path, content):
        self.calls.append(("create", path))
        await asyncio.sleep(0)
        if path in self.fail_create_for:
            raise RuntimeError("Vault request PUT failed with status 500")
        self.notes[path] = content

    async def append_to_note(self, path, content):
        self.calls.append(("append", path))
        await asyncio.sleep(0)
        self.notes[path] = self.notes.get(path, "") + content

    def writes_to(self, path):
        return [kind for kind, p in self.calls if p == path]


class FakeProvider(LLMProvider):
    """Provider that skips the API and derives a note from the content."""

    def __init__(self, tags=("ai",), folder="Tech", error=None, delay=0.0):
        super().__init__()
        self.tags = tuple(tags)
        self.folder = folder
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    @property
    def summary_model(self):
        return "fake"

    @property
    def categorization_model(self):
        return "fake"

    async def _call_tool(self, tool_name, description, schema, prompt, model):
        raise NotImplementedError

    async def process_content(self, content, vault_context):
        self.calls.append(content.url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return ProcessedNote(
            title=content.title or "Untitled",
            summary="A short summary.",
            key_takeaways=("First point", "Second point"),
            suggested_folder=self.folder,
            suggested_tags=self.tags,
            type=content.type,
            platform=content.platform,
            source=content,
        )


def make_content(url: str, title: str | None = None, text: str = ARTICLE_TEXT) -> ExtractedContent:
    return ExtractedContent(
        url=url,
        title=title or f"Article {url.rsplit('/', 1)[-1]}",
        content=text,
        word_count=len(text.split()),
    )


def make_extract(failures: dict[str, str] | None = None, delays: dict[str, float] | None = None):
    """Build an async extract function with per-URL failures and delays."""
    failures = failures or {}
    delays = delays or {}

    async def extract(url: str) -> ExtractedContent:
        if url in delays:
            await asyncio.sleep(delays[url])
        if url in failures:
            return ExtractedContent.failed(url, failures[url])
        return make_content(url)

    return extract


@pytest.fixture
def vault() -> FakeVaultClient:
    return FakeVaultClient()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        vault_api_key="vault-key",
        anthropic_api_key="sk-test",
        firecrawl_api_key="fc-test",
        state_dir=tmp_path / "state",
    )


@pytest.fixture
def cache() -> VaultContextCache:
    return VaultContextCache()


@pytest.fixture
def vault_context() -> VaultContext:
    return VaultContext(folders=("Inbox", "Tech"), tags=("ai",))
