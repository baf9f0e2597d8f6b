"""Vault inventory used to ground categorization.

Lists the vault's folders and tags, samples a few notes from the first
folders, and caches the assembled context for an hour so that consecutive
batches don't re-scan the vault.
"""

import asyncio
import time
from typing import Callable, Optional

from .log import get_logger
from .models import NotePreview, VaultContext
from .vault_client import VaultClient

logger = get_logger(__name__)

MAX_FOLDERS = 50
MAX_TAGS = 100
MAX_SAMPLED_FOLDERS = 10
NOTES_PER_FOLDER = 5
DEFAULT_TTL = 60 * 60

PARA_DESCRIPTIONS = {
    "Projects": "Short-term efforts with a clear goal and deadline",
    "Areas": "Ongoing responsibilities you manage over time",
    "Resources": "Topics or interests you want to reference later",
    "Archive": "Inactive items from the other three categories",
}


async def build_vault_context(client: VaultClient) -> VaultContext:
    """Fetch the vault inventory.

    Folder and tag listing errors propagate. A folder whose notes can't be
    sampled just contributes no examples.
    """
    folders, tags = await asyncio.gather(client.list_folders(), client.list_tags())
    folders = folders[:MAX_FOLDERS]
    tags = tags[:MAX_TAGS]

    sampled = folders[:MAX_SAMPLED_FOLDERS]
    samples = await asyncio.gather(
        *(client.sample_notes(folder, NOTES_PER_FOLDER) for folder in sampled),
        return_exceptions=True,
    )

    recent_notes: list[NotePreview] = []
    for folder, sample in zip(sampled, samples):
        if isinstance(sample, BaseException):
            logger.warning("folder_sample_failed", folder=folder, error=str(sample))
            continue
        recent_notes.extend(sample)

    logger.info(
        "vault_context_built",
        folders=len(folders),
        tags=len(tags),
        notes=len(recent_notes),
    )
    return VaultContext(
        folders=tuple(folders),
        tags=tuple(tags),
        recent_notes=tuple(recent_notes),
    )


class VaultContextCache:
    """Time-bounded cache of the vault context.

    Within the TTL, get_context returns the identical object it cached.
    Two overlapping refreshes are harmless: the later one wins.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._context: Optional[VaultContext] = None
        self._fetched_at = 0.0

    async def get_context(self, client: VaultClient) -> VaultContext:
        if self._context is not None and self._clock() - self._fetched_at < self.ttl:
            return self._context

        context = await build_vault_context(client)
        self._context = context
        self._fetched_at = self._clock()
        return context

    def invalidate(self) -> None:
        self._context = None
        self._fetched_at = 0.0


# Process-wide cache used when the caller doesn't provide one
default_cache = VaultContextCache()


def format_for_prompt(context: VaultContext, max_notes: int = 20) -> str:
    """Format the vault context as compact text for the categorization prompt."""
    lines = ["Available folders:"]
    if context.folders:
        for folder in context.folders:
            description = (
                PARA_DESCRIPTIONS.get(folder) if context.organization == "para" else None
            )
            lines.append(f"- {folder}" + (f": {description}" if description else ""))
    else:
        lines.append("(no folders yet)")

    lines.extend(["", "Existing tags:"])
    lines.append(", ".join(context.tags) if context.tags else "(no tags yet)")

    if context.tag_groups:
        lines.extend(["", "Tag groups (prefer tags from these groups):"])
        for group in context.tag_groups:
            lines.append(f"- {group.name}: {', '.join(group.tags)}")

    lines.extend(["", "Example notes in vault:"])
    if context.recent_notes:
        for note in context.recent_notes[:max_notes]:
            lines.append(f"- {note.folder}/{note.title} [{', '.join(note.tags)}]")
    else:
        lines.append("(no existing notes)")

    if context.organization == "para":
        lines.extend([
            "",
            "The vault uses the PARA method (Projects, Areas, Resources, Archive). "
            "File the content under the PARA folder that fits best.",
        ])

    return "\n".join(lines)
