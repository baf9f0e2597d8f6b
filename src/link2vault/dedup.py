"""Detect URLs that already have a note in the vault."""

import re

from .log import get_logger
from .utils import normalize_url, search_query_for
from .vault_client import VaultClient

logger = get_logger(__name__)

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---", re.DOTALL)
_SOURCE_RE = re.compile(r'^source:\s*"?([^"\n]+?)"?\s*$', re.MULTILINE)


def source_url_of(note_text: str) -> str | None:
    """Return the `source:` value from a note's frontmatter, if present."""
    fm_match = _FRONTMATTER_RE.match(note_text)
    if not fm_match:
        return None
    source_match = _SOURCE_RE.search(fm_match.group(1))
    return source_match.group(1).strip() if source_match else None


async def is_duplicate(url: str, client: VaultClient) -> bool:
    """Check whether a note with an equivalent source URL already exists.

    Never raises: a failed search or read counts as "not a duplicate", so the
    worst case is processing a URL twice.
    """
    normalized = normalize_url(url)

    try:
        matches = await client.search_notes(search_query_for(url))
    except Exception as e:
        logger.debug("duplicate_search_failed", url=url, error=str(e))
        return False

    for filename in matches:
        try:
            text = await client.read_note(filename)
        except Exception as e:
            logger.debug("duplicate_read_failed", note=filename, error=str(e))
            continue

        source = source_url_of(text)
        if source and normalize_url(source) == normalized:
            logger.info("duplicate_found", url=url, note=filename)
            return True

    return False
