"""Async client for the Obsidian Local REST API plugin."""

from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import quote

import httpx

from .exceptions import VaultClientError
from .log import get_logger
from .models import NotePreview

logger = get_logger(__name__)

_NOTE_JSON = "application/vnd.olrapi.note+json"
_DEFAULT_TIMEOUT = 10.0


def _vault_path(path: str) -> str:
    return "/vault/" + quote(path.lstrip("/"))


class VaultClient:
    """Thin wrapper over the REST API.

    Every method raises VaultClientError on failure. Use as an async context
    manager, or call aclose() when done.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            # The plugin serves HTTPS with a self-signed certificate
            verify=False,
            transport=transport,
        )

    async def __aenter__(self) -> "VaultClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        allow_404: bool = False,
        **kwargs,
    ) -> Optional[httpx.Response]:
        try:
            response = await self._client.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise VaultClientError(
                f"Vault request {method} {endpoint} failed: {type(e).__name__}: {e}",
                status=None,
                endpoint=endpoint,
            ) from e

        if allow_404 and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise VaultClientError(
                f"Vault request {method} {endpoint} returned status "
                f"{response.status_code}: {response.text[:200]}",
                status=response.status_code,
                endpoint=endpoint,
            )
        return response

    async def _list_dir(self, folder: str = "") -> list[str]:
        endpoint = _vault_path(f"{folder.strip('/')}/") if folder else "/vault/"
        response = await self._request("GET", endpoint)
        return list(response.json().get("files", []))

    async def list_folders(self) -> list[str]:
        """Top-level folders, excluding hidden ones."""
        entries = await self._list_dir()
        return [
            entry.rstrip("/")
            for entry in entries
            if entry.endswith("/") and not entry.startswith(".")
        ]

    async def list_tags(self) -> list[str]:
        """All tags in the vault, most used first.

        Older plugin versions have no /tags/ endpoint; those yield no tags.
        """
        response = await self._request("GET", "/tags/", allow_404=True)
        if response is None:
            logger.debug("vault_tags_endpoint_missing")
            return []

        payload = response.json()
        entries = payload.get("tags", []) if isinstance(payload, dict) else payload
        if entries and isinstance(entries[0], dict):
            entries = sorted(entries, key=lambda t: t.get("count", 0), reverse=True)
            return [t.get("name") or t.get("tag", "") for t in entries]
        return [str(t) for t in entries]

    async def sample_notes(self, folder: str, limit: int) -> list[NotePreview]:
        """Read up to `limit` notes directly inside `folder`."""
        entries = await self._list_dir(folder)
        names = [e for e in entries if e.endswith(".md")][:limit]

        previews = []
        for name in names:
            path = f"{folder}/{name}"
            response = await self._request(
                "GET", _vault_path(path), headers={"Accept": _NOTE_JSON}
            )
            note = response.json()
            previews.append(
                NotePreview(
                    folder=folder,
                    title=PurePosixPath(name).stem,
                    tags=tuple(note.get("tags", [])),
                )
            )
        return previews

    async def search_notes(self, query: str) -> list[str]:
        """Simple full-text search. Returns matching note paths."""
        response = await self._request(
            "POST",
            "/search/simple/",
            params={"query": query, "contextLength": 100},
        )
        return [match["filename"] for match in response.json()]

    async def read_note(self, path: str) -> str:
        response = await self._request(
            "GET", _vault_path(path), headers={"Accept": "text/markdown"}
        )
        return response.text

    async def note_exists(self, path: str) -> bool:
        response = await self._request(
            "GET", _vault_path(path), allow_404=True, headers={"Accept": _NOTE_JSON}
        )
        return response is not None

    async def create_note(self, path: str, content: str) -> None:
        """Create (or overwrite) the note at `path`."""
        await self._request(
            "PUT",
            _vault_path(path),
            content=content.encode("utf-8"),
            headers={"Content-Type": "text/markdown"},
        )

    async def append_to_note(self, path: str, content: str) -> None:
        await self._request(
            "POST",
            _vault_path(path),
            content=content.encode("utf-8"),
            headers={"Content-Type": "text/markdown"},
        )

    async def test_connection(self) -> bool:
        """Check that the API is reachable and the key is accepted."""
        response = await self._request("GET", "/")
        return bool(response.json().get("authenticated", False))
