from __future__ import annotations
import asyncio
import logging
import os
from typing import Optional, Protocol

import httpx

from . import config as CFG
from .errors import ShardFetchError

log = logging.getLogger(__name__)


class ShardSource(Protocol):
    """Where published index files come from. Locations are directory-relative names."""
    async def fetch(self, location: str) -> bytes: ...
    async def aclose(self) -> None: ...


class FileShardSource:
    """Reads a published index directory on local disk (off the event loop)."""

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)

    def _resolve(self, location: str) -> str:
        target = os.path.abspath(os.path.join(self.root, location))
        # keep reads inside root (no absolute paths / .. traversal)
        if not target.startswith(self.root + os.sep):
            raise ShardFetchError(location, "location escapes the index directory")
        return target

    def _read(self, location: str) -> bytes:
        path = self._resolve(location)
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise ShardFetchError(location, e.strerror or str(e)) from e

    async def fetch(self, location: str) -> bytes:
        return await asyncio.to_thread(self._read, location)

    async def aclose(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"FileShardSource({self.root!r})"


class HttpShardSource:
    """
    Fetches index files relative to a base URL (e.g. the site's search/ folder).
    An externally supplied client is not closed by aclose().
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = CFG.HTTP_TIMEOUT_S,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s)

    async def fetch(self, location: str) -> bytes:
        url = httpx.URL(self.base_url).join(location)
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ShardFetchError(location, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ShardFetchError(location, str(e) or type(e).__name__) from e
        log.debug("Fetched %s (%d bytes)", url, len(resp.content))
        return resp.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def __repr__(self) -> str:
        return f"HttpShardSource({self.base_url!r})"


def make_source(location: str) -> ShardSource:
    """
    Factory:
      - http(s)://...  -> HttpShardSource
      - anything else  -> FileShardSource (local directory)
    """
    if location.startswith(("http://", "https://")):
        return HttpShardSource(location)
    return FileShardSource(location)
