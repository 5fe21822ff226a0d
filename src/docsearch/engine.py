# docsearch/engine.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from . import config as CFG
from .cache import ShardCache, ShardDirectory
from .errors import IndexLoadError, ShardFetchError
from .models import SearchResult
from .normalize import normalize_query
from .search import rank_matches
from .source import ShardSource

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryState:
    """Snapshot of the latest published query. Replaced, never mutated."""
    query: str
    generation: int
    results: Tuple[SearchResult, ...] = ()


class SearchEngine:
    """
    Runtime half of docsearch: the object a search box talks to.

    Lifecycle:
      * open():          fetch the shard directory (once per session)
      * search(query):   load the query's shards, rank, publish
      * submit(query):   same, scheduled as a task (one per keystroke)
      * close():         release the source

    Only the newest query is ever published: a search that finishes after a
    later keystroke returns None and leaves the state untouched. Shards it
    loaded stay in the cache for later queries.
    """

    # ------------- lifecycle -------------

    def __init__(
        self,
        source: ShardSource,
        *,
        top_k: int = CFG.TOP_K,
        on_results: Optional[Callable[[QueryState], None]] = None,
    ) -> None:
        self._source = source
        self.top_k = top_k
        self._on_results = on_results
        self.cache: Optional[ShardCache] = None
        self._generation = 0
        self._state = QueryState(query="", generation=0)

    async def open(self) -> None:
        try:
            data = await self._source.fetch(CFG.DIRECTORY_FILE)
        except ShardFetchError as e:
            raise IndexLoadError(f"shard directory unavailable: {e}") from e
        directory = ShardDirectory.from_bytes(data)
        self.cache = ShardCache(directory, self._source)
        log.info("Opened index from %r: shards=%d prefix_length=%d",
                 self._source, len(directory), directory.prefix_length)

    async def close(self) -> None:
        try:
            await self._source.aclose()
        finally:
            self.cache = None
            log.info("Engine closed")

    async def __aenter__(self) -> "SearchEngine":
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ------------- query -------------

    @property
    def state(self) -> QueryState:
        return self._state

    async def search(self, query: str) -> Optional[List[SearchResult]]:
        """Return ranked results, or None if a newer query superseded this one."""
        if self.cache is None:
            raise RuntimeError("Engine not opened. Call open() first.")
        self._generation += 1
        gen = self._generation

        q_key = normalize_query(query)
        if not q_key:
            self._publish(query, gen, [])
            return []

        buckets = self.cache.candidate_buckets(q_key)
        await asyncio.gather(*(self.cache.get(b) for b in buckets))

        if gen != self._generation:
            log.debug("Dropping results for superseded query %r", query)
            return None

        results = rank_matches(q_key, self.cache.loaded(), self.top_k)
        self._publish(query, gen, results)
        return results

    def submit(self, query: str) -> "asyncio.Task[Optional[List[SearchResult]]]":
        """Schedule search(query); call once per (debounced) keystroke."""
        return asyncio.ensure_future(self.search(query))

    # ------------- internals -------------

    def _publish(self, query: str, gen: int, results: List[SearchResult]) -> None:
        self._state = QueryState(query=query, generation=gen, results=tuple(results))
        if self._on_results is not None:
            self._on_results(self._state)
