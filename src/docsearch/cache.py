from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from . import config as CFG
from .errors import IndexLoadError, ShardFetchError
from .normalize import is_symbol_token, tokens
from .partition import Shard
from .source import ShardSource

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShardDirectory:
    """bucket id -> shard location. Loaded once per session, never modified."""
    prefix_length: int
    shards: Mapping[str, str]

    @classmethod
    def from_bytes(cls, data: bytes) -> "ShardDirectory":
        try:
            obj = json.loads(data.decode("utf-8"))
            if obj.get("format") != CFG.FORMAT_VERSION:
                raise ValueError(f"unsupported directory format {obj.get('format')!r}")
            shards = {str(b): str(loc) for b, loc in obj["shards"].items()}
            prefix_length = int(obj["prefix_length"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise IndexLoadError(f"malformed shard directory: {e}") from e
        return cls(prefix_length=prefix_length, shards=shards)

    def __contains__(self, bucket: object) -> bool:
        return bucket in self.shards

    def __len__(self) -> int:
        return len(self.shards)


def _agrees(bucket_toks: List[str], query_toks: List[str]) -> bool:
    n = min(len(bucket_toks), len(query_toks))
    return n > 0 and bucket_toks[:n] == query_toks[:n]


class ShardCache:
    """
    Lazily loaded, append-only shard store for one session.

    * get(bucket): cached shard, or one shared fetch for all concurrent callers
    * failures yield None and leave the bucket uncached (next keystroke retries)
    """

    def __init__(self, directory: ShardDirectory, source: ShardSource) -> None:
        self.directory = directory
        self._source = source
        self._shards: Dict[str, Shard] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self._bucket_toks = {b: tokens(b) for b in directory.shards}
        self.fetch_count = 0

    # ---- bucket selection ----
    def candidate_buckets(self, query_key: str) -> List[str]:
        """
        Buckets whose leading tokens agree with the query's. A query starting
        with symbols also consults the buckets of its first word.
        """
        q_toks = tokens(query_key)
        variants = [q_toks]
        lead = 0
        while lead < len(q_toks) and is_symbol_token(q_toks[lead]):
            lead += 1
        if 0 < lead < len(q_toks):
            variants.append(q_toks[lead:])

        out: List[str] = []
        for bucket in sorted(self._bucket_toks):
            if any(_agrees(self._bucket_toks[bucket], v) for v in variants):
                out.append(bucket)
        return out

    # ---- access ----
    def loaded(self) -> List[Shard]:
        return [self._shards[b] for b in sorted(self._shards)]

    def is_loaded(self, bucket: str) -> bool:
        return bucket in self._shards

    async def get(self, bucket: str) -> Optional[Shard]:
        shard = self._shards.get(bucket)
        if shard is not None:
            return shard
        task = self._inflight.get(bucket)
        if task is None:
            task = asyncio.ensure_future(self._load(bucket))
            self._inflight[bucket] = task
        # a superseded caller must not cancel a load other queries rely on
        return await asyncio.shield(task)

    async def _load(self, bucket: str) -> Optional[Shard]:
        try:
            location = self.directory.shards.get(bucket)
            if location is None:
                log.warning("Bucket %r is not in the shard directory", bucket)
                return None
            self.fetch_count += 1
            try:
                data = await self._source.fetch(location)
                shard = Shard.from_bytes(data)
            except ShardFetchError as e:
                log.warning("Shard %r unavailable: %s", bucket, e)
                return None
            except (ValueError, KeyError, TypeError) as e:
                log.warning("Shard %r is malformed: %s", bucket, e)
                return None
            if shard.bucket != bucket:
                log.warning("Shard at %s holds bucket %r, expected %r", location, shard.bucket, bucket)
                return None
            self._shards[bucket] = shard
            log.debug("Loaded shard %r: keys=%d", bucket, len(shard))
            return shard
        finally:
            self._inflight.pop(bucket, None)
