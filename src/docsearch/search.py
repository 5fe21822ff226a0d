from __future__ import annotations
from typing import Dict, Iterable, List, Tuple

from .config import TOP_K
from .models import Entry, SearchResult
from .normalize import NormalizedLabel, find_on_boundary, normalize_label
from .partition import Shard

# (not exact, not prefix, full key length, build order): smaller is better
Rank = Tuple[int, int, int, int]


def _rank(query_key: str, full_key: str, offset: int, entry: Entry) -> Rank:
    """Rank against the entry's full key; `offset` is the match start inside it."""
    exact = full_key == query_key
    return (0 if exact else 1, 0 if offset == 0 else 1, len(full_key), entry.order)


def _span(norm: NormalizedLabel, offset: int, length: int) -> Tuple[int, int]:
    """Map a match at `offset` in the full key to (start, length) in the display label."""
    mapping = norm.key_to_display
    start = mapping[offset]
    end = mapping[offset + length - 1] + 1
    # a trailing separator in the query is not highlighted
    while end > start + 1 and norm.display[end - 1].isspace():
        end -= 1
    return start, end - start


def rank_matches(query_key: str, shards: Iterable[Shard], top_k: int = TOP_K) -> List[SearchResult]:
    """
    Rank every entry whose key contains `query_key` (on token boundaries).

    Word-start tail keys only widen which entries are found; ranking always
    looks at the entry's full key: exact full key > match at position 0 >
    shorter full key > build order. An entry reachable through several keys
    keeps its best rank and is emitted once.
    """
    if not query_key or top_k <= 0:
        return []

    best: Dict[int, Tuple[Rank, Entry, int]] = {}
    for shard in shards:
        for key, entries in shard.items():
            if len(key) < len(query_key):
                continue
            pos = find_on_boundary(key, query_key)
            if pos == -1:
                continue
            for entry in entries:
                full = normalize_label(entry.label).key
                # tail keys are suffixes of the full key
                offset = len(full) - len(key) + pos
                r = _rank(query_key, full, offset, entry)
                cur = best.get(entry.order)
                if cur is None or r < cur[0]:
                    best[entry.order] = (r, entry, offset)

    ordered = sorted(best.values(), key=lambda t: t[0])[:top_k]

    results: List[SearchResult] = []
    for _, entry, offset in ordered:
        norm = normalize_label(entry.label)
        results.append(SearchResult(
            label=norm.display,
            url=entry.url,
            span=_span(norm, offset, len(query_key)),
            scope=entry.scope,
            raw_label=entry.label,
            key=norm.key,
        ))
    return results
