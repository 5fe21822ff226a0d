# docsearch/models.py
"""
Data models shared by the index builder and the query engine.

- Entry: one searchable documentation anchor, as published inside a shard.
- SearchResult: the row handed back to the UI for rendering.

Neither class carries behaviour; normalization lives in normalize.py,
partitioning in partition.py and ranking in search.py.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True, slots=True)
class Entry:
    """
    One searchable unit.

    Attributes
    ----------
    label : str
        Raw label as supplied by the documentation generator. May contain
        inline markup (``<em>..</em>``) and entities; kept for rendering.
    url : str
        Page path plus optional in-page anchor.
    scope : str
        Qualifying context (usually the enclosing section title). Empty
        string when the generator gave none.
    order : int
        Position in build order after duplicates were merged. Unique within
        an index and used as the final ranking tie-break.
    """
    label: str
    url: str
    scope: str
    order: int

    def to_row(self) -> List[object]:
        return [self.label, self.url, self.scope, self.order]

    @classmethod
    def from_row(cls, row: List[object]) -> "Entry":
        label, url, scope, order = row
        return cls(str(label), str(url), str(scope or ""), int(order))  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class SearchResult:
    """
    A ranked hit.

    span is (start, length) inside ``label`` (the markup-free display label),
    so ``label[start:start + length]`` is exactly the matched text.
    """
    label: str
    url: str
    span: Tuple[int, int]
    scope: str
    raw_label: str
    key: str

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "url": self.url,
            "span": list(self.span),
            "scope": self.scope,
            "raw_label": self.raw_label,
            "key": self.key,
        }
