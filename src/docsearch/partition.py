from __future__ import annotations
import bisect
import glob
import json
import logging
import os
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from . import config as CFG
from .errors import IndexBuildError
from .models import Entry
from .normalize import normalize_label, tokens, word_starts

log = logging.getLogger(__name__)


def _dump(obj: object) -> bytes:
    """Canonical JSON: sorted keys, compact, UTF-8, trailing newline."""
    text = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def bucket_for_key(key: str, prefix_length: int = CFG.PREFIX_LENGTH) -> str:
    """First `prefix_length` tokens of the key. Letters, digits and each symbol get distinct buckets."""
    if prefix_length < 1:
        raise ValueError("prefix_length must be >= 1")
    bucket = "".join(tokens(key)[:prefix_length])
    if not bucket:
        raise IndexBuildError(f"key {key!r} has no bucket")
    return bucket


def shard_location(bucket: str) -> str:
    return CFG.SHARD_FILE_TEMPLATE.format(bucket=bucket)


@dataclass(frozen=True)
class Shard:
    """
    One independently loadable slice of the index.
    `keys` is sorted; entries under a key keep build order.
    """
    bucket: str
    keys: Tuple[Tuple[str, Tuple[Entry, ...]], ...]

    def __len__(self) -> int:
        return len(self.keys)

    def items(self) -> Iterable[Tuple[str, Tuple[Entry, ...]]]:
        return iter(self.keys)

    def get(self, key: str) -> Tuple[Entry, ...]:
        # (key,) sorts right before (key, entries)
        i = bisect.bisect_left(self.keys, (key,))
        if i < len(self.keys) and self.keys[i][0] == key:
            return self.keys[i][1]
        return ()

    # ---- (de)serialization ----
    def to_bytes(self) -> bytes:
        return _dump({
            "format": CFG.FORMAT_VERSION,
            "bucket": self.bucket,
            "keys": [[k, [e.to_row() for e in entries]] for k, entries in self.keys],
        })

    @classmethod
    def from_bytes(cls, data: bytes) -> "Shard":
        obj = json.loads(data.decode("utf-8"))
        if not isinstance(obj, dict) or obj.get("format") != CFG.FORMAT_VERSION:
            raise ValueError("unsupported shard format")
        keys = tuple(
            (str(k), tuple(Entry.from_row(row) for row in rows))
            for k, rows in obj["keys"]
        )
        return cls(bucket=str(obj["bucket"]), keys=keys)


@dataclass
class BuiltIndex:
    prefix_length: int
    shards: Dict[str, Shard] = field(default_factory=dict)
    entries: List[Entry] = field(default_factory=list)

    @property
    def directory(self) -> Dict[str, str]:
        return {b: shard_location(b) for b in sorted(self.shards)}

    def directory_bytes(self) -> bytes:
        return _dump({
            "format": CFG.FORMAT_VERSION,
            "prefix_length": self.prefix_length,
            "shards": self.directory,
        })


# /* ~~~ Build (offline) ~~~ */
def build_index(
    records: Iterable[Tuple[str, str, str]],
    *,
    prefix_length: int = CFG.PREFIX_LENGTH,
    word_suffixes: bool = CFG.WORD_SUFFIXES,
) -> BuiltIndex:
    """
    Normalize and partition all records in memory. Any bad record raises
    IndexBuildError before a single byte is written.
    """
    entries: List[Entry] = []
    seen: set[Tuple[str, str, str]] = set()
    # key -> entries (build order)
    by_key: Dict[str, List[Entry]] = defaultdict(list)

    for pos, (label, url, scope) in enumerate(records):
        try:
            norm = normalize_label(label)
        except IndexBuildError as e:
            raise IndexBuildError(str(e), position=pos) from e
        scope = scope or ""
        ident = (norm.key, url, scope)
        if ident in seen:
            continue  # same label/url/scope already indexed
        seen.add(ident)

        entry = Entry(label=label, url=url, scope=scope, order=len(entries))
        entries.append(entry)

        keys = [norm.key]
        if word_suffixes:
            keys.extend(norm.key[i:] for i in word_starts(norm))
        for key in keys:
            bucket_list = by_key[key]
            if not bucket_list or bucket_list[-1] is not entry:
                bucket_list.append(entry)

    grouped: Dict[str, List[str]] = defaultdict(list)
    for key in by_key:
        grouped[bucket_for_key(key, prefix_length)].append(key)

    built = BuiltIndex(prefix_length=prefix_length, entries=entries)
    for bucket, keys in grouped.items():
        built.shards[bucket] = Shard(
            bucket=bucket,
            keys=tuple((k, tuple(by_key[k])) for k in sorted(keys)),
        )
    log.info("Built index: entries=%d keys=%d shards=%d",
             len(entries), len(by_key), len(built.shards))
    return built


def _write_atomic(path: str, data: bytes) -> None:
    tmp = f"{path}.tmp"
    with open(tmp, "wb") as f:
        f.write(data)
    os.replace(tmp, path)


def write_index(built: BuiltIndex, out_dir: str) -> List[str]:
    """
    Publish shards first and the directory last, so a reader never sees a
    directory pointing at shards that are not there yet. Stale shard files
    from earlier builds are removed afterwards. Returns written paths.
    """
    os.makedirs(out_dir, exist_ok=True)
    written: List[str] = []
    for bucket in sorted(built.shards):
        path = os.path.join(out_dir, shard_location(bucket))
        _write_atomic(path, built.shards[bucket].to_bytes())
        written.append(path)

    dir_path = os.path.join(out_dir, CFG.DIRECTORY_FILE)
    _write_atomic(dir_path, built.directory_bytes())
    written.append(dir_path)

    keep = {os.path.abspath(p) for p in written}
    for stale in glob.glob(os.path.join(out_dir, CFG.SHARD_FILE_GLOB)):
        if os.path.abspath(stale) not in keep:
            log.info("Removing stale shard %s", stale)
            os.remove(stale)
    return written
