"""
docsearch: sharded search index for static documentation sites.

Build time turns (label, url, scope) records into small shard files plus a
shard directory. At run time SearchEngine loads only the shards a typed
prefix needs and ranks the matches.

Example Usage:
    from docsearch import build_index, write_index, SearchEngine, FileShardSource

    built = build_index([("Why <em>LambLisp</em>?", "index.html#autotoc_md2", "")])
    write_index(built, "html/search")

    async with SearchEngine(FileShardSource("html/search")) as eng:
        for r in await eng.search("lamb"):
            print(r.label, r.url, r.span)
"""
from .engine import QueryState, SearchEngine
from .errors import DocSearchError, IndexBuildError, IndexLoadError, ShardFetchError
from .models import Entry, SearchResult
from .partition import BuiltIndex, Shard, build_index, write_index
from .source import FileShardSource, HttpShardSource, make_source

__version__ = "1.0.0"
__all__ = [
    "BuiltIndex", "DocSearchError", "Entry", "FileShardSource", "HttpShardSource",
    "IndexBuildError", "IndexLoadError", "QueryState", "SearchEngine", "SearchResult",
    "Shard", "ShardFetchError", "build_index", "make_source", "write_index",
]
