from __future__ import annotations

TOP_K: int = 10

# Number of leading key tokens that form a bucket id (1 => one shard per
# first letter/digit/symbol).
PREFIX_LENGTH: int = 1

# Also index each word-start tail of a label so "diction" finds
# "Hierarchical dictionaries" inside the "d" shard.
WORD_SUFFIXES: bool = True

# /* ~~~ published file layout ~~~ */
DIRECTORY_FILE: str = "searchdata.json"
SHARD_FILE_TEMPLATE: str = "shard_{bucket}.json"
SHARD_FILE_GLOB: str = "shard_*.json"
FORMAT_VERSION: int = 1

# Remote shard fetches
HTTP_TIMEOUT_S: float = 10.0
