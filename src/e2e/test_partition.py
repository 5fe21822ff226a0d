from pathlib import Path
import json

import pytest

from docsearch import config as CFG
from docsearch.errors import IndexBuildError
from docsearch.partition import Shard, bucket_for_key, build_index, write_index

RECORDS = [
    ("dictionaries", "index.html#autotoc_md9", "First-class hierarchical dictionaries"),
    ("Hierarchical dictionaries", "index.html#autotoc_md22", ""),
    ("Objects are wrappers around <em>hierarchical dictionaries</em>", "index.html#autotoc_md24", ""),
    ("Why <em>LambLisp</em>?", "index.html#autotoc_md2", ""),
    ("C/C++ interop", "index.html#autotoc_md14", ""),
    ("2D graphics", "index.html#autotoc_md40", ""),
]


def _files(folder: Path) -> dict:
    return {p.name: p.read_bytes() for p in sorted(folder.iterdir())}


def test_bucket_for_key_separates_letters_digits_symbols():
    assert bucket_for_key("dictionaries") == "d"
    assert bucket_for_key("2d_20graphics") == "2"
    assert bucket_for_key("_28define_29") == "_28"
    assert bucket_for_key("c_2fc", prefix_length=2) == "c_2f"
    assert bucket_for_key("a", prefix_length=3) == "a"


def test_rebuild_is_byte_identical(tmp_path: Path):
    a, b = tmp_path / "a", tmp_path / "b"
    write_index(build_index(RECORDS), str(a))
    write_index(build_index(list(RECORDS)), str(b))
    assert _files(a) == _files(b)


def test_every_key_in_exactly_one_shard_and_directory_consistent(tmp_path: Path):
    built = build_index(RECORDS)
    seen = {}
    for bucket, shard in built.shards.items():
        assert shard.bucket == bucket
        for key, entries in shard.items():
            assert key not in seen, f"{key} in {seen.get(key)} and {bucket}"
            seen[key] = bucket
            assert bucket_for_key(key) == bucket
            assert len({e.order for e in entries}) == len(entries)

    write_index(built, str(tmp_path))
    directory = json.loads((tmp_path / CFG.DIRECTORY_FILE).read_text("utf-8"))
    assert set(directory["shards"]) == set(built.shards)
    for location in directory["shards"].values():
        assert (tmp_path / location).exists()


def test_keys_sorted_and_entries_in_build_order():
    built = build_index(RECORDS)
    shard = built.shards["d"]
    keys = [k for k, _ in shard.items()]
    assert keys == sorted(keys)
    orders = [e.order for e in shard.get("dictionaries")]
    assert orders == [0, 1, 2]


def test_duplicates_merged_but_distinct_scopes_kept():
    built = build_index([
        ("Glossary", "index.html#g", ""),
        ("<em>Glossary</em>", "index.html#g", ""),        # same key, url, scope -> merged
        ("Glossary", "index.html#g", "Appendix"),         # different scope -> kept
        ("Glossary", "other.html#g", ""),                 # different url -> kept
    ])
    assert [(e.url, e.scope) for e in built.entries] == [
        ("index.html#g", ""), ("index.html#g", "Appendix"), ("other.html#g", ""),
    ]
    assert [e.order for e in built.entries] == [0, 1, 2]
    assert len(built.shards["g"].get("glossary")) == 3


def test_word_suffixes_can_be_disabled():
    built = build_index(RECORDS, word_suffixes=False)
    assert built.shards["d"].get("dictionaries")[0].url.endswith("md9")
    assert len(built.shards["d"].get("dictionaries")) == 1
    assert "l" not in built.shards      # "lamblisp" only exists as a suffix key


def test_bad_label_fails_the_whole_build(tmp_path: Path):
    out = tmp_path / "out"
    with pytest.raises(IndexBuildError) as ei:
        built = build_index(RECORDS + [("   ", "index.html#x", "")])
        write_index(built, str(out))
    assert ei.value.position == len(RECORDS)
    assert not out.exists()


def test_shard_roundtrip_and_format_check():
    shard = build_index(RECORDS).shards["w"]
    assert Shard.from_bytes(shard.to_bytes()) == shard
    with pytest.raises(ValueError):
        Shard.from_bytes(b'{"format": 99, "bucket": "w", "keys": []}')


def test_stale_shards_removed_on_rebuild(tmp_path: Path):
    write_index(build_index(RECORDS), str(tmp_path))
    assert (tmp_path / "shard_2.json").exists()
    write_index(build_index(RECORDS[:3]), str(tmp_path))
    assert not (tmp_path / "shard_2.json").exists()
    assert (tmp_path / "shard_d.json").exists()
    assert not list(tmp_path.glob("*.tmp"))
