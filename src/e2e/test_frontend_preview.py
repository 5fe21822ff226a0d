from pathlib import Path

import pytest

from docsearch.partition import build_index, write_index
import preview.web as webmod
from preview.web import app as flask_app


def _seed(tmp: Path) -> str:
    out = tmp / "search"
    write_index(build_index([
        ("Why <em>LambLisp</em>?", "index.html#autotoc_md2", ""),
        ("Getting Started", "index.html#autotoc_md17", ""),
    ]), str(out))
    return str(out)


@pytest.fixture
def client(tmp_path: Path):
    webmod.configure(_seed(tmp_path))
    yield flask_app.test_client()
    webmod._engine = None
    webmod._index_dir = None


@pytest.mark.e2e
def test_api_search_json(client):
    rv = client.get("/api/search?q=lamblisp&k=3")
    assert rv.status_code == 200
    data = rv.get_json()
    assert len(data) == 1
    row = data[0]
    for key in ("label", "url", "span", "scope", "raw_label", "key"):
        assert key in row
    start, length = row["span"]
    assert row["label"][start:start + length] == "LambLisp"


@pytest.mark.e2e
def test_api_search_empty_query(client):
    rv = client.get("/api/search?q=")
    assert rv.status_code == 200
    assert rv.get_json() == []


@pytest.mark.e2e
def test_health_and_home(client):
    client.get("/api/search?q=get")
    data = client.get("/health").get_json()
    assert data["ok"] is True and data["shards_loaded"] >= 1
    r = client.get("/")
    assert r.status_code == 200
    assert "search" in r.data.decode("utf-8").lower()


@pytest.mark.e2e
def test_serves_published_index_files(client):
    r = client.get("/search/searchdata.json")
    assert r.status_code == 200
    assert "shard_g.json" in r.get_json()["shards"].values()
    assert client.get("/search/shard_zz.json").status_code == 404


def test_api_without_index_is_unavailable():
    webmod._engine = None
    rv = flask_app.test_client().get("/api/search?q=x")
    assert rv.status_code == 503
