from __future__ import annotations
import json
import logging
import os
import re
from typing import Iterable, Iterator, List, Tuple

from .errors import IndexBuildError

log = logging.getLogger(__name__)

# (raw_label, url, scope) as produced by the documentation generator
Record = Tuple[str, str, str]

# `var NAVTREE = [ ... ];` as emitted by doc generators for their side navigation
_JS_ASSIGN_RE = re.compile(r"^\s*var\s+[A-Za-z_$][\w$]*\s*=\s*", re.S)


def _record_from(item: object, where: str) -> Record:
    if isinstance(item, dict):
        label, url, scope = item.get("label"), item.get("url"), item.get("scope")
    elif isinstance(item, (list, tuple)) and 2 <= len(item) <= 3:
        label, url = item[0], item[1]
        scope = item[2] if len(item) == 3 else None
    else:
        raise IndexBuildError(f"{where}: expected [label, url, scope] or an object, got {item!r}")
    if not isinstance(label, str) or not isinstance(url, str):
        raise IndexBuildError(f"{where}: label and url must be strings")
    if scope is not None and not isinstance(scope, str):
        raise IndexBuildError(f"{where}: scope must be a string or null")
    return label, url, scope or ""


def _walk_navtree(nodes: list, parent: str, where: str) -> Iterator[Record]:
    """Depth-first, document order. A node's scope is its parent's label."""
    for node in nodes:
        if not isinstance(node, list) or len(node) < 2:
            raise IndexBuildError(f"{where}: malformed navigation node {node!r}")
        label, url = node[0], node[1]
        children = node[2] if len(node) > 2 else None
        if url is not None:
            yield _record_from([label, url, parent], where)
        if isinstance(children, list):
            yield from _walk_navtree(children, label, where)


def parse_navtree_js(text: str, where: str = "<navtree>") -> List[Record]:
    body = _JS_ASSIGN_RE.sub("", text, count=1).strip()
    if body.endswith(";"):
        body = body[:-1]
    try:
        tree = json.loads(body)
    except json.JSONDecodeError as e:
        raise IndexBuildError(f"{where}: not a navigation tree script ({e})") from e
    if not isinstance(tree, list):
        raise IndexBuildError(f"{where}: navigation tree must be an array")
    return list(_walk_navtree(tree, "", where))


def _iter_json_lines(text: str, where: str) -> Iterator[Record]:
    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            item = json.loads(line)
        except json.JSONDecodeError as e:
            raise IndexBuildError(f"{where}:{line_no}: {e}") from e
        yield _record_from(item, f"{where}:{line_no}")


def load_records(paths: Iterable[str]) -> List[Record]:
    """
    Read build input files in the given order and return records in document order.
    Supported:
      - *.json  : array of [label, url, scope] or {"label","url","scope"}
      - *.jsonl : one such item per line
      - *.js    : navigation tree script (var X = [[label, url, children], ...];)
    """
    records: List[Record] = []
    for path in paths:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        ext = os.path.splitext(path)[1].lower()
        if ext == ".jsonl":
            batch = list(_iter_json_lines(text, path))
        elif ext == ".js":
            batch = parse_navtree_js(text, path)
        else:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise IndexBuildError(f"{path}: {e}") from e
            if not isinstance(data, list):
                raise IndexBuildError(f"{path}: top-level JSON must be an array")
            batch = [_record_from(item, f"{path}[{i}]") for i, item in enumerate(data)]
        log.info("Read %d records from %s", len(batch), path)
        records.extend(batch)
    return records
