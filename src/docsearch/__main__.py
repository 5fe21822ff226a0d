from __future__ import annotations
import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List

from . import config as CFG
from .engine import SearchEngine
from .errors import DocSearchError, IndexBuildError
from .loader import load_records
from .models import SearchResult
from .partition import build_index, write_index
from .source import make_source


def _print_rows(rows: List[SearchResult], as_json: bool) -> None:
    if as_json:
        print(json.dumps([r.as_dict() for r in rows], ensure_ascii=False, indent=2))
        return
    if not rows:
        print("(no matches)")
        return
    print("#  Match                Label / Scope                                      URL")
    for i, r in enumerate(rows, 1):
        start, length = r.span
        shown = r.label[:start] + "[" + r.label[start:start + length] + "]" + r.label[start + length:]
        if r.scope:
            shown += f"  ({r.scope})"
        print(f"{i:<2} {r.label[start:start + length]:<20} {shown:<50} {r.url}")


async def _serve_queries(index: str, *, top_k: int, q: str | None, repl: bool, as_json: bool) -> None:
    async with SearchEngine(make_source(index), top_k=top_k) as eng:
        if q:
            _print_rows(await eng.search(q) or [], as_json)
        if repl:
            print("Type a query (empty line to exit).")
            while True:
                try:
                    line = await asyncio.to_thread(input, "> ")
                except (EOFError, KeyboardInterrupt):
                    break
                if not line.strip():
                    break
                _print_rows(await eng.search(line) or [], as_json)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Build or query a sharded documentation search index")
    g = p.add_mutually_exclusive_group(required=True)
    g.add_argument("--build", action="store_true", help="Build shards from --input into --out")
    g.add_argument("--load", action="store_true", help="Query a published index (--index)")

    p.add_argument("--input", nargs="+", default=[], help="Record files (.json, .jsonl, navtree .js)")
    p.add_argument("--out", default=None, help="Output folder for shard files")
    p.add_argument("--prefix-length", type=int, default=CFG.PREFIX_LENGTH, help="Key tokens per bucket id")
    p.add_argument("--no-word-suffixes", action="store_true", help="Index full labels only")
    p.add_argument("--index", default=None, help="Index folder or http(s) base URL")
    p.add_argument("-k", type=int, default=CFG.TOP_K, help="Max results")
    p.add_argument("--q", default=None, help="Single query to run once")
    p.add_argument("--repl", action="store_true", help="Interactive loop")
    p.add_argument("--json", action="store_true", help="Emit JSON rows")
    p.add_argument("--verbose", action="store_true")

    args = p.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO)
        os.environ["DOCSEARCH_VERBOSE"] = "1"

    if args.build:
        if not args.input or not args.out:
            p.error("--build requires --input and --out")
        try:
            records = load_records(args.input)
            built = build_index(
                records,
                prefix_length=args.prefix_length,
                word_suffixes=not args.no_word_suffixes,
            )
        except (IndexBuildError, OSError) as e:
            print(f"build failed: {e}", file=sys.stderr)
            return 1
        paths = write_index(built, args.out)
        print(f"wrote {len(paths) - 1} shards and {CFG.DIRECTORY_FILE} to {args.out}")
        return 0

    if not args.index:
        p.error("--load requires --index")
    try:
        asyncio.run(_serve_queries(args.index, top_k=args.k, q=args.q, repl=args.repl, as_json=args.json))
    except DocSearchError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
