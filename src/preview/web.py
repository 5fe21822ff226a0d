from __future__ import annotations
import argparse
import asyncio
import logging
import os
import threading

from flask import Flask, Response, abort, jsonify, request, send_from_directory

from docsearch.config import TOP_K
from docsearch.engine import SearchEngine
from docsearch.source import FileShardSource

log = logging.getLogger(__name__)

app = Flask(__name__)
_engine: SearchEngine | None = None
_index_dir: str | None = None
# one query at a time: each request runs the engine on its own short-lived loop
_lock = threading.Lock()


def configure(index_dir: str, *, top_k: int = TOP_K) -> SearchEngine:
    """Open a published index folder and attach it to the app."""
    global _engine, _index_dir
    eng = SearchEngine(FileShardSource(index_dir), top_k=top_k)
    asyncio.run(eng.open())
    _engine, _index_dir = eng, os.path.abspath(index_dir)
    return eng


# ---------- API ----------
@app.get("/api/search")
def api_search():
    q = request.args.get("q", "", type=str)
    k = request.args.get("k", TOP_K, type=int)
    if _engine is None:
        return jsonify({"error": "no index loaded"}), 503
    if not q.strip():
        return jsonify([])
    with _lock:
        _engine.top_k = max(1, min(50, k))
        rows = asyncio.run(_engine.search(q)) or []
    return jsonify([r.as_dict() for r in rows])


@app.get("/health")
def health():
    loaded = len(_engine.cache.loaded()) if _engine and _engine.cache else 0
    return jsonify({"ok": _engine is not None, "shards_loaded": loaded})


# ---------- published index files (lets HttpShardSource point here) ----------
@app.get("/search/<path:name>")
def index_file(name: str):
    if _index_dir is None:
        abort(404)
    return send_from_directory(_index_dir, name, mimetype="application/json")


# ---------- UI ----------
@app.get("/")
def home():
    # Tiny page: debounced input, results with server-provided highlight spans.
    html = r"""
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Docsearch • preview</title>
<style>
:root{ --bg:#0b0f14; --panel:#0f141b; --ink:#cfd8e3; --muted:#8a94a6; --accent:#6ee7ff; --border:#1c2530; --mark-bg:rgba(110,231,255,.2); }
*{box-sizing:border-box}
body{ margin:0; background:var(--bg); color:var(--ink); font:16px/1.45 system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,Arial; }
.container{ max-width:760px; margin:24px auto; padding:0 16px; }
.card{ background:var(--panel); border:1px solid var(--border); border-radius:16px; padding:18px; }
h1{ font-size:20px; margin:0 0 8px 0; }
input{ width:100%; padding:12px 14px; border-radius:12px; border:1px solid var(--border); background:#0b1117; color:var(--ink); font-size:16px; outline:none; }
input:focus{ border-color:var(--accent) }
.meta{ color:var(--muted); font-size:13px; margin-top:6px; }
.row{ padding:10px 14px; border-top:1px solid var(--border); }
.scope{ color:var(--muted); font-size:13px; }
.mark{ background:var(--mark-bg); border-bottom:1px solid var(--accent) }
a{ color:var(--ink); text-decoration:none } a:hover{ text-decoration:underline }
</style>
</head>
<body>
  <div class="container">
    <div class="card">
      <h1>Search documentation</h1>
      <input id="q" type="text" placeholder="Search…" autocomplete="off" autofocus />
      <div id="stats" class="meta">Ready.</div>
      <div id="out"></div>
    </div>
  </div>
<script>
const q = document.querySelector("#q"), out = document.querySelector("#out"), stats = document.querySelector("#stats");
let t, seq = 0;
function esc(s){ return s.replace(/[&<>"]/g, c => ({"&":"&amp;","<":"&lt;",">":"&gt;",'"':"&quot;"}[c])); }
function render(r){
  const [s, n] = r.span;
  const label = esc(r.label.slice(0, s)) + `<span class="mark">${esc(r.label.slice(s, s + n))}</span>` + esc(r.label.slice(s + n));
  const scope = r.scope ? `<div class="scope">${esc(r.scope)}</div>` : "";
  return `<div class="row"><a href="${esc(r.url)}">${label}</a>${scope}</div>`;
}
async function search(){
  const mine = ++seq;
  const query = q.value.trimStart();
  if(!query){ out.innerHTML = ""; stats.textContent = "Ready."; return; }
  const resp = await fetch(`/api/search?q=${encodeURIComponent(query)}`);
  const data = await resp.json();
  if(mine !== seq) return;  // a newer keystroke owns the list
  stats.textContent = `Results: ${data.length}`;
  out.innerHTML = data.map(render).join("");
}
q.addEventListener("input", () => { clearTimeout(t); t = setTimeout(search, 120); });
</script>
</body>
</html>
"""
    return Response(html, mimetype="text/html")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Preview a published docsearch index in the browser")
    ap.add_argument("--index", required=True, help="Folder holding searchdata.json and shard files")
    ap.add_argument("-k", type=int, default=TOP_K)
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO)
    eng = configure(args.index, top_k=args.k)
    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        asyncio.run(eng.close())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
