from __future__ import annotations
import argparse
from flask import Flask, request, jsonify

from searchindex import Engine
from searchindex import config as CFG
from searchindex.errors import SearchIndexError
from . import groups_to_json

app = Flask(__name__)
_engine: Engine | None = None


# ---------- API ----------
@app.get("/api/search")
def api_search():
    q = request.args.get("q", "", type=str)
    k = request.args.get("k", CFG.TOP_K, type=int)
    if not q.strip():
        return jsonify({"query": q, "groups": [], "total": 0, "warnings": []})
    if _engine is None:
        return jsonify({"error": "engine not initialized"}), 503
    result = _engine.search(q, limit=k)
    return jsonify({
        "query": result.query,
        "groups": groups_to_json(result.groups),
        "total": result.total_occurrences,
        "warnings": result.warnings,
    })


@app.get("/api/health")
def api_health():
    if _engine is None:
        return jsonify({"ok": False}), 503
    stats = _engine.stats()
    return jsonify({"ok": True, **stats})


@app.errorhandler(SearchIndexError)
def _search_error(e: SearchIndexError):
    return jsonify({"error": str(e)}), 500


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Serve symbol search as a JSON API")
    ap.add_argument("--source", default=CFG.DEFAULT_SOURCE,
                    help='Shard source DSN: "file:///dir", "sqlite:///bundle.sqlite" or a directory')
    ap.add_argument("--index", default=CFG.INDEX_NAME, help="Index section (all, classes, functions, ...)")
    ap.add_argument("--mode", choices=list(CFG.SEARCH_MODES), default=CFG.SEARCH_MODE)
    ap.add_argument("--preload", action="store_true", help="Load every shard before serving")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    global _engine
    _engine = Engine.open(args.source, index_name=args.index, mode=args.mode, verbose=args.verbose)
    if args.preload:
        _engine.preload()

    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        _engine.shutdown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
