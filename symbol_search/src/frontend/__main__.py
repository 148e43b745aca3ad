from __future__ import annotations
import argparse, json, os, sys
from typing import List

from searchindex import Engine, pack
from searchindex import config as CFG
from searchindex.models import ResultGroup
from searchindex.normalize import normalize_query
from . import groups_to_json


def _supports_color() -> bool:
    return sys.stdout.isatty() and os.environ.get("NO_COLOR", "") == ""

CSI = "\033["
def _c(text: str, code: str) -> str:
    if not _supports_color(): return text
    return f"{CSI}{code}m{text}{CSI}0m"


def print_groups(groups: List[ResultGroup], as_json: bool = False) -> None:
    if as_json:
        print(json.dumps(groups_to_json(groups), ensure_ascii=False, indent=2))
        return
    if not groups:
        print(_c("(no matches)", "2;37")); return
    for i, g in enumerate(groups, 1):
        print(_c(f"{i:<3} {g.display_name}", "1;37"))
        for e in g.occurrences:
            label = (e.qualified_label[:58] + "..") if len(e.qualified_label) > 60 else e.qualified_label
            print(f"      {label:<60} {e.anchor}")


def repl(eng: Engine, *, k: int, as_json: bool, echo: bool) -> None:
    """
    Incremental mode: every line is appended to the query buffer as if typed,
    and submitted through a QueryController; a newer line supersedes an
    unfinished older query.
    """
    ctl = eng.session(lambda groups: print_groups(groups, as_json),
                      on_warning=lambda f: print(_c(f"(warning) {f}", "2;33")),
                      limit=k)
    print("Type part of a symbol name and press Enter (empty line to quit).  '#' resets the buffer.")
    buffer = ""
    while True:
        try:
            raw = input("> ")
        except (EOFError, KeyboardInterrupt):
            print(); break
        if raw == "":
            break
        if raw.strip() == "#":
            buffer = ""
            ctl.clear()
            print(_c("(reset)", "2;36")); continue
        buffer += raw
        if echo:
            print(f"[query] {normalize_query(buffer)!r}")
        ctl.submit(buffer)
        ctl.wait()


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Symbol search CLI")
    p.add_argument("--source", default=CFG.DEFAULT_SOURCE,
                   help='Shard source DSN: "file:///dir", "sqlite:///bundle.sqlite" or a directory')
    p.add_argument("--index", default=CFG.INDEX_NAME, help="Index section (all, classes, functions, ...)")
    p.add_argument("--mode", choices=list(CFG.SEARCH_MODES), default=CFG.SEARCH_MODE)
    p.add_argument("-k", type=int, default=CFG.TOP_K, help="Max result groups")
    p.add_argument("--q", default=None, help="Single query to run once")
    p.add_argument("--repl", action="store_true", help="Incremental loop")
    p.add_argument("--pack", metavar="OUT", default=None, help="Pack the source into a SQLite bundle and exit")
    p.add_argument("--json", action="store_true", help="Emit JSON rows")
    p.add_argument("--echo", action="store_true", help="Echo the normalized query buffer")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    if args.pack:
        n = pack(args.source, args.pack)
        print(f"packed {n} shards into {args.pack}")
        return 0

    if not args.q and not args.repl:
        p.error("nothing to do: give --q, --repl or --pack")

    eng = Engine.open(args.source, index_name=args.index, mode=args.mode, verbose=args.verbose)
    try:
        if args.q:
            result = eng.search(args.q, limit=args.k)
            for w in result.warnings:
                print(_c(f"(warning) {w}", "2;33"), file=sys.stderr)
            print_groups(result.groups, args.json)
        if args.repl:
            repl(eng, k=args.k, as_json=args.json, echo=args.echo)
        return 0
    finally:
        eng.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
