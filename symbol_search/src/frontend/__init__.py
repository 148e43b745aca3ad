"""Hosts for the search engine: a Flask JSON API and a terminal CLI."""
from __future__ import annotations
from typing import Iterable, List

from searchindex.models import Entry, ResultGroup


def entry_to_dict(e: Entry) -> dict:
    return {
        "label": e.qualified_label,
        "anchor": str(e.anchor),
        "path": e.anchor.path,
        "fragment": e.anchor.fragment,
    }


def groups_to_json(groups: Iterable[ResultGroup]) -> List[dict]:
    """Renderer-neutral rows: one per symbol name, overloads nested."""
    return [
        {"name": g.display_name, "occurrences": [entry_to_dict(e) for e in g.occurrences]}
        for g in groups
    ]
