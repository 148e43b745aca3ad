from __future__ import annotations
from typing import Iterable, Iterator

from . import config as CFG
from .models import Entry, Shard
from .normalize import normalize_query


def matches(entry: Entry, normalized_query: str, mode: str = CFG.SEARCH_MODE) -> bool:
    """
    True when the (already normalized) query occurs in the entry's sort key.
    An empty query matches nothing.
    """
    q = normalize_query(normalized_query)
    if not q:
        return False
    if mode == "prefix":
        return entry.sort_key.startswith(q)
    return q in entry.sort_key


def filter_entries(shards: Iterable[Shard], query: str, mode: str = CFG.SEARCH_MODE) -> Iterator[Entry]:
    """Yield matching entries shard by shard, keeping each shard's build order."""
    q = normalize_query(query)
    if not q:
        return
    for shard in shards:
        for entry in shard.entries:
            if matches(entry, q, mode):
                yield entry
