"""
Symbol search over sharded API-documentation indexes.

A documentation generator splits its symbol index into shards by leading
character (doxygen's search/functions_4.js holds the functions starting with
"d"). This package loads those shards lazily, matches a query against symbol
names and returns overloads grouped under one heading in a stable order.

Example Usage:
    from searchindex import Engine

    eng = Engine.open("file:///srv/docs/html/search", index_name="functions")
    for group in eng.search("decode").groups:
        print(group.display_name, [str(e.anchor) for e in group.occurrences])
    eng.shutdown()
"""

from .engine import Engine, pack
from .controller import QueryController, QueryState
from .errors import LoadFailure, MalformedShard, SearchIndexError
from .models import Anchor, Entry, QueryResult, ResultGroup, Shard

__version__ = "1.0.0"
__all__ = [
    "Engine", "pack", "QueryController", "QueryState",
    "LoadFailure", "MalformedShard", "SearchIndexError",
    "Anchor", "Entry", "QueryResult", "ResultGroup", "Shard",
]
