from __future__ import annotations
import os

from .errors import ConfigError

# which index section to search ("all", "classes", "functions", ...)
INDEX_NAME: str = os.environ.get("SYMSEARCH_INDEX", "all")

# /* ~~~ search mode: "substring" (match anywhere) or "prefix" (doxygen-style) ~~~ */
SEARCH_MODE: str = os.environ.get("SYMSEARCH_MODE", "substring")
SEARCH_MODES = ("substring", "prefix")

# Leading characters in bucket order; "d" lands in bucket 4.
# Names starting with anything else go to bucket 0.
DEFAULT_ALPHABET: str = "_abcdefghijklmnopqrstuvwxyz"

# Shard files and the optional doxygen manifest
SHARD_EXTS = (".js", ".json")
MANIFEST_NAME: str = "searchdata.js"

# Parallel shard loads
_cpu = os.cpu_count() or 4
LOAD_WORKERS: int = int(os.environ.get("SYMSEARCH_WORKERS", min(8, _cpu * 2)))

# Default number of result groups returned by the CLI / HTTP hosts
TOP_K: int = 20

# Progress logging (set SYMSEARCH_VERBOSE=1 to enable)
VERBOSE: bool = os.environ.get("SYMSEARCH_VERBOSE") == "1"

# DSN used by the hosts when --source is omitted
DEFAULT_SOURCE: str = os.environ.get("SYMSEARCH_SOURCE", "file://./search")


def validate_mode(mode: str) -> str:
    mode = (mode or "").lower()
    if mode not in SEARCH_MODES:
        raise ConfigError(f"unknown search mode {mode!r}; expected one of {SEARCH_MODES}")
    return mode
