# searchindex/DB/api.py
from __future__ import annotations
import os
from typing import Optional, Protocol

from ..errors import ConfigError
from ..partition import Partition


class ShardSource(Protocol):
    # fetch one wire document; None when the bucket has no symbols,
    # raises LoadFailure when the backing store cannot be reached
    def fetch(self, bucket_id: str) -> Optional[str]: ...
    # bucket ids of one index, ordered by ordinal
    def bucket_ids(self, index_name: str) -> list[str]: ...
    # partition function the generator used for this index
    def partition(self, index_name: str) -> Partition: ...
    def indexes(self) -> list[str]: ...
    def close(self) -> None: ...


def make_source(dsn: str) -> ShardSource:
    """
    Factory:
      - file:///path/to/search or a plain directory -> DirectorySource
      - sqlite:///path/to/bundle.sqlite             -> SQLiteSource (must exist)
      - memory://                                   -> empty MemorySource
    """
    if dsn.startswith("sqlite:///"):
        path = dsn.removeprefix("sqlite:///")
        if not os.path.isfile(path):
            raise ConfigError(f"{path} does not exist; build it with --pack first")
        from .sqlite_store import SQLiteSource
        return SQLiteSource(path)

    if dsn.startswith("memory://"):
        from .memory_store import MemorySource
        return MemorySource()

    path = dsn.removeprefix("file://")
    if "://" in path:
        raise ConfigError(f"Unsupported source DSN: {dsn}")
    from .directory import DirectorySource
    return DirectorySource(path)
