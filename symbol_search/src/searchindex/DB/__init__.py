from .api import ShardSource, make_source
from .directory import DirectorySource
from .memory_store import MemorySource
from .sqlite_store import SQLiteSource

__all__ = ["ShardSource", "make_source", "DirectorySource", "MemorySource", "SQLiteSource"]
