from __future__ import annotations
from typing import Optional


class SearchIndexError(Exception):
    """Base class for everything raised by the search index core."""


class ConfigError(SearchIndexError):
    pass


class LoadFailure(SearchIndexError):
    """A shard for a known bucket could not be retrieved from its source."""

    def __init__(self, bucket_id: str, reason: str = "unreachable") -> None:
        super().__init__(f"failed to load shard {bucket_id!r}: {reason}")
        self.bucket_id = bucket_id
        self.reason = reason


class MalformedShard(SearchIndexError):
    """
    A shard document (or one of its records) does not have the expected shape.
    record_index is None when the whole document is unreadable.
    """

    def __init__(self, bucket_id: str, message: str, record_index: Optional[int] = None) -> None:
        where = f" record {record_index}" if record_index is not None else ""
        super().__init__(f"malformed shard {bucket_id!r}{where}: {message}")
        self.bucket_id = bucket_id
        self.message = message
        self.record_index = record_index
