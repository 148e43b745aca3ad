# searchindex/DB/memory_store.py
from __future__ import annotations
from typing import Dict, Mapping, Optional

from ..config import DEFAULT_ALPHABET
from ..partition import Partition, bucket_order, parse_bucket_id


class MemorySource:
    """Shard documents held in a dict (useful for tests or embedding)."""
    def __init__(self, shards: Optional[Mapping[str, str]] = None,
                 alphabets: Optional[Mapping[str, str]] = None) -> None:
        self._docs: Dict[str, str] = dict(shards or {})
        self._alphabets: Dict[str, str] = dict(alphabets or {})

    def fetch(self, bucket_id: str) -> Optional[str]:
        return self._docs.get(bucket_id)

    def bucket_ids(self, index_name: str) -> list[str]:
        ids = [b for b in self._docs if parse_bucket_id(b)[0] == index_name]
        return sorted(ids, key=bucket_order)

    def partition(self, index_name: str) -> Partition:
        return Partition(index_name, self._alphabets.get(index_name, DEFAULT_ALPHABET))

    def indexes(self) -> list[str]:
        return sorted({parse_bucket_id(b)[0] for b in self._docs})

    def close(self) -> None:
        self._docs.clear()
