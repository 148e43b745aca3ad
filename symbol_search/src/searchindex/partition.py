from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Tuple

from .config import DEFAULT_ALPHABET
from .normalize import leading_char

_BUCKET_RE = re.compile(r"^(?P<index>.+)_(?P<ordinal>\d+)$")


def parse_bucket_id(bucket_id: str) -> Tuple[str, int]:
    """Split "functions_4" into ("functions", 4)."""
    m = _BUCKET_RE.match(bucket_id)
    if not m:
        raise ValueError(f"not a bucket id: {bucket_id!r}")
    return m.group("index"), int(m.group("ordinal"))


def make_bucket_id(index_name: str, ordinal: int) -> str:
    return f"{index_name}_{int(ordinal)}"


def bucket_order(bucket_id: str) -> Tuple[str, int]:
    """Sort key ordering buckets by index name, then numeric ordinal (so _10 follows _9)."""
    try:
        return parse_bucket_id(bucket_id)
    except ValueError:
        return bucket_id, -1


@dataclass(frozen=True)
class Partition:
    """
    Fixed partition of the symbol namespace over the first normalized character.
    A character found in `alphabet` maps to its position there; every other
    leading character (digits, "~", non-ASCII, ...) maps to ordinal 0.
    """
    index_name: str
    alphabet: str = DEFAULT_ALPHABET

    def ordinal_for(self, name: str) -> int:
        ch = leading_char(name)
        if not ch:
            return 0
        pos = self.alphabet.find(ch)
        return pos if pos >= 0 else 0

    def bucket_for(self, name: str) -> str:
        return make_bucket_id(self.index_name, self.ordinal_for(name))
