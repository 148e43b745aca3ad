from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .normalize import sort_key_for


@dataclass(frozen=True)
class Anchor:
    path: str                 # relative document path, e.g. "../classjoin_1_1Base64.html"
    fragment: str = ""        # id inside the document, "" when absent

    @classmethod
    def parse(cls, raw: str) -> "Anchor":
        path, _, fragment = str(raw).partition("#")
        return cls(path=path, fragment=fragment)

    def __str__(self) -> str:
        return f"{self.path}#{self.fragment}" if self.fragment else self.path


@dataclass(frozen=True)
class Entry:
    display_name: str         # as authored, e.g. "decodeAnswer"
    qualified_label: str      # e.g. "join::Resolver"
    anchor: Anchor
    position: int = 0         # index of the entry inside its shard
    in_frame: bool = True     # generator's link-target flag, passed through
    sort_key: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sort_key", sort_key_for(self.display_name))


@dataclass(frozen=True)
class Diagnostic:
    bucket_id: str
    message: str
    record_index: Optional[int] = None


@dataclass(frozen=True)
class Shard:
    bucket_id: str
    entries: Tuple[Entry, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ResultGroup:
    display_name: str
    sort_key: str
    occurrences: Tuple[Entry, ...]


@dataclass(frozen=True)
class QueryResult:
    query: str                          # raw input
    normalized: str
    groups: List[ResultGroup]
    warnings: List[str] = field(default_factory=list)
    generation: int = 0

    @property
    def total_occurrences(self) -> int:
        return sum(len(g.occurrences) for g in self.groups)
