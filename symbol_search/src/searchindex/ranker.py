from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Entry, ResultGroup
from .normalize import normalize_query


def group_entries(matched: Iterable[Entry]) -> List[Tuple[int, str, List[Entry]]]:
    """
    Group by exact display name, first-seen order.
    Returns (first_seen, display_name, occurrences) with occurrences in input order.
    """
    slots: Dict[str, int] = {}
    groups: List[Tuple[int, str, List[Entry]]] = []
    for entry in matched:
        slot = slots.get(entry.display_name)
        if slot is None:
            slots[entry.display_name] = len(groups)
            groups.append((len(groups), entry.display_name, [entry]))
        else:
            groups[slot][2].append(entry)
    return groups


def rank(matched: Iterable[Entry], normalized_query: str, *, limit: Optional[int] = None) -> List[ResultGroup]:
    """
    Order groups by:
      1) exact match of the sort key to the query
      2) ascending sort key
      3) first-seen position in the input (shard order)
    """
    q = normalize_query(normalized_query)
    groups = group_entries(matched)

    def _key(item: Tuple[int, str, List[Entry]]):
        first_seen, _, occs = item
        sk = occs[0].sort_key
        return (0 if sk == q else 1, sk, first_seen)

    groups.sort(key=_key)
    if limit is not None:
        groups = groups[:max(0, int(limit))]
    return [
        ResultGroup(display_name=name, sort_key=occs[0].sort_key, occurrences=tuple(occs))
        for _, name, occs in groups
    ]
