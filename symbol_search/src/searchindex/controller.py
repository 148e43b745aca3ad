"""Incremental query lifecycle: one active query, most recent input wins."""
from __future__ import annotations
import enum
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import config as CFG
from .errors import LoadFailure
from .matcher import filter_entries
from .models import QueryResult, ResultGroup
from .normalize import normalize_query
from .partition import Partition
from .ranker import rank
from .store import ShardStore, collect

log = logging.getLogger(__name__)


class QueryState(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class QueryTicket:
    generation: int
    query: str
    normalized: str
    bucket_ids: Tuple[str, ...]


def candidate_buckets(
    normalized: str,
    bucket_ids: Sequence[str],
    partition: Partition,
    mode: str = CFG.SEARCH_MODE,
) -> List[str]:
    """
    Buckets that may hold matches for `normalized`.
    Substring matches can sit behind any leading character, so every bucket is
    a candidate; in prefix mode only the query's own bucket can match.
    """
    if not normalized:
        return []
    if mode == "prefix":
        bucket = partition.bucket_for(normalized)
        return [bucket] if bucket in bucket_ids else []
    return list(bucket_ids)


def run_query(
    ticket: QueryTicket,
    futures: Dict,
    mode: str,
    limit: Optional[int] = None,
) -> Tuple[QueryResult, List[LoadFailure]]:
    """Match and rank over the completed fetches of one query."""
    shards, failures = collect(futures)
    groups = rank(filter_entries(shards, ticket.normalized, mode), ticket.normalized, limit=limit)
    result = QueryResult(
        query=ticket.query,
        normalized=ticket.normalized,
        groups=groups,
        warnings=[str(f) for f in failures],
        generation=ticket.generation,
    )
    return result, failures


StateListener = Callable[[int, QueryState], None]


class QueryController:
    """
    Owns the query box of one search session.

    submit(text) starts a new query and supersedes the pending one, if any.
    A superseded query moves to CANCELLED, resolves to None and its results
    never reach on_results: delivery compares the query's generation with the
    latest issued one, so the same logic works from an event loop or from
    worker threads. Shard loads of a cancelled query still finish and stay
    cached for later queries.
    """

    def __init__(
        self,
        store: ShardStore,
        *,
        index_name: str,
        on_results: Callable[[List[ResultGroup]], None],
        on_warning: Optional[Callable[[LoadFailure], None]] = None,
        on_state: Optional[StateListener] = None,
        mode: str = CFG.SEARCH_MODE,
        limit: Optional[int] = None,
    ) -> None:
        self._store = store
        self._on_results = on_results
        self._on_warning = on_warning
        self._on_state = on_state
        self.index_name = index_name
        self.mode = CFG.validate_mode(mode)
        self.limit = limit
        self._partition = store.source.partition(index_name)
        self._bucket_ids = store.source.bucket_ids(index_name)

        self._lock = threading.Lock()
        # re-entrant: on_results may submit() a query that settles on the same thread
        self._deliver_lock = threading.RLock()
        self._generation = 0
        self._state = QueryState.IDLE
        self._pending: Optional[Future] = None
        self._latest: Optional[Future] = None
        self.cancelled = 0

    # ------------- state -------------

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    # ------------- input -------------

    def submit(self, text: str) -> Future:
        """Start a query for the current input; returns a future of QueryResult (None if cancelled)."""
        normalized = normalize_query(text)
        outcome: Future = Future()
        transitions: List[Tuple[int, QueryState]] = []
        resolved: List[Tuple[Future, Optional[QueryResult]]] = []

        # futures are resolved after the lock is released: their done-callbacks
        # belong to the host and may call submit() again
        with self._lock:
            self._generation += 1
            generation = self._generation
            superseded = self._pending
            if superseded is not None and not superseded.done():
                resolved.append((superseded, None))
                self.cancelled += 1
                transitions.append((generation - 1, QueryState.CANCELLED))
                log.debug("Query %d cancelled by %d", generation - 1, generation)
            self._latest = outcome
            self._pending = None
            if not normalized:
                # cleared box: back to idle, nothing delivered
                self._state = QueryState.IDLE
                resolved.append((outcome, QueryResult(query=text, normalized="", groups=[], generation=generation)))
            else:
                self._state = QueryState.PENDING
                self._pending = outcome
            transitions.append((generation, self._state))
        self._emit(transitions)
        for fut, value in resolved:
            fut.set_result(value)

        if not normalized:
            return outcome

        ticket = QueryTicket(
            generation=generation,
            query=text,
            normalized=normalized,
            bucket_ids=tuple(candidate_buckets(normalized, self._bucket_ids, self._partition, self.mode)),
        )
        futures = self._store.fetch_many(ticket.bucket_ids)
        self._join(ticket, futures, outcome)
        return outcome

    def clear(self) -> Future:
        return self.submit("")

    def wait(self, timeout: Optional[float] = None) -> Optional[QueryResult]:
        """Block until the most recently submitted query resolves."""
        latest = self._latest
        if latest is None:
            return None
        return latest.result(timeout=timeout)

    # ------------- internals -------------

    def _emit(self, transitions: List[Tuple[int, QueryState]]) -> None:
        if self._on_state is None:
            return
        for generation, state in transitions:
            self._on_state(generation, state)

    def _join(self, ticket: QueryTicket, futures: Dict[str, Future], outcome: Future) -> None:
        if not futures:
            self._settle(ticket, futures, outcome)
            return

        remaining = [len(futures)]
        counter = threading.Lock()

        def _one_done(_f: Future) -> None:
            with counter:
                remaining[0] -= 1
                last = remaining[0] == 0
            if last:
                self._settle(ticket, futures, outcome)

        for fut in futures.values():
            fut.add_done_callback(_one_done)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _settle(self, ticket: QueryTicket, futures: Dict[str, Future], outcome: Future) -> None:
        if not self._is_current(ticket.generation):
            log.debug("Dropping results of superseded query %d", ticket.generation)
            return
        try:
            result, failures = run_query(ticket, futures, self.mode, self.limit)
        except Exception as e:
            log.exception("Query %d failed", ticket.generation)
            with self._lock:
                current = ticket.generation == self._generation and self._pending is outcome
                if current:
                    self._state = QueryState.SETTLED
                    self._pending = None
            if current:
                self._emit([(ticket.generation, QueryState.SETTLED)])
                outcome.set_exception(e)
            return

        with self._deliver_lock:
            with self._lock:
                current = ticket.generation == self._generation and self._pending is outcome
                if current:
                    self._state = QueryState.SETTLED
                    self._pending = None
            if not current:
                log.debug("Dropping results of superseded query %d", ticket.generation)
                return
            self._emit([(ticket.generation, QueryState.SETTLED)])
            try:
                for failure in failures:
                    log.warning("Query %r settled without shard %s", ticket.query, failure.bucket_id)
                    if self._on_warning is not None:
                        self._on_warning(failure)
                self._on_results(result.groups)
            except Exception as e:
                log.exception("Result handler failed for query %d", ticket.generation)
                outcome.set_exception(e)
                return
            outcome.set_result(result)
