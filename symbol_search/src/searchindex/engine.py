# searchindex/engine.py
from __future__ import annotations

import logging
import os
from concurrent.futures import wait
from typing import Callable, List, Optional

from . import config as CFG
from .controller import QueryController, QueryTicket, StateListener, candidate_buckets, run_query
from .errors import ConfigError, LoadFailure
from .models import Diagnostic, QueryResult, ResultGroup
from .normalize import normalize_query
from .store import ShardStore
from .DB.api import ShardSource, make_source
from .DB.sqlite_store import SQLiteSource

log = logging.getLogger(__name__)


class Engine:
    """
    Thin orchestration layer that glues together:
      - a shard source (directory of doxygen files, SQLite bundle, or memory),
      - a session-scoped ShardStore (lazy, coalesced, cached loads),
      - the match/rank pipeline.

    Public API (used by CLI/Flask):
      * Engine.open(dsn, ...):  open a source and attach a fresh store
      * search(query, limit):   one synchronous query -> QueryResult
      * session(on_results):    QueryController for incremental typing
      * preload():              fetch every bucket of the index up front
      * shutdown():             release the worker pool and the source

    Source DSNs (via searchindex.DB.api.make_source):
      - "file:///path/to/html/search" or a plain directory path
      - "sqlite:///path/to/bundle.sqlite"
      - "memory://"
    """

    # ------------- lifecycle -------------

    def __init__(
        self,
        source: ShardSource,
        *,
        index_name: Optional[str] = None,
        mode: Optional[str] = None,
        max_workers: Optional[int] = None,
        on_diagnostic: Optional[Callable[[Diagnostic], None]] = None,
        verbose: bool = False,
    ) -> None:
        if verbose or CFG.VERBOSE:
            logging.basicConfig(level=logging.INFO)

        self.source = source
        self.mode = CFG.validate_mode(mode or CFG.SEARCH_MODE)
        self.index_name = self._resolve_index(index_name or CFG.INDEX_NAME)
        self.partition = source.partition(self.index_name)
        self.store: Optional[ShardStore] = ShardStore(
            source, max_workers=max_workers, on_diagnostic=on_diagnostic,
        )
        log.info("Engine ready: index=%s buckets=%d mode=%s",
                 self.index_name, len(self.bucket_ids()), self.mode)

    # /* ~~~ Open a source from a DSN and wire up a store ~~~ */
    @classmethod
    def open(cls, dsn: Optional[str] = None, **kwargs) -> "Engine":
        dsn = dsn or CFG.DEFAULT_SOURCE
        log.info("Opening shard source: %s", dsn)
        return cls(make_source(dsn), **kwargs)

    def _resolve_index(self, wanted: str) -> str:
        available = self.source.indexes()
        if wanted in available or not available:
            return wanted
        if len(available) == 1:
            log.info("Index %r not found; using the only index %r", wanted, available[0])
            return available[0]
        raise ConfigError(f"index {wanted!r} not found; available: {', '.join(available)}")

    # ------------- query -------------

    def bucket_ids(self) -> List[str]:
        return self.source.bucket_ids(self.index_name)

    # /* ~~~ Run one query to completion and return ranked groups ~~~ */
    def search(self, query: str, *, limit: Optional[int] = None) -> QueryResult:
        store = self._require_store()
        normalized = normalize_query(query)
        ticket = QueryTicket(
            generation=0,
            query=query,
            normalized=normalized,
            bucket_ids=tuple(candidate_buckets(normalized, self.bucket_ids(), self.partition, self.mode)),
        )
        futures = store.fetch_many(ticket.bucket_ids)
        wait(list(futures.values()))
        result, failures = run_query(ticket, futures, self.mode, limit)
        for failure in failures:
            log.warning("Query %r settled without shard %s", query, failure.bucket_id)
        return result

    def session(
        self,
        on_results: Callable[[List[ResultGroup]], None],
        *,
        on_warning: Optional[Callable[[LoadFailure], None]] = None,
        on_state: Optional[StateListener] = None,
        limit: Optional[int] = None,
    ) -> QueryController:
        """Controller for as-you-type querying; shares this engine's shard cache."""
        return QueryController(
            self._require_store(),
            index_name=self.index_name,
            on_results=on_results,
            on_warning=on_warning,
            on_state=on_state,
            mode=self.mode,
            limit=limit,
        )

    def preload(self) -> int:
        """Load every bucket of the index; returns how many loaded without failure."""
        store = self._require_store()
        futures = store.fetch_many(self.bucket_ids())
        wait(list(futures.values()))
        ok = sum(1 for f in futures.values() if f.exception() is None)
        log.info("Preloaded %d/%d shards", ok, len(futures))
        return ok

    def stats(self) -> dict:
        store = self._require_store()
        return {
            "index": self.index_name,
            "mode": self.mode,
            "buckets": len(self.bucket_ids()),
            "loaded": len(store.loaded()),
        }

    # ------------- teardown -------------

    # /* ~~~ Close underlying resources (worker pool, DB handles, etc.) ~~~ */
    def shutdown(self) -> None:
        try:
            if self.store:
                self.store.close()
        finally:
            self.store = None
            log.info("Engine shutdown complete")

    def _require_store(self) -> ShardStore:
        if self.store is None:
            raise RuntimeError("Engine is shut down.")
        return self.store


def pack(dsn: str, out_path: str) -> int:
    """Copy every shard reachable through `dsn` into a SQLite bundle; returns the shard count."""
    source = make_source(dsn)
    try:
        bundle = SQLiteSource.build_from_source(source, os.fspath(out_path))
    finally:
        source.close()
    try:
        return sum(len(bundle.bucket_ids(i)) for i in bundle.indexes())
    finally:
        bundle.close()
