from __future__ import annotations
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from . import config as CFG
from .errors import LoadFailure, MalformedShard
from .loader import parse_shard
from .models import Diagnostic, Shard
from .DB.api import ShardSource

log = logging.getLogger(__name__)


class ShardStore:
    """
    Session-scoped cache of parsed shards.

      * get(bucket_id)    -> Shard, blocking; raises LoadFailure
      * fetch(bucket_id)  -> Future[Shard]; concurrent callers for the same
                             unloaded bucket share a single in-flight load
      * fetch_many(ids)   -> {bucket_id: Future[Shard]}

    Shards are immutable once built, so cached reads take no lock. The lock
    only guards the in-flight table while a bucket is first populated.
    Failed loads are not cached; the next request tries the source again.
    """

    def __init__(
        self,
        source: ShardSource,
        *,
        max_workers: Optional[int] = None,
        on_diagnostic: Optional[Callable[[Diagnostic], None]] = None,
    ) -> None:
        self.source = source
        self._on_diagnostic = on_diagnostic
        self._shards: Dict[str, Shard] = {}
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or CFG.LOAD_WORKERS,
            thread_name_prefix="shard-load",
        )

    # ------------- public -------------

    def get(self, bucket_id: str) -> Shard:
        return self.fetch(bucket_id).result()

    def fetch(self, bucket_id: str) -> Future:
        shard = self._shards.get(bucket_id)
        if shard is not None:
            done: Future = Future()
            done.set_result(shard)
            return done

        with self._lock:
            shard = self._shards.get(bucket_id)
            if shard is not None:
                done = Future()
                done.set_result(shard)
                return done
            fut = self._inflight.get(bucket_id)
            if fut is not None:
                log.debug("Joining in-flight load of %s", bucket_id)
                return fut
            fut = self._executor.submit(self._load, bucket_id)
            self._inflight[bucket_id] = fut
            return fut

    def fetch_many(self, bucket_ids: Iterable[str]) -> Dict[str, Future]:
        return {b: self.fetch(b) for b in bucket_ids}

    def is_loaded(self, bucket_id: str) -> bool:
        return bucket_id in self._shards

    def loaded(self) -> List[str]:
        return list(self._shards)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.source.close()

    # ------------- internals -------------

    def _load(self, bucket_id: str) -> Shard:
        try:
            raw = self.source.fetch(bucket_id)
            if raw is None:
                shard = Shard(bucket_id=bucket_id)
            else:
                try:
                    shard = parse_shard(bucket_id, raw)
                except MalformedShard as e:
                    # unreadable as a whole: same content every time, so cache it empty
                    shard = Shard(bucket_id=bucket_id, diagnostics=(
                        Diagnostic(bucket_id, e.message, None),
                    ))
        except LoadFailure as e:
            log.warning("%s", e)
            with self._lock:
                self._inflight.pop(bucket_id, None)
            raise
        except Exception as e:
            with self._lock:
                self._inflight.pop(bucket_id, None)
            log.warning("Loading shard %s failed: %s", bucket_id, e)
            raise LoadFailure(bucket_id, str(e)) from e

        with self._lock:
            self._shards[bucket_id] = shard
            self._inflight.pop(bucket_id, None)

        # reported once: the shard is never parsed again in this store
        self._report(shard)
        log.info("Loaded shard %s: %d entries", bucket_id, len(shard))
        return shard

    def _report(self, shard: Shard) -> None:
        for d in shard.diagnostics:
            where = f" record {d.record_index}" if d.record_index is not None else ""
            log.warning("Malformed shard %s%s skipped: %s", d.bucket_id, where, d.message)
            if self._on_diagnostic is None:
                continue
            try:
                self._on_diagnostic(d)
            except Exception:
                log.exception("Diagnostic handler failed for %s", d.bucket_id)


def collect(futures: Dict[str, Future]) -> Tuple[List[Shard], List[LoadFailure]]:
    """
    Split completed fetch futures into usable shards and load failures.
    Shards keep the order of `futures` (callers pass buckets in ordinal order).
    """
    shards: List[Shard] = []
    failures: List[LoadFailure] = []
    for bucket_id, fut in futures.items():
        exc = fut.exception()
        if exc is None:
            shards.append(fut.result())
        elif isinstance(exc, LoadFailure):
            failures.append(exc)
        else:
            failures.append(LoadFailure(bucket_id, str(exc)))
    return shards, failures
