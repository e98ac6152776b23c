"""Scan pipeline: walker -> hashing workers -> aggregators."""

from __future__ import annotations

import logging
import os
import queue
import time
from typing import Callable, Optional

from fileinventory.errors import FatalWalkError
from fileinventory.models import FileRecord, ProcessingError, ScanResult
from fileinventory.scan.aggregators import ErrorAggregator, ResultAggregator
from fileinventory.scan.classifier import SkipRules, SpecialEntryPolicy
from fileinventory.scan.hasher import DEFAULT_ALGORITHM, DEFAULT_CHUNK_SIZE, ensure_algorithm
from fileinventory.scan.walker import TreeWalker
from fileinventory.scan.workers import WorkerPool

LOGGER = logging.getLogger(__name__)


class ScanPipeline:
    """Coordinates queue and thread lifetimes for one scan.

    Shutdown order: the candidate queue is closed only after the walk
    returns, and the result/error queues only after every worker has
    exited, so nothing is sent after a close and no aggregator stops early.
    """

    def __init__(
        self,
        *,
        workers: int,
        rules: SkipRules | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        queue_factor: int = 2,
        special_policy: SpecialEntryPolicy = SpecialEntryPolicy.LOG,
        on_record: Optional[Callable[[FileRecord], None]] = None,
        on_error: Optional[Callable[[ProcessingError], None]] = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"Worker count must be at least 1, got {workers}")
        if chunk_size < 1:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        self.workers = workers
        self.rules = rules or SkipRules()
        self.algorithm = ensure_algorithm(algorithm)
        self.chunk_size = chunk_size
        self.queue_capacity = workers * max(queue_factor, 1)
        self.special_policy = SpecialEntryPolicy(special_policy)
        self.on_record = on_record
        self.on_error = on_error

    def run(self, root: str | os.PathLike[str]) -> ScanResult:
        root = os.path.abspath(os.fspath(root))
        started = time.perf_counter()

        candidates: "queue.Queue[object]" = queue.Queue(maxsize=self.queue_capacity)
        results: "queue.Queue[object]" = queue.Queue()
        errors: "queue.Queue[object]" = queue.Queue()

        result_sink = ResultAggregator(results, on_record=self.on_record)
        error_sink = ErrorAggregator(errors, on_error=self.on_error)
        pool = WorkerPool(
            self.workers,
            candidates,
            results,
            errors,
            algorithm=self.algorithm,
            chunk_size=self.chunk_size,
        )
        walker = TreeWalker(self.rules, special_policy=self.special_policy)

        result_sink.start()
        error_sink.start()
        pool.start()

        LOGGER.info(
            "Scanning %s with %d workers (%s, queue capacity %d)",
            root,
            self.workers,
            self.algorithm,
            self.queue_capacity,
        )
        fatal: BaseException | None = None
        try:
            walker.walk(root, candidates.put, errors.put)
        except FatalWalkError as exc:
            LOGGER.error("Scan aborted: %s", exc)
            fatal = exc
        finally:
            pool.stop()
            pool.join()
            result_sink.close()
            error_sink.close()
            result_sink.join()
            error_sink.join()

        result = ScanResult(
            root=root,
            records=result_sink.records,
            errors=error_sink.errors,
            error_count=error_sink.count,
            stats=walker.stats,
            fatal_error=fatal,
            elapsed=time.perf_counter() - started,
        )
        LOGGER.info(
            "Scan finished: %d files hashed, %d errors, %d skipped, %d pruned in %.2fs",
            len(result.records),
            result.error_count,
            result.stats.skipped,
            result.stats.pruned,
            result.elapsed,
        )
        return result


def scan_tree(root: str | os.PathLike[str], *, workers: int, **options) -> ScanResult:
    """Build the inventory of ``root``; see :class:`ScanPipeline` for options."""
    return ScanPipeline(workers=workers, **options).run(root)
