"""Consumers that collect worker output until their queue is closed."""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from fileinventory.models import FileRecord, ProcessingError
from fileinventory.scan.workers import SENTINEL

LOGGER = logging.getLogger(__name__)


class _Aggregator(ABC):
    """Drains one queue on a dedicated thread until SENTINEL arrives."""

    thread_name = "aggregator"

    def __init__(self, source: "queue.Queue[object]") -> None:
        self.source = source
        self._thread = threading.Thread(target=self._run, name=self.thread_name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def close(self) -> None:
        """Mark the end of the stream; call only once producers are done."""
        self.source.put(SENTINEL)

    def join(self) -> None:
        self._thread.join()

    def _run(self) -> None:
        while True:
            item = self.source.get()
            if item is SENTINEL:
                break
            self.consume(item)

    @abstractmethod
    def consume(self, item) -> None:
        """Handle one item taken off the queue."""

    @staticmethod
    def _notify(callback: Optional[Callable], item) -> None:
        # A failing observer must not stop the drain.
        if callback is None:
            return
        try:
            callback(item)
        except Exception:
            LOGGER.exception("Observer callback failed")


class ResultAggregator(_Aggregator):
    """Appends every FileRecord in arrival order."""

    thread_name = "result-aggregator"

    def __init__(
        self,
        source: "queue.Queue[object]",
        on_record: Optional[Callable[[FileRecord], None]] = None,
    ) -> None:
        super().__init__(source)
        self.records: List[FileRecord] = []
        self.on_record = on_record

    def consume(self, item: FileRecord) -> None:
        self.records.append(item)
        LOGGER.debug("Hashed %s (%s %s)", item.path, item.algorithm, item.digest)
        self._notify(self.on_record, item)


class ErrorAggregator(_Aggregator):
    """Counts and logs ProcessingErrors; never stops the pipeline."""

    thread_name = "error-aggregator"

    def __init__(
        self,
        source: "queue.Queue[object]",
        on_error: Optional[Callable[[ProcessingError], None]] = None,
    ) -> None:
        super().__init__(source)
        self.count = 0
        self.errors: List[ProcessingError] = []
        self.on_error = on_error

    def consume(self, item: ProcessingError) -> None:
        self.count += 1
        self.errors.append(item)
        LOGGER.warning("Error processing %s", item.describe())
        self._notify(self.on_error, item)
