"""Fixed-size pool of hashing threads."""

from __future__ import annotations

import logging
import queue
import threading
from typing import List

from fileinventory.errors import HashOpenError, HashReadError
from fileinventory.models import Candidate, ErrorPhase, FileRecord, ProcessingError
from fileinventory.scan.hasher import DEFAULT_ALGORITHM, DEFAULT_CHUNK_SIZE, hash_file

LOGGER = logging.getLogger(__name__)

# Shared end-of-stream marker for every queue in the pipeline.
SENTINEL = object()


class WorkerPool:
    """Threads that turn Candidates into FileRecords or ProcessingErrors.

    Each worker exits when it receives :data:`SENTINEL`; the coordinator puts
    one sentinel per worker after the walk has finished.
    """

    def __init__(
        self,
        size: int,
        candidates: "queue.Queue[object]",
        results: "queue.Queue[object]",
        errors: "queue.Queue[object]",
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if size < 1:
            raise ValueError("Worker pool size must be at least 1")
        self.size = size
        self.candidates = candidates
        self.results = results
        self.errors = errors
        self.algorithm = algorithm
        self.chunk_size = chunk_size
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        for idx in range(self.size):
            thread = threading.Thread(target=self._run, name=f"hash-worker-{idx + 1}", daemon=True)
            thread.start()
            self._threads.append(thread)

    def stop(self) -> None:
        """Signal every worker to exit once the queue ahead of it drains."""
        for _ in self._threads:
            self.candidates.put(SENTINEL)

    def join(self) -> None:
        for thread in self._threads:
            thread.join()

    def _run(self) -> None:
        while True:
            item = self.candidates.get()
            if item is SENTINEL:
                break
            self._process(item)

    def _process(self, candidate: Candidate) -> None:
        # Every candidate must leave as exactly one record or one error.
        try:
            digest = hash_file(candidate.path, self.algorithm, self.chunk_size)
            record = FileRecord.from_candidate(candidate, algorithm=self.algorithm, digest=digest)
        except HashOpenError as exc:
            self.errors.put(ProcessingError(candidate.path, exc, ErrorPhase.HASH_OPEN))
            return
        except HashReadError as exc:
            self.errors.put(ProcessingError(candidate.path, exc, ErrorPhase.HASH_READ))
            return
        except Exception as exc:
            LOGGER.exception("Unexpected failure processing %s", candidate.path)
            self.errors.put(ProcessingError(candidate.path, exc, ErrorPhase.HASH_READ))
            return
        self.results.put(record)
