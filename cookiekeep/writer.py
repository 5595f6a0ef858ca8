"""Background application of durable cookie transactions."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable
from concurrent.futures import Future, wait

import structlog

from .errors import PersistenceError, StoreClosedError
from .persistence import CookiePersistence, Mutation

logger = structlog.get_logger(__name__)

_STOP = object()


class BackgroundWriter:
    """
    Applies cookie batches to a persistence backend on a worker thread.

    Submitting never waits for the backend and never raises. Each submission
    returns a ``Future`` that resolves once its batch is written, or carries
    the error if it was not. A batch that cannot be queued, because the
    writer is closed or the queue is full, is dropped and logged. A single
    worker applies batches in submission order.

    Args:
        persistence: Backend receiving the batches
        max_pending: Maximum queued batches before new ones are dropped
            (0 for unbounded)
    """

    def __init__(self, persistence: CookiePersistence, max_pending: int = 0) -> None:
        if max_pending < 0:
            raise ValueError("max_pending must be >= 0")
        self.persistence = persistence
        self.max_pending = max_pending
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._last: Future | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _start(self) -> None:
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._run, name="cookiekeep-writer", daemon=True
            )
            self._thread.start()

    def _drop(self, future: Future, batch: list[Mutation], error: Exception) -> Future:
        logger.warning(
            "cookie_batch_dropped",
            mutations=len(batch),
            backend=repr(self.persistence),
            reason=str(error),
        )
        future.set_exception(error)
        return future

    def submit(self, mutations: Iterable[Mutation]) -> Future:
        """Queue one transaction without waiting for it."""
        batch = list(mutations)
        future: Future = Future()
        if not batch:
            future.set_result(None)
            return future
        with self._lock:
            if self._closed:
                return self._drop(future, batch, StoreClosedError("Cookie writer is closed"))
            self._start()
            try:
                self._queue.put_nowait((batch, future))
            except queue.Full:
                return self._drop(
                    future,
                    batch,
                    PersistenceError(f"Cookie write queue full ({self.max_pending} pending)"),
                )
            self._last = future
        return future

    def flush(self, timeout: float | None = None) -> bool:
        """
        Wait until every batch queued so far has been processed.

        Returns:
            False if the timeout expired first
        """
        with self._lock:
            last = self._last
        if last is None:
            return True
        done, _ = wait([last], timeout=timeout)
        return last in done

    def close(self, timeout: float | None = None) -> None:
        """Stop accepting batches and wait for pending ones to be written."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
        if thread is not None:
            self._queue.put(_STOP)
            thread.join(timeout)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                batch, future = item
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    self.persistence.apply_batch(batch)
                except Exception as e:
                    logger.error(
                        "cookie_batch_failed",
                        mutations=len(batch),
                        backend=repr(self.persistence),
                        error=str(e),
                    )
                    future.set_exception(e)
                else:
                    future.set_result(None)
            finally:
                self._queue.task_done()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<BackgroundWriter {state} pending={self._queue.qsize()}>"
