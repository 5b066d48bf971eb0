"""Background execution helpers for preview renders.

:class:`ThreadController` wraps a ``ThreadPoolExecutor`` and keeps track of
the futures it has handed out so they can be cancelled (if not yet started)
and awaited on shutdown. Completion callbacks run on the worker thread; callers
that own interactive state are expected to hop back to their own thread, see
:mod:`image_beautifier.ui.qt_bridge`.
"""
from __future__ import annotations

import concurrent.futures
import logging
import queue
import threading
from collections import deque
from typing import Any, Callable, Deque, Optional, Protocol


Callback = Callable[[concurrent.futures.Future], None]


class TaskExecutor(Protocol):
    """Minimal interface the render controller needs from an executor."""

    def submit(
        self, fn: Callable[..., Any], *args: Any, callback: Optional[Callback] = None, **kwargs: Any
    ) -> concurrent.futures.Future:
        """Schedule ``fn`` and invoke ``callback`` with its future when done."""


class ThreadController:
    """Coordinates threaded execution of background tasks."""

    def __init__(self, max_workers: Optional[int] = None, *, thread_name_prefix: str = "beautifier") -> None:
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._pending: Deque[concurrent.futures.Future] = deque()
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)
        self._shutdown = False

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        callback: Optional[Callback] = None,
        **kwargs: Any,
    ) -> concurrent.futures.Future:
        """Submit a callable to execute in the background.

        ``callback`` receives the finished future and runs on the worker
        thread (or immediately on the caller when the future is already done).
        """

        if self._shutdown:
            raise RuntimeError("ThreadController has been shut down")
        future = self._executor.submit(fn, *args, **kwargs)
        with self._lock:
            self._pending.append(future)
        future.add_done_callback(self._cleanup_future)
        if callback is not None:
            future.add_done_callback(callback)
        self._logger.debug("Task submitted", extra={"component": "ThreadController", "pending": len(self._pending)})
        return future

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def cancel_all(self) -> None:
        """Cancel tasks that have not started yet. Running tasks finish normally."""

        with self._lock:
            pending = list(self._pending)
        # Cancelling runs done callbacks synchronously, and _cleanup_future
        # takes the lock again.
        for future in pending:
            future.cancel()
        self._logger.info("Queued background tasks cancelled", extra={"component": "ThreadController"})

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor and cancel queued tasks."""

        self._shutdown = True
        self.cancel_all()
        self._executor.shutdown(wait=wait)
        self._logger.info("Thread controller shutdown", extra={"component": "ThreadController"})

    def _cleanup_future(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            if future in self._pending:
                self._pending.remove(future)
        self._logger.debug("Task finished", extra={"component": "ThreadController", "pending": len(self._pending)})


class InlineDispatcher:
    """Run posted callbacks immediately on whichever thread posts them."""

    def __call__(self, fn: Callable[[], None]) -> None:
        fn()


class QueuedDispatcher:
    """Collect callbacks from any thread and run them on the owning thread.

    Worker threads post with ``dispatcher(fn)``; the thread that owns the
    interactive state calls :meth:`run_pending` from its event loop.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._logger = logging.getLogger(__name__)

    def __call__(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    def has_pending(self) -> bool:
        return not self._queue.empty()

    def run_pending(self, *, block: bool = False, timeout: Optional[float] = None) -> int:
        """Run queued callbacks and return how many were executed.

        With ``block`` the call waits up to ``timeout`` seconds for the first
        callback before draining whatever else is queued.
        """

        executed = 0
        try:
            fn = self._queue.get(block=block, timeout=timeout)
        except queue.Empty:
            return 0
        while True:
            fn()
            executed += 1
            try:
                fn = self._queue.get_nowait()
            except queue.Empty:
                break
        self._logger.debug("Dispatched %s callbacks", executed, extra={"component": "QueuedDispatcher"})
        return executed


__all__ = ["Callback", "InlineDispatcher", "QueuedDispatcher", "TaskExecutor", "ThreadController"]
