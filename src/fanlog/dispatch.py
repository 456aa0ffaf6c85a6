"""
Serial background dispatch: many producers, one worker thread.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable

Task = Callable[[], None]

_STOP = object()


class SerialDispatcher:
    """Runs submitted tasks one at a time, in submission order, on a daemon thread."""

    def __init__(self, name: str = "fanlog-dispatch"):
        self._queue: queue.Queue = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, task: Task) -> bool:
        """Enqueue a task. Returns False when the dispatcher has been shut down."""
        with self._lock:
            if self._closed:
                return False
            self._queue.put(task)
            return True

    def join(self, timeout: float | None = None) -> bool:
        """Wait until every task submitted so far has run. Returns False on timeout."""
        if threading.current_thread() is self._thread:
            return False
        done = threading.Event()
        if not self.submit(done.set):
            return True
        return done.wait(timeout)

    def shutdown(self, timeout: float | None = 5.0) -> None:
        """Drain pending tasks, then stop the worker. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            task = self._queue.get()
            if task is _STOP:
                return
            try:
                task()
            except Exception:
                pass  # Fail silently to avoid killing the worker
