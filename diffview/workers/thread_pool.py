"""
Thread pool management for worker tasks.

Provides a managed pool of worker threads for executing
small tasks off the owner thread. Callbacks always run on
the thread that submitted the task, delivered through queued
Qt signals, so callers never need locking.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Optional, TypeVar

from PyQt6.QtCore import QObject, QThreadPool

from diffview.workers.base_worker import RunnableWorker


T = TypeVar('T')

ErrorCallback = Callable[[str, str], None]  # (error_type, message)


class WorkerPool(QObject):
    """
    Managed pool of worker threads.

    Uses Qt's QThreadPool for efficient thread management. Giving
    ``max_workers`` creates a private pool so the process-wide
    QThreadPool is left untouched.

    Usage:
        pool = WorkerPool()
        task_id = pool.submit(my_function, arg1, arg2, callback=on_complete)
        pool.cancel(task_id)
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        thread_pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        if thread_pool is not None:
            self._pool = thread_pool
        elif max_workers is not None:
            self._pool = QThreadPool(self)
            self._pool.setMaxThreadCount(max_workers)
        else:
            self._pool = QThreadPool.globalInstance()

        self._task_counter = 0
        self._in_flight: dict[str, RunnableWorker] = {}

    @property
    def max_workers(self) -> int:
        """Maximum number of worker threads."""
        return self._pool.maxThreadCount()

    @property
    def pending_count(self) -> int:
        """Number of tasks whose results have not been delivered yet."""
        return len(self._in_flight)

    def submit(
        self,
        func: Callable[..., T],
        *args,
        callback: Optional[Callable[[T], None]] = None,
        error_callback: Optional[ErrorCallback] = None,
        **kwargs
    ) -> str:
        """
        Submit a function to be executed in the pool.

        Args:
            func: Function to execute
            *args: Arguments to pass to function
            callback: Called with result on success
            error_callback: Called with (error_type, message) on error
            **kwargs: Keyword arguments to pass to function

        Returns:
            Task ID that can be used to track or cancel the task
        """
        self._task_counter += 1
        task_id = f"task_{self._task_counter}"

        worker = RunnableWorker(func, *args, **kwargs)
        worker.signals.finished.connect(partial(self._on_task_complete, task_id, callback))
        worker.signals.error.connect(partial(self._on_task_error, task_id, error_callback))
        worker.signals.cancelled.connect(partial(self._on_task_cancelled, task_id))

        # Hold a reference until the result is delivered
        self._in_flight[task_id] = worker
        self._pool.start(worker)

        return task_id

    def cancel(self, task_id: str) -> bool:
        """
        Cancel a task; its result will not be delivered.

        A task still queued is skipped without running its function.
        """
        worker = self._in_flight.get(task_id)
        if worker is None:
            return False
        worker.cancel()
        return True

    def wait_all(self, timeout: int = -1) -> bool:
        """
        Wait for all pool threads to finish.

        Results are delivered once the owner thread processes events.

        Args:
            timeout: Timeout in milliseconds (-1 for infinite)

        Returns:
            True if all tasks completed, False if timeout
        """
        return self._pool.waitForDone(timeout)

    def _is_cancelled(self, task_id: str) -> bool:
        worker = self._in_flight.get(task_id)
        return worker is not None and worker.is_cancelled

    def _finish(self, task_id: str) -> None:
        self._in_flight.pop(task_id, None)

    def _on_task_complete(
        self,
        task_id: str,
        callback: Optional[Callable[[Any], None]],
        result: Any
    ) -> None:
        """Handle task completion."""
        if self._is_cancelled(task_id):
            self._on_task_cancelled(task_id)
            return

        self._finish(task_id)
        if callback:
            callback(result)

    def _on_task_error(
        self,
        task_id: str,
        error_callback: Optional[ErrorCallback],
        error_type: str,
        message: str
    ) -> None:
        """Handle task error."""
        if self._is_cancelled(task_id):
            self._on_task_cancelled(task_id)
            return

        logging.warning(f"WorkerPool - {task_id} failed: {error_type}: {message}")
        self._finish(task_id)
        if error_callback:
            error_callback(error_type, message)

    def _on_task_cancelled(self, task_id: str) -> None:
        logging.debug(f"WorkerPool - {task_id} cancelled")
        self._finish(task_id)
