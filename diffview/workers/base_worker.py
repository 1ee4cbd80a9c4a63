"""
Base worker classes for background operations.

Provides common functionality for all workers:
- Cancellation
- Error handling at the thread boundary
- State management
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Callable, TypeVar

from PyQt6.QtCore import QObject, QRunnable, QMutex, QMutexLocker, pyqtSignal, pyqtSlot


T = TypeVar('T')


class WorkerState(Enum):
    """State of a worker."""
    PENDING = auto()
    RUNNING = auto()
    CANCELLED = auto()
    COMPLETED = auto()
    FAILED = auto()


class WorkerSignals(QObject):
    """
    Signals for worker communication.

    These signals are used to communicate between
    the worker thread and the thread that owns the signals.
    """
    # Worker started
    started = pyqtSignal()

    # Worker finished successfully with result
    finished = pyqtSignal(object)

    # Worker failed with error
    error = pyqtSignal(str, str)  # (error_type, message)

    # Worker was cancelled before its result was delivered
    cancelled = pyqtSignal()


class RunnableWorker(QRunnable):
    """
    Worker that can be submitted to QThreadPool.

    Runs a plain function and reports its result through ``signals``.
    Exceptions raised by the function are reported through
    ``signals.error`` and never escape the pool thread.
    """

    def __init__(
        self,
        func: Callable[..., T],
        *args,
        **kwargs
    ):
        super().__init__()
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()
        self._state = WorkerState.PENDING
        self._cancelled = False
        self._mutex = QMutex()
        self.setAutoDelete(True)

    @property
    def state(self) -> WorkerState:
        with QMutexLocker(self._mutex):
            return self._state

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        with QMutexLocker(self._mutex):
            return self._cancelled

    def _set_state(self, value: WorkerState) -> None:
        with QMutexLocker(self._mutex):
            self._state = value

    @pyqtSlot()
    def run(self) -> None:
        """Execute the function."""
        if self.is_cancelled:
            self._set_state(WorkerState.CANCELLED)
            self.signals.cancelled.emit()
            return

        self._set_state(WorkerState.RUNNING)
        self.signals.started.emit()

        try:
            result = self.func(*self.args, **self.kwargs)
        except Exception as e:
            self._set_state(WorkerState.FAILED)
            self.signals.error.emit(type(e).__name__, str(e))
            return

        if self.is_cancelled:
            self._set_state(WorkerState.CANCELLED)
            self.signals.cancelled.emit()
        else:
            self._set_state(WorkerState.COMPLETED)
            self.signals.finished.emit(result)

    def cancel(self) -> None:
        """Request cancellation."""
        with QMutexLocker(self._mutex):
            self._cancelled = True

