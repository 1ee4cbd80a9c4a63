"""
Background workers for non-blocking operations.

Runs plain functions on a QThreadPool. Results come back through Qt
signals, delivered on the thread that submitted the work.
"""

from diffview.workers.base_worker import (
    RunnableWorker,
    WorkerSignals,
    WorkerState,
)
from diffview.workers.thread_pool import WorkerPool

__all__ = [
    'RunnableWorker',
    'WorkerSignals',
    'WorkerState',
    'WorkerPool',
]
