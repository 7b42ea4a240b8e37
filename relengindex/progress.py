"""
Progress and cancellation for long-running operations.

A ProgressMonitor is handed to operations such as a commit. The caller may
cancel it at any time; the operation checks it between steps and stops
with OperationCanceled.
"""

import threading
from typing import Optional
import logging

from .exceptions import OperationCanceled

logger = logging.getLogger(__name__)


class ProgressMonitor:
    """
    Cancellation token with coarse progress reporting.

    Example:
        monitor = ProgressMonitor()
        index.commit("Update map for v20131001", monitor)
        # from another thread or a signal handler:
        monitor.cancel()
    """

    def __init__(self):
        self._canceled = threading.Event()
        self.task: Optional[str] = None
        self.total = 0
        self.done = 0

    def begin(self, task: str, total: int = 0) -> None:
        self.task = task
        self.total = total
        self.done = 0
        logger.debug(f"{task}: started")

    def worked(self, amount: int = 1) -> None:
        self.done += amount

    def cancel(self) -> None:
        self._canceled.set()

    @property
    def is_canceled(self) -> bool:
        return self._canceled.is_set()

    def check_canceled(self) -> None:
        """Raise OperationCanceled if the caller asked to stop."""
        if self.is_canceled:
            raise OperationCanceled(f"{self.task or 'operation'} canceled")
