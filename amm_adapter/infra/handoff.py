"""
Cross-screen operation handoff

A depth-one mailbox: the pool directory or the intent resolver posts a
PendingOperation, the target orchestrator takes it exactly once.
"""

import logging
import threading
from typing import Optional

from ..types.intent import Operation, PendingOperation

logger = logging.getLogger(__name__)


class OperationMailbox:
    """Holds at most one pending operation; the last post wins"""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: Optional[PendingOperation] = None

    def post(self, pending: PendingOperation) -> None:
        with self._lock:
            if self._pending is not None:
                logger.debug(f"Replacing pending {self._pending.operation.value} with {pending.operation.value}")
            self._pending = pending

    def peek(self) -> Optional[PendingOperation]:
        return self._pending

    def take(self, operation: Operation) -> Optional[PendingOperation]:
        """
        Consume the pending record if it targets ``operation``

        A record for another operation is left in place.
        """
        with self._lock:
            pending = self._pending
            if pending is None or pending.operation != operation:
                return None
            self._pending = None
            return pending

    def clear(self) -> None:
        with self._lock:
            self._pending = None
