"""
Per-subject mutual exclusion
"""

from contextlib import contextmanager
from typing import Dict, Iterator, Optional
import threading
import structlog

from ..exceptions import OperationTimeoutError
from ..utils.deadline import Deadline

logger = structlog.get_logger(__name__)


class _SubjectLock:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class SubjectLockRegistry:
    """
    Keyed locks, one per subject.

    Entries are reference counted and dropped once no caller holds or
    waits on them.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, _SubjectLock] = {}

    @contextmanager
    def hold(self, subject_id: int, deadline: Optional[Deadline] = None) -> Iterator[None]:
        """
        Hold the subject's lock for the duration of the block.

        Raises:
            OperationTimeoutError: the lock was not acquired before the deadline
        """
        with self._guard:
            entry = self._locks.get(subject_id)
            if entry is None:
                entry = self._locks[subject_id] = _SubjectLock()
            entry.holders += 1

        acquired = False
        try:
            remaining = deadline.remaining() if deadline else None
            if remaining is None:
                acquired = entry.lock.acquire()
            else:
                acquired = entry.lock.acquire(timeout=remaining)
            if not acquired:
                logger.warning("Subject lock not acquired", subject_id=subject_id)
                raise OperationTimeoutError(deadline.operation, deadline.timeout)
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[subject_id]

    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)
