"""
Operation deadlines
"""

from typing import Optional
import time
import structlog

from ..exceptions import OperationTimeoutError

logger = structlog.get_logger(__name__)


class Deadline:
    """Absolute monotonic point in time derived from a caller timeout"""

    def __init__(self, operation: str, timeout: Optional[float] = None):
        self.operation = operation
        self.timeout = timeout
        self._expires = time.monotonic() + timeout if timeout is not None else None

    @classmethod
    def never(cls, operation: str) -> "Deadline":
        return cls(operation, None)

    def remaining(self) -> Optional[float]:
        """Seconds left, None when unbounded"""
        if self._expires is None:
            return None
        return max(0.0, self._expires - time.monotonic())

    def expired(self) -> bool:
        return self._expires is not None and time.monotonic() >= self._expires

    def check(self, step: str = "") -> None:
        """Raise OperationTimeoutError once the deadline has passed"""
        if self.expired():
            logger.warning("Operation deadline exceeded", operation=self.operation,
                           step=step, timeout=self.timeout)
            raise OperationTimeoutError(self.operation, self.timeout)
