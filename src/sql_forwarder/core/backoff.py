from __future__ import annotations

import threading
from typing import Callable, Optional

from sql_forwarder.utils.logging import get_logger

SAFE_INTERVAL_MS = 60000

IntervalListener = Callable[[int], None]


class BackoffController:
    """
    Owns the current poll interval.

    Failed deliveries double the interval up to ``maximum_ms``; the first
    successful delivery afterwards restores ``base_ms``. Every change is pushed
    to an optional listener (normally the scheduler) while the lock is held.
    """

    def __init__(self, base_ms: int, maximum_ms: int, listener: Optional[IntervalListener] = None):
        if base_ms <= 0:
            raise ValueError("base_ms must be positive")
        if maximum_ms < base_ms:
            raise ValueError("maximum_ms must be >= base_ms")
        self.base_ms = base_ms
        self.maximum_ms = maximum_ms
        self._current_ms = base_ms
        self._listener = listener
        self._lock = threading.Lock()
        self.log = get_logger("sql_forwarder.backoff")

    @property
    def current_interval_ms(self) -> int:
        with self._lock:
            return self._current_ms

    def set_listener(self, listener: Optional[IntervalListener]) -> None:
        with self._lock:
            self._listener = listener

    def on_failure(self) -> int:
        """Escalate the interval after a failed delivery; no-op at the ceiling."""
        with self._lock:
            if self._current_ms >= self.maximum_ms:
                return self._current_ms
            target = min(self._current_ms * 2, self.maximum_ms)
            if self._apply(target):
                self.log.warning("Poll interval set to %s milliseconds", target)
            return self._current_ms

    def on_success(self) -> int:
        """Restore the base interval after a successful delivery."""
        with self._lock:
            if self._current_ms == self.base_ms:
                return self._current_ms
            self.log.info("Restoring poll interval to %s milliseconds", self.base_ms)
            self._apply(self.base_ms)
            return self._current_ms

    def _apply(self, interval_ms: int) -> bool:
        try:
            if self._listener is not None:
                self._listener(interval_ms)
            self._current_ms = interval_ms
            return True
        except Exception:
            self.log.exception("Failed to apply poll interval %s ms, falling back to %s ms", interval_ms, SAFE_INTERVAL_MS)
            self._current_ms = SAFE_INTERVAL_MS
            try:
                if self._listener is not None:
                    self._listener(SAFE_INTERVAL_MS)
            except Exception:
                self.log.exception("Failed to apply fallback poll interval")
            return False
