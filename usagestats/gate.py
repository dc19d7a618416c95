"""Once-per-day reporting gate with opt-out."""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
NEVER = -1


def _now_ms() -> int:
    return int(time.time() * 1000)


class ReportingGate:
    """Decides whether a usage report should be produced now.

    The timestamp is committed when is_due() says yes, before any report is
    built. A later failure does not re-arm the gate; the next attempt is one
    interval away.

    Args:
        collecting: zero-arg callable, False when the user opted out.
        clock: zero-arg callable returning epoch milliseconds.
    """

    def __init__(
        self,
        collecting: Callable[[], bool],
        clock: Callable[[], int] | None = None,
        interval_ms: int = DAY_MS,
    ) -> None:
        self._collecting = collecting
        self._clock = clock or _now_ms
        self._interval_ms = interval_ms
        self._lock = threading.Lock()
        self._last_attempt = NEVER

    @property
    def last_attempt(self) -> int:
        return self._last_attempt

    def is_due(self) -> bool:
        # Opted out: no data collection, and the clock does not advance.
        if not self._collecting():
            logger.debug("Usage statistics disabled; not due")
            return False

        with self._lock:
            now = self._clock()
            if self._last_attempt == NEVER or now - self._last_attempt > self._interval_ms:
                self._last_attempt = now
                logger.debug("Usage statistics due at %d", now)
                return True
        return False
