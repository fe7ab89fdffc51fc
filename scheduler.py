"""Timer-based scheduler for short repeating callbacks."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler:
    """Runs each callback once on a daemon timer thread after ``delay_s``."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        def _run() -> None:
            try:
                callback()
            except Exception:
                logger.exception("Scheduled callback failed")

        timer = threading.Timer(max(0.0, delay_s), _run)
        timer.daemon = True
        timer.start()
        return TimerHandle(timer)
