"""Repeating timer used for the recording clock."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ThreadingTicker:
    """Calls ``callback`` every ``interval_s`` seconds until cancelled.

    ``cancel`` is idempotent and returns once no further callbacks can run.
    """

    def __init__(self) -> None:
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        if self.active:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            args=(interval_s, callback),
            daemon=True,
        )
        self._thread.start()

    def cancel(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    def _run(self, interval_s: float, callback: Callable[[], None]) -> None:
        while not self._stop_event.wait(interval_s):
            try:
                callback()
            except Exception:
                logger.exception("Tick callback failed")
