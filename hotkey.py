"""Global hold-to-record hotkey based on pynput.

Holding the record key behaves like holding the record button. While it is
held, the lock key stands in for the slide-up gesture and the cancel key
discards the recording.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class HoldToRecordHotkey:
    def __init__(
        self,
        record_key: str = "Key.alt_l",
        lock_key: str = "Key.up",
        cancel_key: str = "Key.esc",
    ) -> None:
        self._record_key = record_key
        self._lock_key = lock_key
        self._cancel_key = cancel_key
        self._listener: Optional[object] = None
        self._held = False
        self._lock = threading.Lock()

    def start(
        self,
        on_press: Callable[[], None],
        on_release: Callable[[], None],
        on_lock: Optional[Callable[[], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
    ) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")

        def _on_press(key: object) -> None:
            self.handle_press(str(key), on_press, on_lock, on_cancel)

        def _on_release(key: object) -> None:
            self.handle_release(str(key), on_release)

        self._listener = keyboard.Listener(on_press=_on_press, on_release=_on_release)
        self._listener.start()

    def handle_press(
        self,
        name: str,
        on_press: Callable[[], None],
        on_lock: Optional[Callable[[], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
    ) -> None:
        if name == self._record_key:
            with self._lock:
                if self._held:
                    return
                self._held = True
            on_press()
            return
        if not self._held:
            return
        if name == self._lock_key and on_lock is not None:
            on_lock()
        elif name == self._cancel_key and on_cancel is not None:
            on_cancel()

    def handle_release(self, name: str, on_release: Callable[[], None]) -> None:
        if name != self._record_key:
            return
        with self._lock:
            if not self._held:
                return
            self._held = False
        on_release()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
