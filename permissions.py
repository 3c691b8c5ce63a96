"""Microphone permission gate.

The gate caches the last known :class:`PermissionStatus`. ``check`` never
prompts; ``request`` may. Once access is granted the cached status answers
every later ``request`` without touching the provider again.
"""

from __future__ import annotations

import logging
import threading

from models import PermissionState, PermissionStatus
from interfaces import PermissionProvider

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class PermissionGate:
    def __init__(self, provider: PermissionProvider) -> None:
        self._provider = provider
        self._status = PermissionStatus.unknown()
        self._lock = threading.Lock()
        self.is_requesting = False

    @property
    def status(self) -> PermissionStatus:
        return self._status

    def check(self) -> PermissionStatus:
        try:
            status = self._provider.get_status()
        except Exception:
            logger.warning("Permission check failed", exc_info=True)
            status = PermissionStatus.denied(can_ask_again=True)
        self._status = status
        return status

    def request(self) -> bool:
        with self._lock:
            if self._status.granted:
                return True
            self.is_requesting = True
            try:
                status = self._provider.request_access()
            except Exception:
                logger.warning("Permission request failed", exc_info=True)
                status = PermissionStatus.denied(can_ask_again=True)
            finally:
                self.is_requesting = False
            self._status = status
        if status.granted:
            logger.info("Microphone permission granted")
        else:
            logger.info("Microphone permission denied (can ask again: %s)", status.can_ask_again)
        return status.granted

    def ensure(self) -> bool:
        """Resolve the permission before a recording start.

        Returns True iff access is granted. A terminal denial is never
        re-prompted.
        """
        status = self._status
        if status.state == PermissionState.UNKNOWN:
            status = self.check()
        if status.granted:
            return True
        if not status.askable:
            return False
        return self.request()

    def refresh(self) -> PermissionStatus:
        self._status = PermissionStatus.unknown()
        return self.check()


class SoundDevicePermissionProvider:
    """Desktop stand-in for the OS microphone permission.

    Access counts as granted once an input stream can be opened on the
    default input device. A host with no input device at all is a terminal
    denial, there is nothing the user could grant.
    """

    def __init__(self, sample_rate: int = 16000, channels: int = 1) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._granted = False

    def get_status(self) -> PermissionStatus:
        if sd is None or not self._has_input_device():
            self._granted = False
            return PermissionStatus.denied(can_ask_again=False)
        if self._granted:
            return PermissionStatus.granted_status()
        return PermissionStatus.unknown()

    def request_access(self) -> PermissionStatus:
        if sd is None:
            return PermissionStatus.denied(can_ask_again=False)
        if not self._has_input_device():
            return PermissionStatus.denied(can_ask_again=False)
        try:
            sd.check_input_settings(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
            )
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
            )
            stream.start()
            stream.stop()
            stream.close()
        except Exception:
            logger.info("Input stream probe refused", exc_info=True)
            return PermissionStatus.denied(can_ask_again=True)
        self._granted = True
        return PermissionStatus.granted_status()

    def _has_input_device(self) -> bool:
        try:
            sd.query_devices(kind="input")
        except Exception:
            return False
        return True
