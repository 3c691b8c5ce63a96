"""Lifecycle of a single audio capture."""

from __future__ import annotations

import logging
import tempfile
import threading
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from errors import NO_ACTIVE_RECORDING, PERMISSION_BLOCKED, PERMISSION_DENIED, RECORDER_INIT_FAILED
from interfaces import AudioRecorder, Ticker, TickerFactory
from models import RecordingArtifact, SessionState
from permissions import PermissionGate
from ticker import ThreadingTicker

logger = logging.getLogger(__name__)

ACTIVE_STATES = (SessionState.RECORDING, SessionState.LOCKED)


def format_duration(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


def discard_artifact(artifact: Optional[RecordingArtifact]) -> None:
    """Delete the local file behind a consumed artifact."""
    if artifact is None:
        return
    try:
        Path(artifact.uri).unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not delete recording %s", artifact.uri, exc_info=True)


class RecordingSession:
    """Owns the recorder handle and the clock for one capture.

    At most one ticker is alive per instance. Every exit path from an
    active state (``stop``, ``cancel``, a failed start) releases it.
    """

    def __init__(
        self,
        gate: PermissionGate,
        recorder: AudioRecorder,
        ticker_factory: TickerFactory = ThreadingTicker,
        output_dir: Path | None = None,
        tick_interval_s: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._gate = gate
        self._recorder = recorder
        self._ticker_factory = ticker_factory
        self._output_dir = output_dir or Path(tempfile.gettempdir()) / "dreamtalk"
        self._tick_interval_s = tick_interval_s
        self._clock = clock

        self._lock = threading.RLock()
        self._ticker: Optional[Ticker] = None
        self._path: Optional[Path] = None
        self.state = SessionState.IDLE
        self.started_at: Optional[float] = None
        self.elapsed_seconds = 0
        self.artifact: Optional[RecordingArtifact] = None
        self.error_code = ""

    @property
    def active(self) -> bool:
        return self.state in ACTIVE_STATES

    @property
    def timer_active(self) -> bool:
        return self._ticker is not None

    def start(self) -> bool:
        with self._lock:
            if self.state != SessionState.IDLE:
                logger.debug("start() ignored in state %s", self.state.value)
                return False
            self.error_code = ""
            self.state = SessionState.REQUESTING
            if not self._gate.ensure():
                status = self._gate.status
                self.error_code = PERMISSION_DENIED if status.can_ask_again else PERMISSION_BLOCKED
                self.state = SessionState.IDLE
                return False

            self._path = self._output_dir / f"dream-{uuid.uuid4().hex}.wav"
            try:
                self._recorder.start(str(self._path))
            except Exception:
                logger.warning("Recorder failed to initialize", exc_info=True)
                self.error_code = RECORDER_INIT_FAILED
                self._path = None
                self.state = SessionState.IDLE
                return False

            self.elapsed_seconds = 0
            self.started_at = self._clock()
            self.artifact = None
            self._ticker = self._ticker_factory()
            self.state = SessionState.RECORDING
            try:
                self._ticker.start(self._tick_interval_s, self._tick)
            except Exception:
                logger.warning("Recording clock failed to start", exc_info=True)
                self._abort_recorder()
                self._release_timer()
                self.error_code = RECORDER_INIT_FAILED
                self.state = SessionState.IDLE
                return False
            logger.debug("Recording started at %s", self._path)
            return True

    def lock(self) -> bool:
        with self._lock:
            if self.state != SessionState.RECORDING:
                return False
            self.state = SessionState.LOCKED
            return True

    def stop(self) -> Optional[RecordingArtifact]:
        with self._lock:
            if self.state not in ACTIVE_STATES:
                logger.warning("%s: stop() in state %s", NO_ACTIVE_RECORDING, self.state.value)
                return None
            self.state = SessionState.STOPPING

        artifact: Optional[RecordingArtifact] = None
        with self._timer_released():
            try:
                uri = self._recorder.stop()
            except Exception:
                logger.warning("Recorder failed to finalize", exc_info=True)
                uri = None
            if uri:
                artifact = RecordingArtifact(
                    uri=uri,
                    duration_seconds=self.elapsed_seconds,
                    size_bytes=self._size_of(uri),
                )

        with self._lock:
            self.artifact = artifact
            self.state = SessionState.FINALIZED if artifact else SessionState.FAILED
        if artifact is None:
            logger.info("Recording produced no audio")
        return artifact

    def cancel(self) -> None:
        with self._lock:
            was_active = self.state in ACTIVE_STATES or self.state == SessionState.STOPPING
            self.state = SessionState.IDLE
            self.elapsed_seconds = 0
            self.artifact = None
            self._path = None
        self._release_timer()
        if was_active:
            self._abort_recorder()

    def _tick(self) -> None:
        with self._lock:
            if self._ticker is None or self.state not in ACTIVE_STATES:
                return
            self.elapsed_seconds += 1

    @contextmanager
    def _timer_released(self) -> Iterator[None]:
        self._release_timer()
        try:
            yield
        finally:
            self._release_timer()

    def _release_timer(self) -> None:
        with self._lock:
            ticker, self._ticker = self._ticker, None
        if ticker is not None:
            try:
                ticker.cancel()
            except Exception:
                logger.warning("Recording clock failed to cancel", exc_info=True)

    def _abort_recorder(self) -> None:
        try:
            uri = self._recorder.stop()
        except Exception:
            logger.warning("Recorder stop failed during cancel", exc_info=True)
            return
        if uri:
            Path(uri).unlink(missing_ok=True)

    @staticmethod
    def _size_of(uri: str) -> int:
        try:
            return Path(uri).stat().st_size
        except OSError:
            return 0
