"""State-machine based record-button orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from errors import EMPTY_RECORDING, RECORDER_INIT_FAILED, user_message
from gesture import DEFAULT_LOCK_THRESHOLD, new_track, on_end, on_sample
from models import FeedbackKind, GestureEvent, InteractionState, RecordingArtifact
from recording import RecordingSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], RecordingSession]
StateCallback = Callable[[InteractionState, InteractionState], None]
FeedbackCallback = Callable[[FeedbackKind], None]
ProgressCallback = Callable[[float], None]
ArtifactCallback = Callable[[RecordingArtifact, int], None]
ErrorCallback = Callable[[str, str], None]


class InteractionController:
    """Maps press, release, drag and focus events onto one recording session.

    ``generation`` increases only on screen blur. Downstream work tagged
    with a stale generation was started before the user left the screen;
    a later recording on the same screen leaves earlier work current.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        lock_threshold: float = DEFAULT_LOCK_THRESHOLD,
        on_state_change: Optional[StateCallback] = None,
        on_feedback: Optional[FeedbackCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_artifact: Optional[ArtifactCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._session_factory = session_factory
        self._lock_threshold = lock_threshold
        self._on_state_change = on_state_change
        self._on_feedback = on_feedback
        self._on_progress = on_progress
        self._on_artifact = on_artifact
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = InteractionState.IDLE
        self._session: Optional[RecordingSession] = None
        self._track = new_track(lock_threshold)
        self._generation = 0

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def elapsed_seconds(self) -> int:
        session = self._session
        return session.elapsed_seconds if session is not None else 0

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def press_in(self) -> bool:
        with self._lock:
            if self._state != InteractionState.IDLE:
                return False
            session = self._session_factory()
            try:
                started = session.start()
            except Exception as exc:
                logger.warning("Recording start raised", exc_info=True)
                session.cancel()
                self._emit_error(RECORDER_INIT_FAILED, str(exc) or user_message(RECORDER_INIT_FAILED))
                return False
            if not started:
                code = session.error_code or RECORDER_INIT_FAILED
                self._emit_error(code, user_message(code))
                return False
            self._session = session
            self._track = new_track(self._lock_threshold)
            self._transition(InteractionState.RECORDING)
            self._emit_feedback(FeedbackKind.MEDIUM)
            return True

    def press_out(self) -> Optional[RecordingArtifact]:
        with self._lock:
            if self._state == InteractionState.LOCKED:
                logger.debug("Release ignored while locked")
                return None
            if self._state != InteractionState.RECORDING:
                return None
            return self._finish()

    def slide(self, displacement: float) -> float:
        with self._lock:
            if self._state != InteractionState.RECORDING:
                return 1.0 if self._state == InteractionState.LOCKED else 0.0
            update = on_sample(self._track, displacement)
            self._track = update.track
            self._emit_progress(update.progress)
            if update.event == GestureEvent.LOCK:
                self.lock()
            return update.progress

    def gesture_end(self) -> Optional[RecordingArtifact]:
        with self._lock:
            if self._state != InteractionState.RECORDING:
                return None
            update = on_end(self._track)
            self._track = update.track
            self._emit_progress(update.progress)
            if update.event == GestureEvent.RELEASE_WITHOUT_LOCK:
                return self.press_out()
            return None

    def lock(self) -> bool:
        with self._lock:
            if self._state != InteractionState.RECORDING or self._session is None:
                return False
            if not self._session.lock():
                return False
            self._transition(InteractionState.LOCKED)
            self._emit_feedback(FeedbackKind.HEAVY)
            return True

    def explicit_stop(self) -> Optional[RecordingArtifact]:
        with self._lock:
            if self._state not in (InteractionState.RECORDING, InteractionState.LOCKED):
                return None
            return self._finish()

    def screen_blur(self) -> None:
        with self._lock:
            self._generation += 1
            session, self._session = self._session, None
            if session is not None:
                session.cancel()
            self._track = new_track(self._lock_threshold)
            self._transition(InteractionState.IDLE)

    def _finish(self) -> Optional[RecordingArtifact]:
        session = self._session
        if session is None:
            self._transition(InteractionState.IDLE)
            return None
        # Leaving LOCKED clears the lock before the artifact is finalized.
        self._transition(InteractionState.FINALIZING)
        try:
            artifact = session.stop()
        except Exception as exc:
            logger.warning("Recording stop raised", exc_info=True)
            self._fail(RECORDER_INIT_FAILED, str(exc))
            return None
        self._session = None
        if artifact is None:
            self._fail(EMPTY_RECORDING, user_message(EMPTY_RECORDING))
            return None
        self._transition(InteractionState.IDLE)
        if self._on_artifact:
            self._on_artifact(artifact, self._generation)
        return artifact

    def _fail(self, code: str, message: str) -> None:
        self._transition(InteractionState.FAILED)
        session, self._session = self._session, None
        if session is not None:
            session.cancel()
        self._emit_error(code, message)
        self._transition(InteractionState.IDLE)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _emit_feedback(self, kind: FeedbackKind) -> None:
        if self._on_feedback:
            self._on_feedback(kind)

    def _emit_progress(self, progress: float) -> None:
        if self._on_progress:
            self._on_progress(progress)

    def _transition(self, to_state: InteractionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("Interaction %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
