"""Dream submission pipeline: transcribe, interpret, persist."""

from __future__ import annotations

import logging
from typing import Optional

from errors import AUTH_FAILED, DreamTalkError, StoreError, ValidationError
from interfaces import InterpretationService, JournalStore, Transcriber
from models import (
    AuthSession,
    Dream,
    DreamStatus,
    InputType,
    InterpretationResult,
    Profile,
    RecordingArtifact,
)
from recording import discard_artifact

logger = logging.getLogger(__name__)

TITLE_LENGTH = 48


def make_title(text: str) -> str:
    line = " ".join(text.split())
    if len(line) <= TITLE_LENGTH:
        return line
    return line[: TITLE_LENGTH - 1].rstrip() + "…"


class DreamJournal:
    """Runs a submission end to end for the signed-in user.

    The dream row is created in ``processing`` state before any remote
    call, and always ends ``completed`` or ``failed``.
    """

    def __init__(
        self,
        store: JournalStore,
        interpreter: InterpretationService,
        transcriber: Optional[Transcriber] = None,
    ) -> None:
        self._store = store
        self._interpreter = interpreter
        self._transcriber = transcriber

    def sign_in(self, email: str, password: str) -> AuthSession:
        return self._store.sign_in(email, password)

    def sign_up(self, email: str, password: str, display_name: str) -> AuthSession:
        return self._store.sign_up(email, password, display_name)

    def sign_out(self) -> None:
        self._store.sign_out()

    def profile(self) -> Optional[Profile]:
        return self._store.get_profile(self.current_user_id())

    def current_user_id(self) -> str:
        session = self._store.get_session()
        if session is None:
            raise StoreError("Not signed in", code=AUTH_FAILED)
        return session.user_id

    def submit_text(self, text: str) -> tuple[Dream, InterpretationResult]:
        if not text.strip():
            raise ValidationError("Dream text is required")
        user_id = self.current_user_id()
        dream = self._store.create_dream(
            {
                "user_id": user_id,
                "title": make_title(text),
                "content": text.strip(),
                "input_type": InputType.TEXT.value,
                "status": DreamStatus.PROCESSING.value,
            }
        )
        return self._interpret(dream, text)

    def submit_recording(self, artifact: RecordingArtifact) -> tuple[Dream, InterpretationResult]:
        """Transcribe and interpret a voice dream.

        The artifact is consumed: its local file is deleted once the
        submission finishes, whatever the outcome.
        """
        try:
            return self._submit_recording(artifact)
        finally:
            discard_artifact(artifact)

    def _submit_recording(self, artifact: RecordingArtifact) -> tuple[Dream, InterpretationResult]:
        if self._transcriber is None:
            raise DreamTalkError("Voice dreams need a transcriber")
        user_id = self.current_user_id()
        dream = self._store.create_dream(
            {
                "user_id": user_id,
                "content": "",
                "input_type": InputType.VOICE.value,
                "status": DreamStatus.PROCESSING.value,
            }
        )
        try:
            text = self._transcriber.transcribe(artifact)
            dream = self._store.update_dream(dream.id, {"content": text, "title": make_title(text)})
        except DreamTalkError:
            self._mark_failed(dream)
            raise
        return self._interpret(dream, text)

    def list_dreams(self) -> list[Dream]:
        return self._store.list_dreams(self.current_user_id())

    def toggle_favorite(self, dream_id: str) -> Dream:
        dream = self._store.get_dream(dream_id)
        if dream is None:
            raise StoreError(f"Dream {dream_id} not found")
        return self._store.update_dream(dream_id, {"is_favorite": not dream.is_favorite})

    def delete_dream(self, dream_id: str) -> None:
        self._store.delete_dream(dream_id)

    def _interpret(self, dream: Dream, text: str) -> tuple[Dream, InterpretationResult]:
        try:
            result = self._interpreter.interpret(text)
            dream = self._store.update_dream(
                dream.id,
                {
                    "status": DreamStatus.COMPLETED.value,
                    "interpretation": result.interpretation,
                    "interpretation_summary": result.summary,
                    "symbols_detected": result.symbols_payload(),
                    "mood_analysis": result.mood_payload(),
                },
            )
        except DreamTalkError:
            self._mark_failed(dream)
            raise
        self._bump_dream_count(dream.user_id)
        return dream, result

    def _mark_failed(self, dream: Dream) -> None:
        try:
            self._store.update_dream(dream.id, {"status": DreamStatus.FAILED.value})
        except StoreError:
            logger.warning("Could not mark dream %s as failed", dream.id, exc_info=True)

    def _bump_dream_count(self, user_id: str) -> None:
        # Best effort: the dream row is already completed.
        try:
            profile = self._store.get_profile(user_id)
            if profile is None:
                logger.warning("No profile row for user %s", user_id)
                return
            self._store.update_profile(user_id, {"dream_count": profile.dream_count + 1})
        except StoreError:
            logger.warning("Could not update dream count for %s", user_id, exc_info=True)
