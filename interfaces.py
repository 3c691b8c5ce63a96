"""Protocol interfaces used by the recording core and the journal."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from models import (
    AuthSession,
    Dream,
    InterpretationResult,
    PermissionStatus,
    Profile,
    RecordingArtifact,
)


class PermissionProvider(Protocol):
    def get_status(self) -> PermissionStatus: ...

    def request_access(self) -> PermissionStatus: ...


class AudioRecorder(Protocol):
    def start(self, path: str) -> None: ...

    def stop(self) -> Optional[str]: ...


class Ticker(Protocol):
    def start(self, interval_s: float, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


TickerFactory = Callable[[], Ticker]


class Transcriber(Protocol):
    def transcribe(self, artifact: RecordingArtifact) -> str: ...


class InterpretationService(Protocol):
    def interpret(self, text: str) -> InterpretationResult: ...


class JournalStore(Protocol):
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def sign_up(self, email: str, password: str, display_name: str) -> AuthSession: ...

    def sign_out(self) -> None: ...

    def get_session(self) -> Optional[AuthSession]: ...

    def get_profile(self, user_id: str) -> Optional[Profile]: ...

    def update_profile(self, user_id: str, changes: dict[str, Any]) -> Profile: ...

    def create_dream(self, row: dict[str, Any]) -> Dream: ...

    def update_dream(self, dream_id: str, changes: dict[str, Any]) -> Dream: ...

    def get_dream(self, dream_id: str) -> Optional[Dream]: ...

    def list_dreams(self, user_id: str) -> list[Dream]: ...

    def delete_dream(self, dream_id: str) -> None: ...


class ConfigStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...
