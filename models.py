"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class PermissionState(str, Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class PermissionStatus:
    state: PermissionState
    can_ask_again: bool = True

    @property
    def granted(self) -> bool:
        return self.state == PermissionState.GRANTED

    @property
    def askable(self) -> bool:
        """True when a native prompt may still be shown."""
        if self.state == PermissionState.GRANTED:
            return False
        return self.state == PermissionState.UNKNOWN or self.can_ask_again

    @classmethod
    def unknown(cls) -> PermissionStatus:
        return cls(PermissionState.UNKNOWN)

    @classmethod
    def granted_status(cls) -> PermissionStatus:
        return cls(PermissionState.GRANTED)

    @classmethod
    def denied(cls, can_ask_again: bool = True) -> PermissionStatus:
        return cls(PermissionState.DENIED, can_ask_again=can_ask_again)


class SessionState(str, Enum):
    IDLE = "IDLE"
    REQUESTING = "REQUESTING"
    RECORDING = "RECORDING"
    LOCKED = "LOCKED"
    STOPPING = "STOPPING"
    FINALIZED = "FINALIZED"
    FAILED = "FAILED"


class InteractionState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    LOCKED = "LOCKED"
    FINALIZING = "FINALIZING"
    FAILED = "FAILED"


class FeedbackKind(str, Enum):
    MEDIUM = "medium"
    HEAVY = "heavy"


@dataclass(frozen=True)
class RecordingArtifact:
    uri: str
    duration_seconds: int
    size_bytes: int


class GestureEvent(str, Enum):
    LOCK = "lock"
    RELEASE_WITHOUT_LOCK = "release_without_lock"


@dataclass(frozen=True)
class GestureTrack:
    lock_threshold: float
    vertical_displacement: float = 0.0
    locked: bool = False


@dataclass(frozen=True)
class GestureUpdate:
    track: GestureTrack
    progress: float
    event: Optional[GestureEvent] = None


@dataclass(frozen=True)
class DreamSymbol:
    symbol: str
    meaning: str = ""
    significance: str = ""


@dataclass(frozen=True)
class DreamMood:
    primary: str = ""
    secondary: tuple[str, ...] = ()
    emotional_tone: str = ""


@dataclass(frozen=True)
class InterpretationResult:
    interpretation: str
    summary: str
    symbols: tuple[DreamSymbol, ...] = ()
    mood: DreamMood = field(default_factory=DreamMood)
    themes: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def symbols_payload(self) -> list[dict[str, str]]:
        return [
            {"symbol": s.symbol, "meaning": s.meaning, "significance": s.significance}
            for s in self.symbols
        ]

    def mood_payload(self) -> dict[str, Any]:
        return {
            "primary": self.mood.primary,
            "secondary": list(self.mood.secondary),
            "emotional_tone": self.mood.emotional_tone,
        }


class InputType(str, Enum):
    VOICE = "voice"
    TEXT = "text"


class DreamStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SubscriptionTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


@dataclass
class Profile:
    id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    dream_count: int = 0
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Dream:
    id: str
    user_id: str
    content: str
    input_type: InputType
    status: DreamStatus = DreamStatus.PROCESSING
    title: Optional[str] = None
    audio_url: Optional[str] = None
    interpretation: Optional[str] = None
    interpretation_summary: Optional[str] = None
    symbols_detected: Optional[list[dict[str, str]]] = None
    mood_analysis: Optional[dict[str, Any]] = None
    is_favorite: bool = False
    created_at: str = ""
    updated_at: str = ""


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    user_id: str
    email: str = ""
    expires_at: Optional[int] = None
