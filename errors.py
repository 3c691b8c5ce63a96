"""Shared error codes, user-facing messages and exception types."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
PERMISSION_BLOCKED = "PERMISSION_BLOCKED"
RECORDER_INIT_FAILED = "RECORDER_INIT_FAILED"
NO_ACTIVE_RECORDING = "NO_ACTIVE_RECORDING"
INTERPRETATION_CONFIG = "INTERPRETATION_CONFIG"
VALIDATION_ERROR = "VALIDATION_ERROR"
REMOTE_ERROR = "REMOTE_ERROR"
PARSE_ERROR = "PARSE_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
STORE_ERROR = "STORE_ERROR"
TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
EMPTY_RECORDING = "EMPTY_RECORDING"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Microphone access is needed to record your dreams.",
    PERMISSION_BLOCKED: "Microphone access was denied. Enable it in system settings.",
    RECORDER_INIT_FAILED: "Recording could not be started, please try again.",
    NO_ACTIVE_RECORDING: "There is no recording to stop.",
    INTERPRETATION_CONFIG: "Dream interpretation is not configured. Set an API key.",
    VALIDATION_ERROR: "Please describe your dream first.",
    REMOTE_ERROR: "The interpretation service returned an error, please retry.",
    PARSE_ERROR: "The interpretation response was not understood, please retry.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "Sign-in failed. Check your email and password.",
    STORE_ERROR: "Your journal could not be saved, please retry.",
    TRANSCRIPTION_FAILED: "Your recording could not be transcribed, please retry.",
    EMPTY_RECORDING: "Nothing was recorded, please try again.",
}


def user_message(code: str) -> str:
    return ERROR_MESSAGES.get(code, "Something went wrong, please retry.")


class DreamTalkError(Exception):
    code = REMOTE_ERROR

    def __init__(self, message: str = "", code: str | None = None) -> None:
        if code is not None:
            self.code = code
        self.message = message or user_message(self.code)
        super().__init__(self.message)


class InterpretationError(DreamTalkError):
    """Base class for failures of a single interpretation call."""


class ConfigurationError(InterpretationError):
    code = INTERPRETATION_CONFIG


class ValidationError(InterpretationError):
    code = VALIDATION_ERROR


class RemoteError(InterpretationError):
    code = REMOTE_ERROR

    def __init__(
        self,
        message: str = "",
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, code=code)


class ParseError(InterpretationError):
    code = PARSE_ERROR


class TranscriptionError(DreamTalkError):
    code = TRANSCRIPTION_FAILED


class StoreError(DreamTalkError):
    code = STORE_ERROR
