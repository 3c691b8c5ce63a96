"""Speech-to-text for finished recordings via DashScope qwen3-asr-flash.

The model accepts a local file URI, so the WAV artifact is passed as-is.
"""

from __future__ import annotations

import logging
import os
from http import HTTPStatus
from pathlib import Path

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

from errors import AUTH_FAILED, NETWORK_ERROR, TranscriptionError
from models import RecordingArtifact

logger = logging.getLogger(__name__)


class DashscopeTranscriber:
    def __init__(
        self,
        api_key: str = "",
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    def transcribe(self, artifact: RecordingArtifact) -> str:
        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            raise TranscriptionError("No API key configured", code=AUTH_FAILED)

        path = Path(artifact.uri)
        if not path.exists():
            raise TranscriptionError(f"Recording not found: {artifact.uri}")
        if dashscope is None:
            raise TranscriptionError("dashscope is not installed")

        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": path.resolve().as_uri()}]},
                ],
                result_format="message",
                asr_options={"enable_itn": True},
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            logger.error("Transcription request failed: %s", exc)
            raise self._to_error(exc) from exc

        status_code = getattr(response, "status_code", HTTPStatus.OK)
        if status_code != HTTPStatus.OK:
            message = getattr(response, "message", "") or f"HTTP {status_code}"
            raise TranscriptionError(message)

        text = self._extract_text(response).strip()
        if not text:
            raise TranscriptionError("Transcript is empty")
        return text

    def _extract_text(self, response: object) -> str:
        """Pull text from a DashScope multimodal response dict."""
        if isinstance(response, dict):
            output = response.get("output") or {}
            choices = output.get("choices") or []
            if not choices:
                return ""
            message = choices[0].get("message") or {}
            content = message.get("content") or []
            if not content:
                return ""
            value = content[0]
            if isinstance(value, dict):
                return str(value.get("text", ""))
        return ""

    def _to_error(self, exc: Exception) -> TranscriptionError:
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            return TranscriptionError(message, code=AUTH_FAILED)
        if "timeout" in low or "network" in low or "connection" in low:
            return TranscriptionError(message, code=NETWORK_ERROR)
        return TranscriptionError(message)
