"""Dream interpretation through a DashScope chat model.

One request per call, no retries. The model is asked for a JSON object and
the reply is parsed into an :class:`InterpretationResult`.
"""

from __future__ import annotations

import json
import logging
import math
import os
from http import HTTPStatus
from typing import Any

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

from errors import (
    AUTH_FAILED,
    NETWORK_ERROR,
    ConfigurationError,
    ParseError,
    RemoteError,
    ValidationError,
)
from models import DreamMood, DreamSymbol, InterpretationResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a professional dream analyst. Respond only with valid JSON."

DREAM_INTERPRETATION_PROMPT = """You are a professional dream analyst and psychologist. \
Analyze the following dream and provide a comprehensive interpretation in {language}.

Dream Description: {dream_text}

Please provide your analysis as a JSON object with the following structure:
{{
  "interpretation": "Detailed interpretation of the dream (2-3 paragraphs)",
  "summary": "Brief summary in 1-2 sentences",
  "symbols": [
    {{
      "symbol": "Symbol name",
      "meaning": "What this symbol represents",
      "significance": "Its significance in the dream context"
    }}
  ],
  "mood": {{
    "primary": "Main emotional tone",
    "secondary": ["Additional emotions"],
    "emotional_tone": "Overall emotional assessment"
  }},
  "themes": ["Main themes identified in the dream"],
  "suggestions": ["Practical suggestions or insights"]
}}

Guidelines:
- Be empathetic and supportive in your analysis
- Draw from established dream psychology (Jung, Freud, modern dream research)
- Focus on personal growth and self-understanding
- Avoid making definitive predictions about the future
- Keep interpretations positive and constructive
- Use {language} for all text responses
- Be culturally sensitive and respectful"""


def build_prompt(dream_text: str, language: str = "English") -> str:
    return DREAM_INTERPRETATION_PROMPT.format(dream_text=dream_text, language=language)


def estimate_tokens(text: str) -> int:
    """Rough token estimate, about four characters per token."""
    return math.ceil(len(text) / 4)


def parse_interpretation(content: str) -> InterpretationResult:
    try:
        data = json.loads(content)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Response is not valid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise ParseError("Response is not a JSON object")

    interpretation = data.get("interpretation")
    summary = data.get("summary")
    if not isinstance(interpretation, str) or not interpretation.strip():
        raise ParseError("Response is missing 'interpretation'")
    if not isinstance(summary, str) or not summary.strip():
        raise ParseError("Response is missing 'summary'")

    return InterpretationResult(
        interpretation=interpretation,
        summary=summary,
        symbols=tuple(_parse_symbols(data.get("symbols"))),
        mood=_parse_mood(data.get("mood")),
        themes=_string_tuple(data.get("themes"), "themes"),
        suggestions=_string_tuple(data.get("suggestions"), "suggestions"),
    )


def _parse_symbols(value: Any) -> list[DreamSymbol]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError("'symbols' must be a list")
    symbols = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("symbol"), str):
            raise ParseError("Each symbol needs a 'symbol' string")
        symbols.append(
            DreamSymbol(
                symbol=item["symbol"],
                meaning=str(item.get("meaning") or ""),
                significance=str(item.get("significance") or ""),
            )
        )
    return symbols


def _parse_mood(value: Any) -> DreamMood:
    if value is None:
        return DreamMood()
    if not isinstance(value, dict):
        raise ParseError("'mood' must be an object")
    return DreamMood(
        primary=str(value.get("primary") or ""),
        secondary=_string_tuple(value.get("secondary"), "mood.secondary"),
        emotional_tone=str(value.get("emotional_tone") or ""),
    )


def _string_tuple(value: Any, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ParseError(f"'{name}' must be a list")
    return tuple(str(item) for item in value)


class DashscopeInterpreter:
    def __init__(
        self,
        api_key: str = "",
        model: str = "qwen-plus",
        language: str = "English",
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._language = language
        self._temperature = temperature
        self._max_tokens = max_tokens

    def is_configured(self) -> bool:
        return bool(self._resolve_api_key())

    def interpret(self, text: str) -> InterpretationResult:
        api_key = self._resolve_api_key()
        if not api_key:
            raise ConfigurationError("No DashScope API key configured")
        dream_text = (text or "").strip()
        if not dream_text:
            raise ValidationError("Dream text is required")
        if dashscope is None:
            raise ConfigurationError("dashscope is not installed")

        try:
            response = dashscope.Generation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(dream_text, self._language)},
                ],
                result_format="message",
                response_format={"type": "json_object"},
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            logger.error("Interpretation request failed: %s", exc)
            raise self._to_remote_error(exc) from exc

        status_code = getattr(response, "status_code", None)
        if status_code != HTTPStatus.OK:
            message = getattr(response, "message", "") or f"HTTP {status_code}"
            logger.error("Interpretation service returned %s: %s", status_code, message)
            code = AUTH_FAILED if status_code == HTTPStatus.UNAUTHORIZED else None
            raise RemoteError(message, status_code=status_code, code=code)

        content = self._extract_content(response)
        if not content:
            raise ParseError("No content in interpretation response")
        try:
            return parse_interpretation(content)
        except ParseError:
            logger.error("Could not parse interpretation response")
            raise

    def _resolve_api_key(self) -> str:
        return self._api_key or os.getenv("DASHSCOPE_API_KEY", "")

    def _extract_content(self, response: Any) -> str:
        try:
            content = response.output.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError):
            return ""
        return content if isinstance(content, str) else ""

    def _to_remote_error(self, exc: Exception) -> RemoteError:
        message = str(exc)
        low = message.lower()
        if "401" in low or "api key" in low:
            return RemoteError(message, code=AUTH_FAILED)
        if "timeout" in low or "network" in low or "connection" in low:
            return RemoteError(message, code=NETWORK_ERROR)
        return RemoteError(message)
