"""Tests for DashscopeInterpreter."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from errors import (
    AUTH_FAILED,
    NETWORK_ERROR,
    ConfigurationError,
    ParseError,
    RemoteError,
    ValidationError,
)
from interpreter import DashscopeInterpreter, build_prompt, estimate_tokens, parse_interpretation

FULL_REPLY = {
    "interpretation": "Flying often reflects a wish for freedom.",
    "summary": "A dream about escaping constraints.",
    "symbols": [
        {"symbol": "Flying", "meaning": "Freedom", "significance": "Central image"},
    ],
    "mood": {
        "primary": "joy",
        "secondary": ["relief", "curiosity"],
        "emotional_tone": "uplifting",
    },
    "themes": ["freedom", "change"],
    "suggestions": ["Notice where you feel held back."],
}


def _response(content: str | None, status_code: int = 200, message: str = "") -> SimpleNamespace:
    choices = [] if content is None else [SimpleNamespace(message=SimpleNamespace(content=content))]
    return SimpleNamespace(
        status_code=status_code,
        message=message,
        output=SimpleNamespace(choices=choices),
    )


# ---------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------

@patch("interpreter.dashscope")
def test_missing_api_key_raises_configuration_error(mock_ds: MagicMock, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.delenv("DASHSCOPE_API_KEY", raising=False)
    client = DashscopeInterpreter(api_key="")

    assert client.is_configured() is False
    with pytest.raises(ConfigurationError):
        client.interpret("I was flying")
    mock_ds.Generation.call.assert_not_called()


@patch("interpreter.dashscope")
def test_blank_text_raises_validation_error_without_network(mock_ds: MagicMock) -> None:
    client = DashscopeInterpreter(api_key="test-key")

    with pytest.raises(ValidationError):
        client.interpret("   \n\t ")
    mock_ds.Generation.call.assert_not_called()


@patch.dict("os.environ", {"DASHSCOPE_API_KEY": "env-key"}, clear=False)
def test_env_key_counts_as_configured() -> None:
    assert DashscopeInterpreter(api_key="").is_configured() is True


# ---------------------------------------------------------------
# Success
# ---------------------------------------------------------------

@patch("interpreter.dashscope")
def test_successful_interpretation_is_parsed(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.return_value = _response(json.dumps(FULL_REPLY))
    client = DashscopeInterpreter(api_key="test-key", model="qwen-plus", language="Turkish")

    result = client.interpret("  I was flying over the sea  ")

    assert result.summary == FULL_REPLY["summary"]
    assert result.interpretation == FULL_REPLY["interpretation"]
    assert result.symbols[0].symbol == "Flying"
    assert result.mood.secondary == ("relief", "curiosity")
    assert result.themes == ("freedom", "change")
    assert result.suggestions == ("Notice where you feel held back.",)

    kwargs = mock_ds.Generation.call.call_args.kwargs
    assert kwargs["api_key"] == "test-key"
    assert kwargs["model"] == "qwen-plus"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["result_format"] == "message"
    assert kwargs["messages"][0]["role"] == "system"
    user_prompt = kwargs["messages"][1]["content"]
    assert "Dream Description: I was flying over the sea" in user_prompt
    assert "Turkish" in user_prompt


@patch("interpreter.dashscope")
def test_single_attempt_per_call(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.return_value = _response("not json")
    client = DashscopeInterpreter(api_key="test-key")

    with pytest.raises(ParseError):
        client.interpret("dream")
    assert mock_ds.Generation.call.call_count == 1


# ---------------------------------------------------------------
# Failures
# ---------------------------------------------------------------

@patch("interpreter.dashscope")
def test_non_success_status_raises_remote_error(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.return_value = _response(None, status_code=400, message="Model not found")
    client = DashscopeInterpreter(api_key="test-key")

    with pytest.raises(RemoteError) as info:
        client.interpret("dream")
    assert info.value.status_code == 400
    assert "Model not found" in str(info.value)


@patch("interpreter.dashscope")
def test_unauthorized_status_maps_to_auth_failed(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.return_value = _response(None, status_code=401, message="Invalid API-key")
    client = DashscopeInterpreter(api_key="bad-key")

    with pytest.raises(RemoteError) as info:
        client.interpret("dream")
    assert info.value.code == AUTH_FAILED


@patch("interpreter.dashscope")
def test_transport_error_maps_to_network_error(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.side_effect = ConnectionError("connection reset by peer")
    client = DashscopeInterpreter(api_key="test-key")

    with pytest.raises(RemoteError) as info:
        client.interpret("dream")
    assert info.value.code == NETWORK_ERROR


@patch("interpreter.dashscope")
def test_empty_content_raises_parse_error(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.return_value = _response(None)
    client = DashscopeInterpreter(api_key="test-key")

    with pytest.raises(ParseError):
        client.interpret("dream")


# ---------------------------------------------------------------
# parse_interpretation
# ---------------------------------------------------------------

def test_parse_requires_interpretation_and_summary() -> None:
    with pytest.raises(ParseError):
        parse_interpretation(json.dumps({"summary": "short"}))
    with pytest.raises(ParseError):
        parse_interpretation(json.dumps({"interpretation": "long", "summary": "  "}))


def test_parse_rejects_non_object() -> None:
    with pytest.raises(ParseError):
        parse_interpretation(json.dumps(["interpretation"]))


def test_parse_rejects_malformed_sections() -> None:
    reply = dict(FULL_REPLY, symbols="flying")
    with pytest.raises(ParseError):
        parse_interpretation(json.dumps(reply))
    reply = dict(FULL_REPLY, mood=["joy"])
    with pytest.raises(ParseError):
        parse_interpretation(json.dumps(reply))


def test_parse_defaults_optional_sections() -> None:
    result = parse_interpretation(json.dumps({"interpretation": "long", "summary": "short"}))
    assert result.symbols == ()
    assert result.themes == ()
    assert result.mood.primary == ""


def test_payload_helpers_match_row_shape() -> None:
    result = parse_interpretation(json.dumps(FULL_REPLY))
    assert result.symbols_payload() == FULL_REPLY["symbols"]
    assert result.mood_payload() == FULL_REPLY["mood"]


def test_prompt_and_token_estimate() -> None:
    prompt = build_prompt("a red door", language="English")
    assert "Dream Description: a red door" in prompt
    assert '"interpretation"' in prompt
    assert estimate_tokens("abcdefgh") == 2
    assert estimate_tokens("abc") == 1
    assert estimate_tokens("") == 0


def test_parse_treats_null_fields_as_empty() -> None:
    reply = dict(
        FULL_REPLY,
        symbols=[{"symbol": "Door", "meaning": None, "significance": None}],
        mood={"primary": None, "secondary": None, "emotional_tone": None},
    )

    result = parse_interpretation(json.dumps(reply))

    assert result.symbols[0].meaning == ""
    assert result.symbols[0].significance == ""
    assert result.mood.primary == ""
    assert result.mood.emotional_tone == ""
    assert result.mood.secondary == ()


def test_missing_dashscope_is_a_configuration_error(monkeypatch) -> None:  # noqa: ANN001
    import interpreter

    monkeypatch.setattr(interpreter, "dashscope", None)
    with pytest.raises(ConfigurationError, match="dashscope is not installed"):
        DashscopeInterpreter(api_key="k").interpret("I was flying")
