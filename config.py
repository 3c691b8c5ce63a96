"""JSON-backed config store and the settings snapshot read at startup."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "dashscope_api_key": "",
    "supabase_url": "",
    "supabase_key": "",
    "hotkey": "Key.alt_l",
    "lock_hotkey": "Key.up",
    "cancel_hotkey": "Key.esc",
    "interpretation_model": "qwen-plus",
    "transcription_model": "qwen3-asr-flash",
    "language": "English",
    "lock_threshold": 60,
}

ENV_OVERRIDES = {
    "dashscope_api_key": "DASHSCOPE_API_KEY",
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_KEY",
}


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "dreamtalk" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Any:
        data = self._read_all()
        value = data.get(key, DEFAULTS.get(key))
        env_name = ENV_OVERRIDES.get(key)
        if env_name and not value:
            value = os.getenv(env_name, "")
        return value

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def get_api_key(self) -> str:
        return str(self.get("dashscope_api_key") or "")

    def set_api_key(self, key: str) -> None:
        self.set("dashscope_api_key", key)

    def get_hotkey(self) -> str:
        return str(self.get("hotkey"))

    def set_hotkey(self, hotkey: str) -> None:
        self.set("hotkey", hotkey)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable config at %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


@dataclass(frozen=True)
class AppSettings:
    dashscope_api_key: str
    supabase_url: str
    supabase_key: str
    hotkey: str
    lock_hotkey: str
    cancel_hotkey: str
    interpretation_model: str
    transcription_model: str
    language: str
    lock_threshold: float

    @property
    def has_backend(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings(store: JsonConfigStore) -> AppSettings:
    try:
        threshold = float(store.get("lock_threshold"))
    except (TypeError, ValueError):
        threshold = float(DEFAULTS["lock_threshold"])
    if threshold <= 0:
        threshold = float(DEFAULTS["lock_threshold"])
    return AppSettings(
        dashscope_api_key=str(store.get("dashscope_api_key") or ""),
        supabase_url=str(store.get("supabase_url") or ""),
        supabase_key=str(store.get("supabase_key") or ""),
        hotkey=str(store.get("hotkey")),
        lock_hotkey=str(store.get("lock_hotkey")),
        cancel_hotkey=str(store.get("cancel_hotkey")),
        interpretation_model=str(store.get("interpretation_model")),
        transcription_model=str(store.get("transcription_model")),
        language=str(store.get("language")),
        lock_threshold=threshold,
    )
