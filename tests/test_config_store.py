from __future__ import annotations

from pathlib import Path

from config import DEFAULTS, JsonConfigStore, load_settings


def test_config_read_write(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.delenv("DASHSCOPE_API_KEY", raising=False)
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_api_key() == ""
    assert store.get_hotkey() == "Key.alt_l"

    store.set_api_key("abc")
    store.set_hotkey("Key.alt_r")
    store.set("lock_threshold", 80)

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_key() == "abc"
    assert reloaded.get_hotkey() == "Key.alt_r"
    assert reloaded.get("lock_threshold") == 80


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_hotkey() == "Key.alt_l"
    assert store.get("language") == DEFAULTS["language"]


def test_env_fills_empty_credentials(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("DASHSCOPE_API_KEY", "env-key")
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    store = JsonConfigStore(path=tmp_path / "config.json")

    assert store.get_api_key() == "env-key"
    store.set_api_key("stored-key")
    assert store.get_api_key() == "stored-key"
    assert store.get("supabase_url") == "https://example.supabase.co"


def test_load_settings_snapshot(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    for name in ("DASHSCOPE_API_KEY", "SUPABASE_URL", "SUPABASE_KEY"):
        monkeypatch.delenv(name, raising=False)
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set("lock_threshold", "90")

    settings = load_settings(store)

    assert settings.lock_threshold == 90.0
    assert settings.interpretation_model == "qwen-plus"
    assert settings.has_backend is False

    store.set("lock_threshold", 10)
    assert settings.lock_threshold == 90.0


def test_load_settings_rejects_bad_threshold(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set("lock_threshold", "steep")
    assert load_settings(store).lock_threshold == float(DEFAULTS["lock_threshold"])
    store.set("lock_threshold", -5)
    assert load_settings(store).lock_threshold == float(DEFAULTS["lock_threshold"])
