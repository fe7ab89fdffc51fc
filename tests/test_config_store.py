from __future__ import annotations

import json
from pathlib import Path

from config import JsonConfigStore
from models import CaptureConstraints


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_api_key() == ""
    assert store.get_hotkey() == "Key.alt_l"

    store.set_api_key("abc")
    store.set_hotkey("Key.alt_r")

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_key() == "abc"
    assert reloaded.get_hotkey() == "Key.alt_r"


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_api_key() == ""
    assert store.get_hotkey() == "Key.alt_l"


def test_language_and_model_defaults(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")

    assert store.get_language() == "english"
    assert store.get_model() == "qwen-audio-turbo-latest"

    store.set_language("spanish")
    store.set_api_key("abc")
    assert store.get_language() == "spanish"
    assert store.get_api_key() == "abc"


def test_level_interval_rejects_bad_values(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)
    assert store.get_level_interval_ms() == 100

    for raw, expected in ((50, 50), (0, 100), (-5, 100), ("fast", 100), (None, 100)):
        path.write_text(json.dumps({"level_interval_ms": raw}), encoding="utf-8")
        assert store.get_level_interval_ms() == expected


def test_capture_constraints_from_audio_section(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)
    assert store.get_constraints() == CaptureConstraints()

    path.write_text(json.dumps({"audio": {"noise_suppression": False}}), encoding="utf-8")
    assert store.get_constraints() == CaptureConstraints(noise_suppression=False)

    path.write_text(json.dumps({"audio": "off"}), encoding="utf-8")
    assert store.get_constraints() == CaptureConstraints()


def test_non_object_config_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")

    assert JsonConfigStore(path=path).get_hotkey() == "Key.alt_l"
