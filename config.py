"""Simple JSON-based config store."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from models import CaptureConstraints

logger = logging.getLogger(__name__)

DEFAULT_HOTKEY = "Key.alt_l"
DEFAULT_LANGUAGE = "english"
DEFAULT_MODEL = "qwen-audio-turbo-latest"
DEFAULT_LEVEL_INTERVAL_MS = 100


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "pronounce_coach" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update(api_key=key)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        self._update(hotkey=hotkey)

    def get_language(self) -> str:
        data = self._read_all()
        return str(data.get("language", DEFAULT_LANGUAGE))

    def set_language(self, language: str) -> None:
        self._update(language=language)

    def get_model(self) -> str:
        data = self._read_all()
        return str(data.get("model", DEFAULT_MODEL))

    def get_level_interval_ms(self) -> int:
        data = self._read_all()
        try:
            value = int(data.get("level_interval_ms", DEFAULT_LEVEL_INTERVAL_MS))
        except (TypeError, ValueError):
            return DEFAULT_LEVEL_INTERVAL_MS
        return value if value > 0 else DEFAULT_LEVEL_INTERVAL_MS

    def get_constraints(self) -> CaptureConstraints:
        raw = self._read_all().get("audio", {})
        if not isinstance(raw, dict):
            raw = {}
        return CaptureConstraints(
            echo_cancellation=bool(raw.get("echo_cancellation", True)),
            noise_suppression=bool(raw.get("noise_suppression", True)),
            auto_gain_control=bool(raw.get("auto_gain_control", True)),
        )

    def _update(self, **values: object) -> None:
        data = self._read_all()
        data.update(values)
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
