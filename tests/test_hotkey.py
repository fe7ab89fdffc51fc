from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from hotkey import PushToTalkHotkey


def _listener_callbacks(mock_keyboard: MagicMock):  # noqa: ANN202
    kwargs = mock_keyboard.Listener.call_args.kwargs
    return kwargs["on_press"], kwargs["on_release"]


@patch("hotkey.keyboard")
def test_talk_key_press_and_release_ignore_repeats(mock_keyboard: MagicMock) -> None:
    calls: list[str] = []
    hotkey = PushToTalkHotkey(talk_key="Key.alt_l")
    hotkey.start(lambda: calls.append("press"), lambda: calls.append("release"))
    press, release = _listener_callbacks(mock_keyboard)

    press("Key.alt_l")
    press("Key.alt_l")
    press("Key.shift")
    release("Key.alt_l")
    release("Key.alt_l")

    assert calls == ["press", "release"]
    mock_keyboard.Listener.return_value.start.assert_called_once()


@patch("hotkey.keyboard")
def test_next_key_fires_once_per_press(mock_keyboard: MagicMock) -> None:
    nexts: list[int] = []
    hotkey = PushToTalkHotkey(talk_key="Key.alt_l", next_key="Key.alt_r")
    hotkey.start(lambda: None, lambda: None, on_next=lambda: nexts.append(1))
    press, release = _listener_callbacks(mock_keyboard)

    press("Key.alt_r")
    press("Key.alt_r")
    release("Key.alt_r")
    press("Key.alt_r")

    assert nexts == [1, 1]


@patch("hotkey.keyboard")
def test_stop_stops_listener_and_forgets_held_keys(mock_keyboard: MagicMock) -> None:
    calls: list[str] = []
    hotkey = PushToTalkHotkey()
    hotkey.start(lambda: calls.append("press"), lambda: None)
    press, _ = _listener_callbacks(mock_keyboard)
    press("Key.alt_l")

    hotkey.stop()
    hotkey.stop()
    press("Key.alt_l")

    mock_keyboard.Listener.return_value.stop.assert_called_once()
    assert calls == ["press", "press"]


@patch("hotkey.keyboard", None)
def test_start_without_pynput_raises() -> None:
    with pytest.raises(RuntimeError, match="pynput"):
        PushToTalkHotkey().start(lambda: None, lambda: None)
