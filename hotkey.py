"""Global push-to-talk hotkeys based on pynput."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except ImportError:  # pragma: no cover
    keyboard = None  # type: ignore

logger = logging.getLogger(__name__)


class PushToTalkHotkey:
    """Calls ``on_press`` when the talk key goes down and ``on_release`` when it
    comes back up, ignoring key auto-repeat. An optional second key fires
    ``on_next`` once per press (used to cycle practice phrases)."""

    def __init__(self, talk_key: str = "Key.alt_l", next_key: Optional[str] = "Key.alt_r") -> None:
        self._talk_key = talk_key
        self._next_key = next_key
        self._listener: Optional[object] = None
        self._held: set[str] = set()
        self._lock = threading.Lock()

    def start(
        self,
        on_press: Callable[[], None],
        on_release: Callable[[], None],
        on_next: Optional[Callable[[], None]] = None,
    ) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")

        def _on_press(key: object) -> None:
            name = str(key)
            if not self._mark(name, held=True):
                return
            if name == self._talk_key:
                on_press()
            elif name == self._next_key and on_next is not None:
                on_next()

        def _on_release(key: object) -> None:
            name = str(key)
            if not self._mark(name, held=False):
                return
            if name == self._talk_key:
                on_release()

        logger.info("Listening for talk key %s", self._talk_key)
        self._listener = keyboard.Listener(on_press=_on_press, on_release=_on_release)
        self._listener.start()

    def stop(self) -> None:
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.stop()
        with self._lock:
            self._held.clear()

    def _mark(self, name: str, held: bool) -> bool:
        """Record a key transition; False for keys we ignore or repeats."""
        if name not in (self._talk_key, self._next_key):
            return False
        with self._lock:
            if held == (name in self._held):
                return False
            if held:
                self._held.add(name)
            else:
                self._held.discard(name)
            return True
