"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from config import JsonConfigStore
from hotkey import PushToTalkHotkey
from interfaces import ConfigStore
from locales import Language, parse_language, reference_phrase
from models import AssessmentResult, AssessmentState, FeedbackMessage
from orchestrator import AssessmentOrchestrator
from overlay import OverlayWindow
from recognizer import DashscopeAssessmentEngine
from recorder import SoundDeviceRecorder

try:
    from PySide6.QtCore import QObject, QSize, Signal
    from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except ImportError as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"
ICON_RECORDING = "#FF4444"
ICON_PROCESSING = "#4DABF7"
ICON_ERROR = "#FF8800"


class UIBridge(QObject):
    state_signal = Signal(str, str)  # from_state, to_state
    level_signal = Signal(float)
    result_signal = Signal(object)  # FeedbackMessage or None
    error_signal = Signal(str)
    next_signal = Signal()


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store: ConfigStore = JsonConfigStore()
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.level_signal.connect(self.overlay.set_level)
        self.ui.result_signal.connect(self._on_result_ui)
        self.ui.error_signal.connect(self.overlay.show_error)
        self.ui.next_signal.connect(self._next_phrase)

        self.language = parse_language(self.config_store.get_language())
        self.phrase_index = 0
        self.orchestrator = self._build_orchestrator(self.config_store.get_api_key())
        self.hotkey = PushToTalkHotkey(talk_key=self.config_store.get_hotkey())

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("Pronunciation Coach - Ready")
        self._setup_menu()
        self.tray.show()

    def _build_orchestrator(self, api_key: str) -> AssessmentOrchestrator:
        return AssessmentOrchestrator(
            recorder=SoundDeviceRecorder(),
            engine=DashscopeAssessmentEngine(api_key=api_key, model=self.config_store.get_model()),
            language=self.language,
            target_phrase=reference_phrase(self.language, self.phrase_index),
            constraints=self.config_store.get_constraints(),
            level_interval_s=self.config_store.get_level_interval_ms() / 1000.0,
            assessment_timeout_s=30.0,
            on_state_change=self._on_state_change,
            on_result=self._on_result,
            on_error=self._on_error,
            on_level=self._on_level,
        )

    def _setup_menu(self) -> None:
        menu = QMenu()

        next_action = QAction("Next Phrase", menu)
        next_action.triggered.connect(self._next_phrase)
        menu.addAction(next_action)

        phrase_action = QAction("Set Phrase", menu)
        phrase_action.triggered.connect(self._set_phrase)
        menu.addAction(phrase_action)

        language_action = QAction("Set Language", menu)
        language_action.triggered.connect(self._set_language)
        menu.addAction(language_action)

        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        # Rebuild so the next assessment uses the new key
        self.orchestrator.close()
        self.orchestrator = self._build_orchestrator(value)
        QMessageBox.information(None, "Saved", "API Key saved and applied.")

    def _set_language(self) -> None:
        names = [language.value for language in Language]
        value, ok = QInputDialog.getItem(
            None, "Language", "Practice language", names, names.index(self.language.value), False
        )
        if not ok:
            return
        self.language = parse_language(value)
        self.config_store.set_language(self.language.value)
        self.orchestrator.set_language(self.language)
        self.phrase_index = 0
        self._show_phrase(reference_phrase(self.language, self.phrase_index))

    def _set_phrase(self) -> None:
        value, ok = QInputDialog.getText(None, "Phrase", "Phrase to practice")
        if not ok or not value.strip():
            return
        self._show_phrase(value.strip())

    def _next_phrase(self) -> None:
        self.phrase_index += 1
        self._show_phrase(reference_phrase(self.language, self.phrase_index))

    def _show_phrase(self, phrase: str) -> None:
        self.orchestrator.set_target_phrase(phrase)
        self.orchestrator.clear_result()
        self.overlay.show_phrase(phrase)
        self.overlay.hide_with_delay(4000)

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: AssessmentState, to_state: AssessmentState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_level(self, level: float) -> None:
        self.ui.level_signal.emit(level)

    def _on_result(self, result: AssessmentResult, feedback: Optional[FeedbackMessage]) -> None:
        self.ui.result_signal.emit(feedback)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(message)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_result_ui(self, feedback: Optional[FeedbackMessage]) -> None:
        if feedback is not None:
            self.overlay.show_feedback(feedback)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        if to_state == AssessmentState.RECORDING.value:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("Pronunciation Coach - Recording...")
            self.overlay.show_phrase(self.orchestrator.target_phrase)
            self.overlay.show_listening()
        elif to_state == AssessmentState.PROCESSING.value:
            self.tray.setIcon(_create_icon(ICON_PROCESSING))
            self.tray.setToolTip("Pronunciation Coach - Assessing...")
            self.overlay.show_processing()
        elif to_state == AssessmentState.ERROR.value:
            self.tray.setIcon(_create_icon(ICON_ERROR))
            self.tray.setToolTip("Pronunciation Coach - Ready")
        else:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("Pronunciation Coach - Ready")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(
                on_press=lambda: self.orchestrator.start_assessment(),
                on_release=lambda: self.orchestrator.stop_assessment(),
                on_next=self.ui.next_signal.emit,
            )
        except RuntimeError as exc:
            logger.warning("Hotkey disabled: %s", exc)
            self.overlay.show_error(f"Hotkey disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.orchestrator.close()
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
