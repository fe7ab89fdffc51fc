"""Overlay window showing the practice phrase, input level and feedback."""

from __future__ import annotations

from typing import Optional

from models import FeedbackCategory, FeedbackMessage

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QProgressBar, QVBoxLayout, QWidget
except ImportError:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QProgressBar = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

CATEGORY_COLORS = {
    FeedbackCategory.PERFECT: "#51CF66",
    FeedbackCategory.GOOD: "#4DABF7",
    FeedbackCategory.NEEDS_IMPROVEMENT: "#FFA94D",
}
ERROR_COLOR = "#FF6B6B"
_PANEL = "font-size: 18px; padding: 12px 16px; background: rgba(0,0,0,190); border-radius: 12px;"


def format_feedback(feedback: FeedbackMessage) -> str:
    """Plain-text rendering of a feedback message for the overlay label."""
    lines = [feedback.message]
    if feedback.details:
        lines.append(feedback.details)
    if feedback.suggestion:
        lines.append(f"Tip: {feedback.suggestion}")
    scores = ", ".join(f"{name} {value:.0f}" for name, value in feedback.scores)
    if scores:
        lines.append(scores)
    return "\n".join(lines)


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool)
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(600)

        self._phrase = QLabel("")
        self._phrase.setWordWrap(True)
        self._phrase.setStyleSheet(f"color: white; {_PANEL}")

        self._level = QProgressBar()
        self._level.setRange(0, 100)
        self._level.setTextVisible(False)
        self._level.setFixedHeight(6)

        self._status = QLabel("")
        self._status.setWordWrap(True)
        self._set_status_color("white")

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._phrase)
        layout.addWidget(self._level)
        layout.addWidget(self._status)
        self.setLayout(layout)

        self._hide_timer: Optional[QTimer] = None

    def _center_top(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        self.move(geom.x() + (geom.width() - self.width()) // 2, geom.y() + 40)

    def show_phrase(self, phrase: str) -> None:
        self._cancel_hide_timer()
        self._phrase.setText(f"Say: {phrase}" if phrase else "")
        self._center_top()
        self.show()

    def show_listening(self) -> None:
        self._set_status_color("white")
        self._status.setText("🎙️ Listening...")
        self._level.setValue(0)
        self._center_top()
        self.show()

    def show_processing(self) -> None:
        self._status.setText("Assessing...")
        self._level.setValue(0)

    def set_level(self, level: float) -> None:
        self._level.setValue(int(max(0.0, min(1.0, level)) * 100))

    def show_feedback(self, feedback: FeedbackMessage, hide_after_ms: int = 6000) -> None:
        self._set_status_color(CATEGORY_COLORS.get(feedback.category, "white"))
        self._status.setText(format_feedback(feedback))
        self._center_top()
        self.show()
        self.hide_with_delay(hide_after_ms)

    def show_error(self, text: str, hide_after_ms: int = 3000) -> None:
        self._set_status_color(ERROR_COLOR)
        self._status.setText(f"⚠️ {text}")
        self._level.setValue(0)
        self._center_top()
        self.show()
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        self._hide_timer = QTimer()
        self._hide_timer.setSingleShot(True)
        self._hide_timer.timeout.connect(self.hide)
        self._hide_timer.start(delay_ms)

    def _set_status_color(self, color: str) -> None:
        self._status.setStyleSheet(f"color: {color}; {_PANEL}")

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
