from __future__ import annotations

from models import FeedbackCategory, FeedbackMessage
from overlay import CATEGORY_COLORS, format_feedback


def test_format_feedback_full() -> None:
    feedback = FeedbackMessage(
        category=FeedbackCategory.GOOD,
        message="Good pronunciation",
        details="Try to improve the pronunciation of: think",
        suggestion="Slow down",
        scores=(("pronunciation", 80.4), ("fluency", 71.6)),
    )

    assert format_feedback(feedback) == (
        "Good pronunciation\n"
        "Try to improve the pronunciation of: think\n"
        "Tip: Slow down\n"
        "pronunciation 80, fluency 72"
    )


def test_format_feedback_message_only() -> None:
    feedback = FeedbackMessage(category=FeedbackCategory.PERFECT, message="Perfect!")

    assert format_feedback(feedback) == "Perfect!"


def test_every_category_has_a_color() -> None:
    assert set(CATEGORY_COLORS) == set(FeedbackCategory)
