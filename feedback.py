"""Map assessment scores to categorized learner feedback.

``generate_feedback`` is pure: the same result and language always give the
same ``FeedbackMessage``.
"""

from __future__ import annotations

from typing import Optional, Union

from locales import Language, category_messages, phoneme_tip
from models import AssessmentResult, FeedbackCategory, FeedbackMessage, WordScore

PERFECT_THRESHOLD = 90.0
GOOD_THRESHOLD = 75.0
PROBLEM_WORD_THRESHOLD = 70.0
WEAK_SCORE_THRESHOLD = 60.0

_SUBSCORE_ADVICE = {
    "accuracy": "Listen to the phrase again and copy each sound carefully.",
    "fluency": "Try speaking more smoothly, without long pauses between words.",
    "completeness": "Make sure to say every word of the phrase.",
    "prosody": "Follow the natural rhythm and intonation of the phrase.",
}
_DEFAULT_SUGGESTION = "Try speaking more slowly and clearly."


def categorize(score: float) -> FeedbackCategory:
    if score >= PERFECT_THRESHOLD:
        return FeedbackCategory.PERFECT
    if score >= GOOD_THRESHOLD:
        return FeedbackCategory.GOOD
    return FeedbackCategory.NEEDS_IMPROVEMENT


def problem_words(result: AssessmentResult) -> tuple[WordScore, ...]:
    return tuple(word for word in result.words if word.accuracy_score < PROBLEM_WORD_THRESHOLD)


def subscores(result: AssessmentResult) -> list[tuple[str, float]]:
    scores = [
        ("accuracy", result.accuracy_score),
        ("fluency", result.fluency_score),
        ("completeness", result.completeness_score),
    ]
    if result.prosody_score is not None:
        scores.append(("prosody", result.prosody_score))
    return scores


def generate_feedback(
    result: AssessmentResult,
    language: Union[str, Language, None] = Language.ENGLISH,
) -> FeedbackMessage:
    if result.error_message:
        return FeedbackMessage(
            category=FeedbackCategory.NEEDS_IMPROVEMENT,
            message="We couldn't assess your pronunciation",
            details="There was a problem with the audio recording. Please try again.",
        )

    category = categorize(result.pronunciation_score)
    problems = problem_words(result)
    weak = [(name, value) for name, value in subscores(result) if value < WEAK_SCORE_THRESHOLD]

    messages = category_messages(language, category)
    message = messages[int(result.pronunciation_score) % len(messages)]

    suggestion = None
    if problems or weak:
        suggestion = _suggestion(problems, weak, language)

    return FeedbackMessage(
        category=category,
        message=message,
        details=_details(category, problems, weak),
        problem_words=problems,
        suggestion=suggestion,
        scores=(("pronunciation", result.pronunciation_score), *subscores(result)),
    )


def _details(
    category: FeedbackCategory,
    problems: tuple[WordScore, ...],
    weak: list[tuple[str, float]],
) -> Optional[str]:
    names = ", ".join(word.word for word in problems)
    if category == FeedbackCategory.PERFECT:
        return f"Watch out for: {names}" if problems else None
    if category == FeedbackCategory.GOOD:
        if problems:
            return f"Try to improve the pronunciation of: {names}"
        return "Your fluency could be improved by speaking more smoothly."
    if problems:
        return f"Focus on these words: {names}"
    if weak:
        return f"Work on your {weak[0][0]}."
    return "Keep practicing to raise your overall score."


def _suggestion(
    problems: tuple[WordScore, ...],
    weak: list[tuple[str, float]],
    language: Union[str, Language, None],
) -> str:
    if problems and problems[0].phonemes:
        weakest = min(problems[0].phonemes, key=lambda p: p.accuracy_score)
        tip = phoneme_tip(language, weakest.phoneme)
        if tip:
            return tip
    if weak:
        name, _ = min(weak, key=lambda item: item[1])
        return _SUBSCORE_ADVICE[name]
    return _DEFAULT_SUGGESTION
