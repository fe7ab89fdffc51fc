from __future__ import annotations

import pytest

from locales import (
    DEFAULT_LOCALE,
    LOCALES,
    REFERENCE_PHRASES,
    Language,
    category_messages,
    parse_language,
    phoneme_tip,
    reference_phrase,
    resolve_locale,
)
from models import FeedbackCategory


def test_every_language_has_a_locale() -> None:
    assert set(LOCALES) == set(Language)


@pytest.mark.parametrize(
    ("name", "locale"),
    [
        ("english", "en-US"),
        ("Spanish", "es-ES"),
        (" FRENCH ", "fr-FR"),
        (Language.JAPANESE, "ja-JP"),
        ("klingon", DEFAULT_LOCALE),
        ("", DEFAULT_LOCALE),
        (None, DEFAULT_LOCALE),
    ],
)
def test_resolve_locale(name, locale: str) -> None:  # noqa: ANN001
    assert resolve_locale(name) == locale


def test_parse_language_falls_back_to_english() -> None:
    assert parse_language("German") == Language.GERMAN
    assert parse_language("elvish") == Language.ENGLISH


def test_reference_phrase_wraps_around() -> None:
    phrases = REFERENCE_PHRASES[Language.SPANISH]

    assert reference_phrase("spanish", 0) == phrases[0]
    assert reference_phrase("spanish", len(phrases) + 1) == phrases[1]


def test_language_without_phrases_uses_english_list() -> None:
    assert reference_phrase(Language.KOREAN, 0) == REFERENCE_PHRASES[Language.ENGLISH][0]


def test_category_messages_fall_back_to_english() -> None:
    assert category_messages(Language.HINDI, FeedbackCategory.GOOD) == category_messages(
        Language.ENGLISH, FeedbackCategory.GOOD
    )


def test_phoneme_tip_lookup() -> None:
    assert phoneme_tip("english", "TH") is not None
    assert phoneme_tip("spanish", "ñ") is not None
    assert phoneme_tip("spanish", "zz") is None
    assert phoneme_tip("korean", "r") is None
