"""Language tables: engine locales, practice phrases, feedback wording and tips."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Union

from models import FeedbackCategory

logger = logging.getLogger(__name__)


class Language(str, Enum):
    ENGLISH = "english"
    SPANISH = "spanish"
    FRENCH = "french"
    GERMAN = "german"
    ITALIAN = "italian"
    PORTUGUESE = "portuguese"
    CHINESE = "chinese"
    JAPANESE = "japanese"
    KOREAN = "korean"
    RUSSIAN = "russian"
    ARABIC = "arabic"
    HINDI = "hindi"


DEFAULT_LANGUAGE = Language.ENGLISH
DEFAULT_LOCALE = "en-US"

LOCALES: dict[Language, str] = {
    Language.ENGLISH: "en-US",
    Language.SPANISH: "es-ES",
    Language.FRENCH: "fr-FR",
    Language.GERMAN: "de-DE",
    Language.ITALIAN: "it-IT",
    Language.PORTUGUESE: "pt-BR",
    Language.CHINESE: "zh-CN",
    Language.JAPANESE: "ja-JP",
    Language.KOREAN: "ko-KR",
    Language.RUSSIAN: "ru-RU",
    Language.ARABIC: "ar-SA",
    Language.HINDI: "hi-IN",
}

_missing = set(Language) - set(LOCALES)
if _missing:
    raise RuntimeError(f"locale table incomplete: {sorted(m.value for m in _missing)}")

REFERENCE_PHRASES: dict[Language, tuple[str, ...]] = {
    Language.ENGLISH: (
        "Hello, how are you today?",
        "I would like to learn English",
        "Where is the nearest restaurant?",
        "Could you please speak more slowly?",
        "Thank you very much for your help",
    ),
    Language.SPANISH: (
        "Hola, ¿cómo estás hoy?",
        "Me gustaría aprender español",
        "¿Dónde está el restaurante más cercano?",
        "¿Podrías hablar más despacio, por favor?",
        "Muchas gracias por tu ayuda",
    ),
    Language.FRENCH: (
        "Bonjour, comment allez-vous aujourd'hui?",
        "Je voudrais apprendre le français",
        "Où est le restaurant le plus proche?",
        "Pourriez-vous parler plus lentement, s'il vous plaît?",
        "Merci beaucoup pour votre aide",
    ),
    Language.GERMAN: (
        "Hallo, wie geht es Ihnen heute?",
        "Ich möchte Deutsch lernen",
        "Wo ist das nächste Restaurant?",
        "Könnten Sie bitte langsamer sprechen?",
        "Vielen Dank für Ihre Hilfe",
    ),
}

CATEGORY_MESSAGES: dict[Language, dict[FeedbackCategory, tuple[str, ...]]] = {
    Language.ENGLISH: {
        FeedbackCategory.PERFECT: (
            "Perfect pronunciation! 🎯",
            "Excellent! Your pronunciation is spot on!",
            "Wow! Native-like pronunciation!",
            "Perfect! Your accent is getting really good!",
        ),
        FeedbackCategory.GOOD: (
            "Good pronunciation 👍",
            "Well done on your pronunciation",
            "Your pronunciation is coming along nicely",
            "Good job with those sounds!",
        ),
        FeedbackCategory.NEEDS_IMPROVEMENT: (
            "Keep practicing pronunciation",
            "Let's work on those sounds",
            "With more practice, you'll improve",
            "Try slowing down a bit",
        ),
    },
    Language.SPANISH: {
        FeedbackCategory.PERFECT: (
            "¡Pronunciación perfecta! 🎯",
            "¡Excelente! Tu pronunciación es impecable!",
            "¡Guau! ¡Pronunciación como la de un nativo!",
            "¡Perfecto! ¡Tu acento está mejorando mucho!",
        ),
        FeedbackCategory.GOOD: (
            "Buena pronunciación 👍",
            "Bien hecho con tu pronunciación",
            "Tu pronunciación va mejorando",
            "¡Buen trabajo con esos sonidos!",
        ),
        FeedbackCategory.NEEDS_IMPROVEMENT: (
            "Sigue practicando la pronunciación",
            "Trabajemos en esos sonidos",
            "Con más práctica, mejorarás",
            "Intenta hablar un poco más despacio",
        ),
    },
    Language.FRENCH: {
        FeedbackCategory.PERFECT: (
            "Prononciation parfaite! 🎯",
            "Excellent! Votre prononciation est impeccable!",
            "Wow! Prononciation comme un natif!",
            "Parfait! Votre accent s'améliore vraiment!",
        ),
        FeedbackCategory.GOOD: (
            "Bonne prononciation 👍",
            "Bien fait sur votre prononciation",
            "Votre prononciation s'améliore bien",
            "Bon travail avec ces sons!",
        ),
        FeedbackCategory.NEEDS_IMPROVEMENT: (
            "Continuez à pratiquer la prononciation",
            "Travaillons sur ces sons",
            "Avec plus de pratique, vous vous améliorerez",
            "Essayez de ralentir un peu",
        ),
    },
}

PHONEME_TIPS: dict[Language, dict[str, str]] = {
    Language.ENGLISH: {
        "th": 'For "th" sounds, place your tongue between your teeth slightly',
        "r": 'The English "r" sound is formed by curling your tongue back',
        "l": 'For the "l" sound, place the tip of your tongue on the ridge behind your upper teeth',
    },
    Language.SPANISH: {
        "r": 'The Spanish "r" is a light tap with the tongue against the ridge behind your upper teeth',
        "rr": 'The Spanish "rr" is a rolled or trilled sound - keep practicing!',
        "j": 'The Spanish "j" is pronounced like the English "h" but stronger',
        "ñ": 'For "ñ", say "n" but with the middle of your tongue touching the roof of your mouth',
    },
}


def parse_language(language: Union[str, Language, None]) -> Language:
    """Map a free-form language name onto ``Language``, falling back to English."""
    if isinstance(language, Language):
        return language
    normalized = (language or "").strip().lower()
    try:
        return Language(normalized)
    except ValueError:
        logger.debug("Unknown language %r, using %s", language, DEFAULT_LANGUAGE.value)
        return DEFAULT_LANGUAGE


def resolve_locale(language: Union[str, Language, None]) -> str:
    if isinstance(language, Language):
        return LOCALES[language]
    normalized = (language or "").strip().lower()
    try:
        return LOCALES[Language(normalized)]
    except ValueError:
        logger.debug("No locale for %r, using %s", language, DEFAULT_LOCALE)
        return DEFAULT_LOCALE


def reference_phrase(language: Union[str, Language, None], index: int = 0) -> str:
    phrases = REFERENCE_PHRASES.get(parse_language(language), REFERENCE_PHRASES[DEFAULT_LANGUAGE])
    return phrases[index % len(phrases)]


def category_messages(language: Union[str, Language, None], category: FeedbackCategory) -> tuple[str, ...]:
    table = CATEGORY_MESSAGES.get(parse_language(language), CATEGORY_MESSAGES[DEFAULT_LANGUAGE])
    return table[category]


def phoneme_tip(language: Union[str, Language, None], phoneme: str) -> str | None:
    tips = PHONEME_TIPS.get(parse_language(language), {})
    return tips.get(phoneme.strip().lower())
