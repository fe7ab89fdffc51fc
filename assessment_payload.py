"""Normalize raw engine payloads into ``AssessmentResult``.

Two shapes are accepted:

* flat camelCase, e.g. ``{"pronunciationScore": 95, "accuracyScore": 95,
  "fluencyScore": 92, "completenessScore": 97, "words": [...]}``;
* the Azure speech JSON result, where scores live under
  ``NBest[0].PronunciationAssessment`` and words under ``NBest[0].Words``.

Anything else raises ``InvalidResponseFormat``.
"""

from __future__ import annotations

import json
import math
from typing import Any, Mapping, Optional, Union

from errors import InvalidResponseFormat
from models import AssessmentResult, PhonemeScore, SyllableScore, WordScore

_SCORE_FIELDS = (
    ("pronunciation_score", "pronunciationScore", "PronScore"),
    ("accuracy_score", "accuracyScore", "AccuracyScore"),
    ("fluency_score", "fluencyScore", "FluencyScore"),
    ("completeness_score", "completenessScore", "CompletenessScore"),
)


def parse_assessment_payload(payload: Union[str, bytes, Mapping[str, Any]]) -> AssessmentResult:
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except (ValueError, RecursionError) as exc:
            raise InvalidResponseFormat(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise InvalidResponseFormat(f"payload must be an object, got {type(payload).__name__}")

    if "NBest" in payload:
        return _parse_nbest(payload)

    scores = {name: _score(payload, camel, name) for name, camel, _ in _SCORE_FIELDS}
    words = tuple(_parse_word(item) for item in _list(payload.get("words", []), "words"))
    return AssessmentResult(
        prosody_score=_optional_score(payload, "prosodyScore"),
        words=words,
        detected_language=_optional_str(payload.get("detectedLanguage")),
        error_message=_optional_str(payload.get("errorMessage")),
        **scores,
    )


def _parse_nbest(payload: Mapping[str, Any]) -> AssessmentResult:
    candidates = _list(payload.get("NBest"), "NBest")
    if not candidates or not isinstance(candidates[0], Mapping):
        raise InvalidResponseFormat("NBest is empty")
    best = candidates[0]
    assessment = best.get("PronunciationAssessment")
    if not isinstance(assessment, Mapping):
        raise InvalidResponseFormat("NBest[0].PronunciationAssessment missing")
    scores = {name: _score(assessment, azure, name) for name, _, azure in _SCORE_FIELDS}
    words = []
    for item in _list(best.get("Words", []), "Words"):
        if not isinstance(item, Mapping):
            raise InvalidResponseFormat("word entry must be an object")
        word_assessment = item.get("PronunciationAssessment") or {}
        phonemes = tuple(
            PhonemeScore(
                phoneme=str(p.get("Phoneme", "")),
                accuracy_score=_score(p.get("PronunciationAssessment") or {}, "AccuracyScore", "phoneme"),
            )
            for p in _list(item.get("Phonemes", []), "Phonemes")
            if isinstance(p, Mapping)
        )
        syllables = tuple(
            SyllableScore(
                syllable=str(s.get("Syllable", "")),
                accuracy_score=_score(s.get("PronunciationAssessment") or {}, "AccuracyScore", "syllable"),
            )
            for s in _list(item.get("Syllables", []), "Syllables")
            if isinstance(s, Mapping)
        )
        error_type = _optional_str(word_assessment.get("ErrorType"))
        words.append(
            WordScore(
                word=_word_text(item.get("Word")),
                accuracy_score=_score(word_assessment, "AccuracyScore", "word"),
                error_type=None if error_type == "None" else error_type,
                phonemes=phonemes,
                syllables=syllables,
            )
        )
    return AssessmentResult(
        prosody_score=_optional_score(assessment, "ProsodyScore"),
        words=tuple(words),
        detected_language=_optional_str(payload.get("Language") or payload.get("PrimaryLanguage")),
        **scores,
    )


def _parse_word(item: Any) -> WordScore:
    if not isinstance(item, Mapping):
        raise InvalidResponseFormat("word entry must be an object")
    phonemes = tuple(
        PhonemeScore(phoneme=str(p.get("phoneme", "")), accuracy_score=_score(p, "accuracyScore", "phoneme"))
        for p in _list(item.get("phonemes") or [], "phonemes")
        if isinstance(p, Mapping)
    )
    syllables = tuple(
        SyllableScore(syllable=str(s.get("syllable", "")), accuracy_score=_score(s, "accuracyScore", "syllable"))
        for s in _list(item.get("syllables") or [], "syllables")
        if isinstance(s, Mapping)
    )
    error_type = _optional_str(item.get("errorType"))
    return WordScore(
        word=_word_text(item.get("word")),
        accuracy_score=_score(item, "accuracyScore", "word"),
        error_type=None if error_type == "None" else error_type,
        phonemes=phonemes,
        syllables=syllables,
    )


def _score(source: Mapping[str, Any], key: str, label: str) -> float:
    if key not in source:
        raise InvalidResponseFormat(f"{label}: missing {key}")
    value = _number(source[key])
    if value is None:
        raise InvalidResponseFormat(f"{label}: {key} is not a number: {source[key]!r}")
    return value


def _optional_score(source: Mapping[str, Any], key: str) -> Optional[float]:
    if source.get(key) is None:
        return None
    value = _number(source[key])
    if value is None:
        raise InvalidResponseFormat(f"{key} is not a number: {source[key]!r}")
    return value


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _list(value: Any, label: str) -> list:
    if not isinstance(value, list):
        raise InvalidResponseFormat(f"{label} must be a list")
    return value


def _word_text(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidResponseFormat(f"word text missing: {value!r}")
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def validate_result(result: AssessmentResult) -> AssessmentResult:
    """Apply the parser's score checks to an already-built result."""
    for name, _, _ in _SCORE_FIELDS:
        if _number(getattr(result, name)) is None:
            raise InvalidResponseFormat(f"{name} is not a finite number: {getattr(result, name)!r}")
    if result.prosody_score is not None and _number(result.prosody_score) is None:
        raise InvalidResponseFormat(f"prosody_score is not a finite number: {result.prosody_score!r}")
    for word in result.words:
        if _number(word.accuracy_score) is None:
            raise InvalidResponseFormat(f"word {word.word!r}: accuracy is not a finite number")
    return result
