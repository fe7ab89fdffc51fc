"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class AssessmentState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    PROCESSING = "PROCESSING"
    RESULT = "RESULT"
    ERROR = "ERROR"


class CaptureState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    PROCESSING = "PROCESSING"


class Granularity(str, Enum):
    PHONEME = "phoneme"
    WORD = "word"
    FULL = "full"


class FeedbackCategory(str, Enum):
    PERFECT = "perfect"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


class EngineEventKind(str, Enum):
    RECOGNIZED = "recognized"
    RAW = "raw"
    CANCELED = "canceled"
    ERROR = "error"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass(frozen=True)
class AudioBuffer:
    data: bytes
    sample_rate: int = 16000
    channels: int = 1
    chunk_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.data

    @property
    def duration_s(self) -> float:
        frame_bytes = 2 * self.channels
        if not self.sample_rate or not frame_bytes:
            return 0.0
        return len(self.data) / frame_bytes / self.sample_rate


@dataclass(frozen=True)
class CaptureConstraints:
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True


@dataclass(frozen=True)
class AssessmentConfig:
    reference_text: str
    locale: str
    granularity: Granularity = Granularity.PHONEME
    enable_miscue: bool = True


@dataclass(frozen=True)
class PhonemeScore:
    phoneme: str
    accuracy_score: float


@dataclass(frozen=True)
class SyllableScore:
    syllable: str
    accuracy_score: float


@dataclass(frozen=True)
class WordScore:
    word: str
    accuracy_score: float
    error_type: Optional[str] = None
    phonemes: tuple[PhonemeScore, ...] = ()
    syllables: tuple[SyllableScore, ...] = ()


@dataclass(frozen=True)
class AssessmentResult:
    pronunciation_score: float
    accuracy_score: float
    fluency_score: float
    completeness_score: float
    prosody_score: Optional[float] = None
    words: tuple[WordScore, ...] = ()
    detected_language: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class FeedbackMessage:
    category: FeedbackCategory
    message: str
    details: Optional[str] = None
    problem_words: tuple[WordScore, ...] = ()
    suggestion: Optional[str] = None
    scores: tuple[tuple[str, float], ...] = ()


@dataclass(frozen=True)
class Failure:
    code: str
    message: str
    detail: str = ""


@dataclass
class EngineEvent:
    kind: str
    payload: Any = None
    reason: str = ""
    code: str = ""
    message: str = ""
    retryable: bool = False


@dataclass(frozen=True)
class AssessmentSession:
    state: AssessmentState = AssessmentState.IDLE
    session_id: int = 0
    reference_text: str = ""
    result: Optional[AssessmentResult] = None
    failure: Optional[Failure] = None


@dataclass(frozen=True)
class AssessmentSnapshot:
    state: AssessmentState
    session_id: int
    target_phrase: str
    result: Optional[AssessmentResult] = None
    feedback: Optional[FeedbackMessage] = None
    audio_level: float = 0.0
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self.state == AssessmentState.RECORDING

    @property
    def is_processing(self) -> bool:
        return self.state == AssessmentState.PROCESSING
