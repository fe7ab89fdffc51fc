"""Pronunciation engine adapter using a DashScope audio model.

The recorded PCM is wrapped as a WAV file and sent, together with the
reference text, to an audio-understanding model that is asked to grade
the pronunciation and reply with JSON. The reply streams back via
``stream=True``; the final text is delivered to the caller as a ``raw``
engine event and parsed by the orchestrator.
"""

from __future__ import annotations

import base64
import io
import json
import logging
import os
import threading
import wave
from typing import Callable, Optional

from errors import AUTH_FAILED, NETWORK_ERROR
from models import AssessmentConfig, AudioBuffer, EngineEvent, EngineEventKind

try:
    import dashscope
except ImportError:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a pronunciation assessment engine for language learners. "
    "Grade the learner's recording against the reference text and reply with JSON only."
)

RESULT_SCHEMA = (
    '{"pronunciationScore": 0-100, "accuracyScore": 0-100, "fluencyScore": 0-100, '
    '"completenessScore": 0-100, "prosodyScore": 0-100, "words": [{"word": "...", '
    '"accuracyScore": 0-100, "errorType": "None|Mispronunciation|Omission|Insertion", '
    '"phonemes": [{"phoneme": "...", "accuracyScore": 0-100}]}]}'
)


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    wav_bytes = buf.getvalue()
    return base64.b64encode(wav_bytes).decode("ascii")


def build_instructions(config: AssessmentConfig) -> str:
    lines = [
        f"Reference text: {config.reference_text}",
        f"Locale: {config.locale}",
        f"Granularity: {config.granularity.value}",
    ]
    if config.enable_miscue:
        lines.append("Mark omitted and inserted words with errorType Omission or Insertion.")
    lines.append(f"Reply with exactly this JSON shape: {RESULT_SCHEMA}")
    lines.append('If no speech is audible, reply {"noSpeech": true}.')
    return "\n".join(lines)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()


class DashscopeSubmission:
    """One in-flight assessment request; ``cancel()`` stops further events."""

    def __init__(self, on_event: Callable[[EngineEvent], None]) -> None:
        self._on_event = on_event
        self._cancelled = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def emit(self, event: EngineEvent) -> None:
        if self._cancelled.is_set():
            logger.debug("Dropping %s event from cancelled submission", event.kind)
            return
        self._on_event(event)


class DashscopeAssessmentEngine:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen-audio-turbo-latest",
        request_timeout_s: float = 20.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    def submit(
        self,
        buffer: AudioBuffer,
        config: AssessmentConfig,
        on_event: Callable[[EngineEvent], None],
    ) -> DashscopeSubmission:
        submission = DashscopeSubmission(on_event)
        submission.thread = threading.Thread(
            target=self._worker,
            args=(submission, buffer, config),
            daemon=True,
        )
        submission.thread.start()
        return submission

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self, submission: DashscopeSubmission, buffer: AudioBuffer, config: AssessmentConfig) -> None:
        try:
            wav_b64 = _pcm_to_wav_base64(buffer.data, buffer.sample_rate, buffer.channels)
            event = self._assess(submission, wav_b64, config)
        except Exception as exc:
            logger.exception("Assessment worker failed")
            event = self._to_error_event(exc)
        try:
            submission.emit(event)
        except Exception:
            logger.exception("Assessment event handler failed")

    def _assess(self, submission: DashscopeSubmission, wav_base64: str, config: AssessmentConfig) -> EngineEvent:
        if dashscope is None:
            return EngineEvent(
                kind=EngineEventKind.ERROR.value,
                code=NETWORK_ERROR,
                message="dashscope is not installed",
            )

        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            return EngineEvent(
                kind=EngineEventKind.ERROR.value,
                code=AUTH_FAILED,
                message="No API key configured",
            )

        latest_text = ""
        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": SYSTEM_PROMPT}]},
                    {"role": "user", "content": [{"audio": wav_base64}, {"text": build_instructions(config)}]},
                ],
                result_format="message",
                stream=True,
                timeout=self._request_timeout_s,
            )
            for chunk in response:
                if submission.cancelled:
                    return EngineEvent(kind=EngineEventKind.CANCELED.value, reason="submission cancelled")
                self._check_status(chunk)
                text = self._extract_text(chunk)
                if text:
                    latest_text = text
        except Exception as exc:
            return self._to_error_event(exc)

        payload = _strip_code_fence(latest_text)
        if not payload:
            return EngineEvent(kind=EngineEventKind.CANCELED.value, reason="engine returned no result")
        if self._is_no_speech(payload):
            return EngineEvent(kind=EngineEventKind.CANCELED.value, reason="no speech detected")
        return EngineEvent(kind=EngineEventKind.RAW.value, payload=payload)

    def _is_no_speech(self, payload: str) -> bool:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            return False
        return isinstance(data, dict) and data.get("noSpeech") is True

    def _check_status(self, chunk: object) -> None:
        if not isinstance(chunk, dict):
            return
        status = chunk.get("status_code")
        if status in (None, 200):
            return
        raise RuntimeError(f"{status} {chunk.get('code', '')}: {chunk.get('message', '')}")

    def _extract_text(self, chunk: object) -> str:
        """Pull text from a dashscope streaming chunk dict."""
        if isinstance(chunk, dict):
            output = chunk.get("output") or {}
            choices = output.get("choices", [])
            if not choices:
                return ""
            message = choices[0].get("message", {})
            content = message.get("content", [])
            if not content:
                return ""
            value = content[0]
            if isinstance(value, dict):
                return str(value.get("text", ""))
        return ""

    def _to_error_event(self, exc: Exception) -> EngineEvent:
        """Map an SDK/network exception to a standard error event."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            code = AUTH_FAILED
            retryable = False
        else:
            code = NETWORK_ERROR
            retryable = True
        logger.warning("Assessment request failed (%s): %s", code, message)
        return EngineEvent(
            kind=EngineEventKind.ERROR.value,
            code=code,
            message=message,
            retryable=retryable,
        )
