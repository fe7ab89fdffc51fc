"""State-machine based assessment orchestration."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Callable, Optional, Union

import state_machine
from assessment_payload import parse_assessment_payload, validate_result
from capture_session import CaptureSession
from errors import INVALID_RESPONSE_FORMAT, NETWORK_ERROR, RECOGNITION_CANCELED, InvalidResponseFormat, message_for
from feedback import generate_feedback
from interfaces import AssessmentEngine, Recorder, Scheduler, Submission, TimerHandle
from level_meter import LevelMeter
from locales import Language, parse_language, resolve_locale
from models import (
    AssessmentConfig,
    AssessmentResult,
    AssessmentSession,
    AssessmentSnapshot,
    AssessmentState,
    AudioBuffer,
    CaptureConstraints,
    EngineEvent,
    EngineEventKind,
    Failure,
    FeedbackMessage,
    Granularity,
)
from scheduler import ThreadingScheduler
from state_machine import Command, Transition

logger = logging.getLogger(__name__)

StateCallback = Callable[[AssessmentState, AssessmentState], None]
ResultCallback = Callable[[AssessmentResult, Optional[FeedbackMessage]], None]
ErrorCallback = Callable[[str, str], None]
LevelCallback = Callable[[float], None]


class AssessmentOrchestrator:
    def __init__(
        self,
        recorder: Recorder,
        engine: AssessmentEngine,
        scheduler: Optional[Scheduler] = None,
        language: Union[str, Language] = Language.ENGLISH,
        target_phrase: str = "",
        constraints: Optional[CaptureConstraints] = None,
        level_interval_s: float = 0.1,
        assessment_timeout_s: Optional[float] = None,
        enable_feedback: bool = True,
        on_state_change: Optional[StateCallback] = None,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_level: Optional[LevelCallback] = None,
    ) -> None:
        self._engine = engine
        self._scheduler = scheduler or ThreadingScheduler()
        self._language = parse_language(language)
        self._target_phrase = target_phrase
        self._constraints = constraints or CaptureConstraints()
        self._assessment_timeout_s = assessment_timeout_s
        self._enable_feedback = enable_feedback
        self._on_state_change = on_state_change
        self._on_result = on_result
        self._on_error = on_error
        self._on_level = on_level

        self._lock = threading.RLock()
        self._session = AssessmentSession()
        self._capture = CaptureSession(recorder, on_error=self._handle_capture_error)
        self._meter = LevelMeter(self._scheduler, interval_s=level_interval_s, on_level=self._handle_level)
        self._buffer: Optional[AudioBuffer] = None
        self._submission: Optional[Submission] = None
        self._timeout_handle: Optional[TimerHandle] = None
        self._feedback: Optional[FeedbackMessage] = None
        self._audio_level = 0.0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> AssessmentState:
        return self._session.state

    @property
    def is_recording(self) -> bool:
        return self._session.state == AssessmentState.RECORDING

    @property
    def is_processing(self) -> bool:
        return self._session.state == AssessmentState.PROCESSING

    @property
    def result(self) -> Optional[AssessmentResult]:
        return self._session.result

    @property
    def feedback(self) -> Optional[FeedbackMessage]:
        return self._feedback

    @property
    def audio_level(self) -> float:
        return self._audio_level

    @property
    def error(self) -> Optional[str]:
        failure = self._session.failure
        return failure.message if failure else None

    @property
    def target_phrase(self) -> str:
        return self._target_phrase

    def snapshot(self) -> AssessmentSnapshot:
        with self._lock:
            failure = self._session.failure
            return AssessmentSnapshot(
                state=self._session.state,
                session_id=self._session.session_id,
                target_phrase=self._target_phrase,
                result=self._session.result,
                feedback=self._feedback,
                audio_level=self._audio_level,
                error=failure.message if failure else None,
                error_code=failure.code if failure else None,
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def set_target_phrase(self, text: str) -> None:
        with self._lock:
            self._target_phrase = text

    def set_language(self, language: Union[str, Language]) -> None:
        with self._lock:
            self._language = parse_language(language)

    def start_assessment(self, reference_text: Optional[str] = None) -> None:
        with self._lock:
            text = self._target_phrase if reference_text is None else reference_text
            self._target_phrase = text
            self._feedback = None
            self._apply(state_machine.start(self._session, text))

    def stop_assessment(self) -> None:
        with self._lock:
            self._apply(state_machine.stop(self._session))

    def clear_result(self) -> None:
        with self._lock:
            self._feedback = None
            self._apply(state_machine.clear(self._session))

    def close(self) -> None:
        with self._lock:
            self._feedback = None
            self._buffer = None
            self._apply(state_machine.teardown(self._session))

    # ------------------------------------------------------------------
    # Transition execution
    # ------------------------------------------------------------------

    def _apply(self, transition: Transition) -> None:
        from_state = self._session.state
        self._session = transition.session
        to_state = self._session.state
        if from_state != to_state:
            logger.info(
                "Assessment %s: %s -> %s",
                self._session.session_id,
                from_state.value,
                to_state.value,
            )
            self._notify(self._on_state_change, from_state, to_state)
        for command in transition.commands:
            self._execute(command)

    def _execute(self, command: Command) -> None:
        if command == Command.START_CAPTURE:
            session_id = self._session.session_id
            if self._capture.start(self._constraints):
                self._apply(state_machine.capture_started(self._session, session_id))
        elif command == Command.START_METER:
            self._meter.start(self._capture)
        elif command == Command.STOP_METER:
            self._meter.stop()
            self._audio_level = 0.0
        elif command == Command.STOP_CAPTURE:
            self._capture.stop()
            self._buffer = self._capture.take_buffer()
            has_audio = self._buffer is not None and not self._buffer.is_empty
            self._apply(state_machine.buffer_ready(self._session, self._session.session_id, has_audio))
        elif command == Command.RELEASE_CAPTURE:
            self._buffer = None
            self._capture.release()
        elif command == Command.SUBMIT:
            self._submit()
        elif command == Command.CANCEL_SUBMISSION:
            self._cancel_submission()
        elif command == Command.PUBLISH_RESULT:
            self._publish_result()
        elif command == Command.PUBLISH_ERROR:
            self._publish_error()

    def _submit(self) -> None:
        buffer, self._buffer = self._buffer, None
        session_id = self._session.session_id
        config = AssessmentConfig(
            reference_text=self._session.reference_text,
            locale=resolve_locale(self._language),
            granularity=Granularity.PHONEME,
            enable_miscue=True,
        )
        self._cancel_submission()
        logger.info(
            "Submitting %.2fs of audio for %r (%s)",
            buffer.duration_s if buffer else 0.0,
            config.reference_text,
            config.locale,
        )
        try:
            submission = self._engine.submit(
                buffer,
                config,
                functools.partial(self._handle_engine_event, session_id),
            )
        except Exception as exc:
            logger.exception("Engine submission failed")
            self._fail(session_id, NETWORK_ERROR, str(exc))
            return
        if session_id != self._session.session_id or self._session.state != AssessmentState.PROCESSING:
            submission.cancel()
            return
        self._submission = submission
        if self._assessment_timeout_s is not None:
            self._timeout_handle = self._scheduler.call_later(
                self._assessment_timeout_s,
                functools.partial(self._handle_timeout, session_id),
            )

    def _cancel_submission(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
        submission, self._submission = self._submission, None
        if submission is None:
            return
        try:
            submission.cancel()
        except Exception:
            logger.exception("Failed to cancel engine submission")

    def _publish_result(self) -> None:
        result = self._session.result
        if result is None:
            return
        if self._enable_feedback:
            self._feedback = generate_feedback(result, self._language)
        logger.info(
            "Assessment %s scored %.1f",
            self._session.session_id,
            result.pronunciation_score,
        )
        self._notify(self._on_result, result, self._feedback)

    def _publish_error(self) -> None:
        failure = self._session.failure
        if failure is None:
            return
        logger.warning(
            "Assessment %s failed (%s): %s",
            self._session.session_id,
            failure.code,
            failure.detail or failure.message,
        )
        self._notify(self._on_error, failure.code, failure.message)

    def _notify(self, callback: Optional[Callable[..., None]], *args: object) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Consumer callback %r failed", callback)

    def _fail(self, session_id: int, code: str, detail: str = "") -> None:
        failure = Failure(code=code, message=message_for(code), detail=detail)
        self._apply(state_machine.failed(self._session, session_id, failure))

    # ------------------------------------------------------------------
    # Collaborator callbacks
    # ------------------------------------------------------------------

    def _handle_capture_error(self, code: str, detail: str) -> None:
        with self._lock:
            self._fail(self._session.session_id, code, detail)

    def _handle_level(self, level: float) -> None:
        with self._lock:
            if self._session.state != AssessmentState.RECORDING and level > 0.0:
                return
            self._audio_level = level
        self._notify(self._on_level, level)

    def _handle_timeout(self, session_id: int) -> None:
        with self._lock:
            if session_id != self._session.session_id:
                return
            self._timeout_handle = None
            self._fail(session_id, NETWORK_ERROR, f"no result after {self._assessment_timeout_s}s")

    def _handle_engine_event(self, session_id: int, event: EngineEvent) -> None:
        with self._lock:
            if session_id != self._session.session_id:
                logger.debug("Discarding %s event from superseded session %s", event.kind, session_id)
                return
            kind = event.kind
            if kind in (EngineEventKind.RECOGNIZED.value, EngineEventKind.RAW.value):
                self._handle_payload(session_id, event)
            elif kind == EngineEventKind.CANCELED.value:
                self._fail(session_id, RECOGNITION_CANCELED, event.reason or event.message)
            elif kind == EngineEventKind.ERROR.value:
                self._fail(session_id, event.code or NETWORK_ERROR, event.message)
            else:
                self._fail(session_id, INVALID_RESPONSE_FORMAT, f"unknown engine event {kind!r}")

    def _handle_payload(self, session_id: int, event: EngineEvent) -> None:
        try:
            if isinstance(event.payload, AssessmentResult):
                result = validate_result(event.payload)
            else:
                result = parse_assessment_payload(event.payload)
        except InvalidResponseFormat as exc:
            self._fail(session_id, INVALID_RESPONSE_FORMAT, str(exc))
            return
        except Exception as exc:
            logger.exception("Unreadable engine payload")
            self._fail(session_id, INVALID_RESPONSE_FORMAT, str(exc))
            return
        if result.error_message:
            self._fail(session_id, NETWORK_ERROR, result.error_message)
            return
        self._apply(state_machine.resolved(self._session, session_id, result))
