"""Pure assessment-session transitions.

Each function takes the current ``AssessmentSession`` plus an event and
returns the next session with the side-effect commands the orchestrator must
run, in order. Events tagged with a ``session_id`` that no longer matches
are stale and leave the session untouched.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import NamedTuple

from errors import NO_AUDIO_CAPTURED, message_for
from models import AssessmentResult, AssessmentSession, AssessmentState, Failure


class Command(str, Enum):
    START_CAPTURE = "start_capture"
    STOP_CAPTURE = "stop_capture"
    RELEASE_CAPTURE = "release_capture"
    START_METER = "start_meter"
    STOP_METER = "stop_meter"
    SUBMIT = "submit"
    CANCEL_SUBMISSION = "cancel_submission"
    PUBLISH_RESULT = "publish_result"
    PUBLISH_ERROR = "publish_error"


class Transition(NamedTuple):
    session: AssessmentSession
    commands: tuple[Command, ...] = ()


ACTIVE_STATES = (AssessmentState.RECORDING, AssessmentState.PROCESSING)

_TEARDOWN = (Command.STOP_METER, Command.CANCEL_SUBMISSION, Command.RELEASE_CAPTURE)


def start(session: AssessmentSession, reference_text: str) -> Transition:
    commands: tuple[Command, ...] = ()
    if session.state in ACTIVE_STATES:
        commands = _TEARDOWN
    next_session = AssessmentSession(
        state=AssessmentState.RECORDING,
        session_id=session.session_id + 1,
        reference_text=reference_text,
    )
    return Transition(next_session, commands + (Command.START_CAPTURE,))


def capture_started(session: AssessmentSession, session_id: int) -> Transition:
    if session_id != session.session_id or session.state != AssessmentState.RECORDING:
        return Transition(session, (Command.RELEASE_CAPTURE,))
    return Transition(session, (Command.START_METER,))


def stop(session: AssessmentSession) -> Transition:
    if session.state != AssessmentState.RECORDING:
        return Transition(session)
    return Transition(
        replace(session, state=AssessmentState.PROCESSING),
        (Command.STOP_METER, Command.STOP_CAPTURE),
    )


def buffer_ready(session: AssessmentSession, session_id: int, has_audio: bool) -> Transition:
    if session_id != session.session_id or session.state != AssessmentState.PROCESSING:
        return Transition(session)
    if not has_audio:
        failure = Failure(NO_AUDIO_CAPTURED, message_for(NO_AUDIO_CAPTURED))
        return Transition(
            replace(session, state=AssessmentState.ERROR, failure=failure),
            (Command.PUBLISH_ERROR,),
        )
    return Transition(session, (Command.SUBMIT,))


def resolved(session: AssessmentSession, session_id: int, result: AssessmentResult) -> Transition:
    if session_id != session.session_id or session.state != AssessmentState.PROCESSING:
        return Transition(session)
    return Transition(
        replace(session, state=AssessmentState.RESULT, result=result, failure=None),
        (Command.CANCEL_SUBMISSION, Command.PUBLISH_RESULT),
    )


def failed(session: AssessmentSession, session_id: int, failure: Failure) -> Transition:
    if session_id != session.session_id or session.state not in ACTIVE_STATES:
        return Transition(session)
    return Transition(
        replace(session, state=AssessmentState.ERROR, result=None, failure=failure),
        _TEARDOWN + (Command.PUBLISH_ERROR,),
    )


def clear(session: AssessmentSession) -> Transition:
    if session.state in ACTIVE_STATES:
        return Transition(replace(session, result=None, failure=None))
    return Transition(replace(session, state=AssessmentState.IDLE, result=None, failure=None))


def teardown(session: AssessmentSession) -> Transition:
    next_session = AssessmentSession(
        state=AssessmentState.IDLE,
        session_id=session.session_id + 1,
        reference_text=session.reference_text,
    )
    return Transition(next_session, _TEARDOWN)
