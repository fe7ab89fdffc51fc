from __future__ import annotations

import state_machine
from errors import NETWORK_ERROR, NO_AUDIO_CAPTURED
from models import AssessmentResult, AssessmentSession, AssessmentState, Failure
from state_machine import Command

RESULT = AssessmentResult(
    pronunciation_score=80,
    accuracy_score=80,
    fluency_score=80,
    completeness_score=80,
)


def _recording(session_id: int = 1) -> AssessmentSession:
    return AssessmentSession(state=AssessmentState.RECORDING, session_id=session_id, reference_text="hola")


def _processing(session_id: int = 1) -> AssessmentSession:
    return AssessmentSession(state=AssessmentState.PROCESSING, session_id=session_id, reference_text="hola")


def test_start_from_idle_bumps_session_and_starts_capture() -> None:
    session, commands = state_machine.start(AssessmentSession(), "hola")

    assert session.state == AssessmentState.RECORDING
    assert session.session_id == 1
    assert session.reference_text == "hola"
    assert commands == (Command.START_CAPTURE,)


def test_start_while_active_supersedes_before_capturing() -> None:
    for active in (_recording(4), _processing(4)):
        session, commands = state_machine.start(active, "adios")

        assert session.session_id == 5
        assert commands == (
            Command.STOP_METER,
            Command.CANCEL_SUBMISSION,
            Command.RELEASE_CAPTURE,
            Command.START_CAPTURE,
        )


def test_start_clears_previous_result_and_failure() -> None:
    done = AssessmentSession(state=AssessmentState.RESULT, session_id=2, result=RESULT)
    session, commands = state_machine.start(done, "otra vez")

    assert session.result is None
    assert session.failure is None
    assert commands == (Command.START_CAPTURE,)


def test_capture_started_starts_meter_only_for_current_session() -> None:
    assert state_machine.capture_started(_recording(3), 3).commands == (Command.START_METER,)
    assert state_machine.capture_started(_recording(3), 2).commands == (Command.RELEASE_CAPTURE,)


def test_stop_outside_recording_is_noop() -> None:
    for state in (AssessmentState.IDLE, AssessmentState.PROCESSING, AssessmentState.RESULT, AssessmentState.ERROR):
        original = AssessmentSession(state=state, session_id=7)
        session, commands = state_machine.stop(original)
        assert session is original
        assert commands == ()


def test_stop_moves_to_processing() -> None:
    session, commands = state_machine.stop(_recording())

    assert session.state == AssessmentState.PROCESSING
    assert commands == (Command.STOP_METER, Command.STOP_CAPTURE)


def test_empty_buffer_fails_without_submitting() -> None:
    session, commands = state_machine.buffer_ready(_processing(), 1, has_audio=False)

    assert session.state == AssessmentState.ERROR
    assert session.failure is not None
    assert session.failure.code == NO_AUDIO_CAPTURED
    assert session.failure.message == "No audio data recorded"
    assert Command.SUBMIT not in commands
    assert commands == (Command.PUBLISH_ERROR,)


def test_buffer_ready_submits() -> None:
    session, commands = state_machine.buffer_ready(_processing(), 1, has_audio=True)

    assert session.state == AssessmentState.PROCESSING
    assert commands == (Command.SUBMIT,)


def test_resolved_for_current_session_publishes_result() -> None:
    session, commands = state_machine.resolved(_processing(2), 2, RESULT)

    assert session.state == AssessmentState.RESULT
    assert session.result is RESULT
    assert commands == (Command.CANCEL_SUBMISSION, Command.PUBLISH_RESULT)


def test_stale_events_are_ignored() -> None:
    current = _processing(5)
    failure = Failure(NETWORK_ERROR, "down")

    assert state_machine.resolved(current, 4, RESULT) == (current, ())
    assert state_machine.failed(current, 4, failure) == (current, ())
    assert state_machine.buffer_ready(current, 4, has_audio=True) == (current, ())


def test_failed_tears_down_and_publishes() -> None:
    failure = Failure(NETWORK_ERROR, "down")
    session, commands = state_machine.failed(_recording(), 1, failure)

    assert session.state == AssessmentState.ERROR
    assert session.failure is failure
    assert commands[-1] == Command.PUBLISH_ERROR
    assert Command.RELEASE_CAPTURE in commands
    assert Command.STOP_METER in commands


def test_failed_after_terminal_state_is_ignored() -> None:
    done = AssessmentSession(state=AssessmentState.RESULT, session_id=1, result=RESULT)
    assert state_machine.failed(done, 1, Failure(NETWORK_ERROR, "late")) == (done, ())


def test_clear_returns_terminal_states_to_idle() -> None:
    errored = AssessmentSession(state=AssessmentState.ERROR, session_id=3, failure=Failure(NETWORK_ERROR, "x"))
    session, commands = state_machine.clear(errored)

    assert session.state == AssessmentState.IDLE
    assert session.failure is None
    assert session.session_id == 3
    assert commands == ()

    session, _ = state_machine.clear(_recording())
    assert session.state == AssessmentState.RECORDING


def test_teardown_invalidates_session_and_releases() -> None:
    session, commands = state_machine.teardown(_processing(8))

    assert session.state == AssessmentState.IDLE
    assert session.session_id == 9
    assert Command.RELEASE_CAPTURE in commands
    assert Command.CANCEL_SUBMISSION in commands
