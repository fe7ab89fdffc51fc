from __future__ import annotations

from queue import Queue
from typing import Optional

import numpy as np

from capture_session import CaptureSession, assemble_buffer
from errors import DEVICE_UNAVAILABLE, PERMISSION_DENIED, CaptureError
from models import AudioFrame, CaptureConstraints, CaptureState


class FakeRecorder:
    def __init__(self, fail_with: Optional[CaptureError] = None) -> None:
        self.fail_with = fail_with
        self.start_calls = 0
        self.stop_calls = 0
        self.constraints: Optional[CaptureConstraints] = None
        self.queue: Queue[AudioFrame | None] | None = None
        self.latest: Optional[AudioFrame] = None

    def start(self, audio_queue: Queue[AudioFrame | None], constraints: CaptureConstraints) -> None:
        self.start_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        self.queue = audio_queue
        self.constraints = constraints

    def stop(self) -> None:
        self.stop_calls += 1
        if self.queue is not None:
            self.queue.put_nowait(None)
            self.queue = None

    def latest_frame(self) -> Optional[AudioFrame]:
        return self.latest

    def push(self, data: bytes) -> None:
        assert self.queue is not None
        frame = AudioFrame(pcm16_bytes=data)
        self.latest = frame
        self.queue.put_nowait(frame)


def test_start_uses_default_constraints() -> None:
    recorder = FakeRecorder()
    session = CaptureSession(recorder)

    assert session.start() is True
    assert session.state == CaptureState.RECORDING
    assert recorder.constraints == CaptureConstraints(True, True, True)


def test_stop_assembles_chunks_in_arrival_order() -> None:
    recorder = FakeRecorder()
    session = CaptureSession(recorder)
    session.start()

    chunks = [b"\x01\x00\x02\x00", b"\x03\x00", b"", b"\x04\x00\x05\x00\x06\x00"]
    for chunk in chunks:
        recorder.push(chunk)
    session.stop()

    assert session.state == CaptureState.PROCESSING
    assert recorder.stop_calls == 1
    buffer = session.take_buffer()
    assert buffer is not None
    assert buffer.data == b"".join(chunks)
    assert buffer.chunk_count == 3
    assert session.state == CaptureState.IDLE
    assert session.take_buffer() is None


def test_stop_with_no_chunks_gives_empty_buffer() -> None:
    recorder = FakeRecorder()
    session = CaptureSession(recorder)
    session.start()
    session.stop()

    buffer = session.take_buffer()
    assert buffer is not None
    assert buffer.is_empty


def test_stop_when_not_recording_is_noop() -> None:
    recorder = FakeRecorder()
    session = CaptureSession(recorder)

    session.stop()

    assert session.state == CaptureState.IDLE
    assert recorder.stop_calls == 0
    assert session.take_buffer() is None


def test_stop_releases_even_when_recorder_stop_raises() -> None:
    class ExplodingRecorder(FakeRecorder):
        def stop(self) -> None:
            self.stop_calls += 1
            raise RuntimeError("device vanished")

    recorder = ExplodingRecorder()
    session = CaptureSession(recorder)
    session.start()
    session.stop()
    session.release()

    assert recorder.stop_calls == 1
    assert session.state == CaptureState.IDLE


def test_permission_denied_reports_and_stays_idle() -> None:
    recorder = FakeRecorder(fail_with=CaptureError(PERMISSION_DENIED, "denied"))
    errors: list[tuple[str, str]] = []
    session = CaptureSession(recorder, on_error=lambda c, m: errors.append((c, m)))

    assert session.start() is False
    assert session.state == CaptureState.IDLE
    assert errors == [(PERMISSION_DENIED, "denied")]
    assert recorder.stop_calls == 0


def test_unexpected_recorder_failure_maps_to_device_unavailable() -> None:
    class BrokenRecorder(FakeRecorder):
        def start(self, audio_queue, constraints) -> None:  # noqa: ANN001
            raise OSError("no backend")

    errors: list[tuple[str, str]] = []
    session = CaptureSession(BrokenRecorder(), on_error=lambda c, m: errors.append((c, m)))

    assert session.start() is False
    assert errors[0][0] == DEVICE_UNAVAILABLE
    assert session.state == CaptureState.IDLE


def test_restart_releases_previous_stream_first() -> None:
    recorder = FakeRecorder()
    session = CaptureSession(recorder)
    session.start()
    recorder.push(b"\x01\x00")
    session.start()

    assert recorder.start_calls == 2
    assert recorder.stop_calls == 1
    session.stop()
    buffer = session.take_buffer()
    assert buffer is not None and buffer.is_empty


def test_release_is_idempotent() -> None:
    recorder = FakeRecorder()
    session = CaptureSession(recorder)
    session.start()

    session.release()
    session.release()

    assert recorder.stop_calls == 1
    assert session.state == CaptureState.IDLE


def test_level_tap_only_while_recording() -> None:
    recorder = FakeRecorder()
    session = CaptureSession(recorder)
    assert session.read_level_samples() is None

    session.start()
    assert session.read_level_samples() is None
    recorder.push(b"\x10\x00\xf0\xff\x01")
    samples = session.read_level_samples()
    assert samples is not None
    assert samples.tolist() == [16, -16]
    assert samples.dtype == np.dtype("<i2")

    session.stop()
    assert session.read_level_samples() is None


def test_assemble_buffer_keeps_first_frame_format() -> None:
    frames = [
        AudioFrame(pcm16_bytes=b"\x00\x00" * 4, sample_rate=8000, channels=2),
        AudioFrame(pcm16_bytes=b"\x01\x00" * 4, sample_rate=8000, channels=2),
    ]
    buffer = assemble_buffer(frames)

    assert buffer.sample_rate == 8000
    assert buffer.channels == 2
    assert buffer.duration_s == 16 / 4 / 8000
