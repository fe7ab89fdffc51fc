"""Capture session: one microphone acquisition-to-release lifecycle."""

from __future__ import annotations

import logging
import threading
from queue import Empty, Queue
from typing import Callable, Optional

import numpy as np

from errors import DEVICE_UNAVAILABLE, CaptureError, message_for
from interfaces import Recorder
from models import AudioBuffer, AudioFrame, CaptureConstraints, CaptureState

logger = logging.getLogger(__name__)

CaptureErrorCallback = Callable[[str, str], None]


def assemble_buffer(frames: list[AudioFrame]) -> AudioBuffer:
    """Concatenate frames in the given order into one immutable buffer."""
    chunks = [frame.pcm16_bytes for frame in frames if frame.pcm16_bytes]
    if not chunks:
        return AudioBuffer(data=b"", chunk_count=0)
    first = frames[0]
    return AudioBuffer(
        data=b"".join(chunks),
        sample_rate=first.sample_rate,
        channels=first.channels,
        chunk_count=len(chunks),
    )


class CaptureSession:
    def __init__(
        self,
        recorder: Recorder,
        on_error: Optional[CaptureErrorCallback] = None,
    ) -> None:
        self._recorder = recorder
        self._on_error = on_error
        self._lock = threading.RLock()
        self._state = CaptureState.IDLE
        self._stream_open = False
        self._audio_queue: Queue[AudioFrame | None] = Queue()
        self._buffer: Optional[AudioBuffer] = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == CaptureState.RECORDING

    def start(self, constraints: CaptureConstraints | None = None) -> bool:
        with self._lock:
            if self._state != CaptureState.IDLE:
                self.release()
            self._audio_queue = Queue()
            self._buffer = None
            try:
                self._recorder.start(self._audio_queue, constraints or CaptureConstraints())
            except CaptureError as exc:
                self._report(exc.code, exc.detail)
                return False
            except Exception as exc:
                logger.exception("Recorder failed to start")
                self._report(DEVICE_UNAVAILABLE, str(exc))
                return False
            self._stream_open = True
            self._state = CaptureState.RECORDING
            logger.info("Capture started")
            return True

    def stop(self) -> None:
        with self._lock:
            if self._state != CaptureState.RECORDING:
                return
            self._state = CaptureState.PROCESSING
            try:
                self._release_stream()
            finally:
                frames = self._drain()
                self._buffer = assemble_buffer(frames)
            logger.info(
                "Capture stopped: %d chunks, %.2fs",
                self._buffer.chunk_count,
                self._buffer.duration_s,
            )

    def take_buffer(self) -> Optional[AudioBuffer]:
        """Hand the assembled buffer to the caller; subsequent calls return None."""
        with self._lock:
            buffer, self._buffer = self._buffer, None
            if self._state == CaptureState.PROCESSING:
                self._state = CaptureState.IDLE
            return buffer

    def release(self) -> None:
        with self._lock:
            self._release_stream()
            self._buffer = None
            self._audio_queue = Queue()
            self._state = CaptureState.IDLE

    def read_level_samples(self) -> Optional[np.ndarray]:
        if self._state != CaptureState.RECORDING:
            return None
        frame = self._recorder.latest_frame()
        if frame is None or not frame.pcm16_bytes:
            return None
        usable = len(frame.pcm16_bytes) - len(frame.pcm16_bytes) % 2
        return np.frombuffer(frame.pcm16_bytes[:usable], dtype="<i2")

    def _release_stream(self) -> None:
        if not self._stream_open:
            return
        self._stream_open = False
        try:
            self._recorder.stop()
        except Exception:
            logger.exception("Failed to release microphone stream")

    def _drain(self) -> list[AudioFrame]:
        frames: list[AudioFrame] = []
        while True:
            try:
                frame = self._audio_queue.get_nowait()
            except Empty:
                break
            if frame is None:
                break
            frames.append(frame)
        return frames

    def _report(self, code: str, detail: str) -> None:
        logger.warning("Capture failed (%s): %s", code, detail)
        self._state = CaptureState.IDLE
        if self._on_error:
            self._on_error(code, detail or message_for(code))
