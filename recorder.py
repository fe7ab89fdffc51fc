"""Microphone recorder adapter."""

from __future__ import annotations

import logging
import threading
import time
from queue import Full, Queue
from typing import Any, Optional

import numpy as np

from errors import DEVICE_UNAVAILABLE, PERMISSION_DENIED, CaptureError
from models import AudioFrame, CaptureConstraints

try:
    import sounddevice as sd
except OSError:  # pragma: no cover - PortAudio library missing
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

_PERMISSION_HINTS = ("permission", "not permitted", "denied", "unauthorized", "not authorized")


def _capture_error(exc: Exception) -> CaptureError:
    message = str(exc)
    low = message.lower()
    if any(hint in low for hint in _PERMISSION_HINTS):
        return CaptureError(PERMISSION_DENIED, message)
    return CaptureError(DEVICE_UNAVAILABLE, message)


class SoundDeviceRecorder:
    """PortAudio input stream that pushes PCM16 frames into a queue.

    ``stop()`` releases the stream and appends a ``None`` sentinel so the
    consumer knows every frame before it has arrived. PortAudio has no
    echo-cancellation/noise/gain switches; the requested constraints are
    kept on ``self.constraints`` for the platform to honour where it can.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        device: Optional[int | str] = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.device = device
        self.constraints = CaptureConstraints()
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self.dropped_chunks = 0
        self._audio_queue: Queue[AudioFrame | None] | None = None
        self._latest: Optional[AudioFrame] = None

    def start(
        self,
        audio_queue: Queue[AudioFrame | None],
        constraints: CaptureConstraints | None = None,
    ) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise CaptureError(DEVICE_UNAVAILABLE, "sounddevice is not installed")
            self.constraints = constraints or CaptureConstraints()
            self._audio_queue = audio_queue
            self._latest = None
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            logger.debug(
                "Opening input stream rate=%s channels=%s constraints=%s",
                self.sample_rate,
                self.channels,
                self.constraints,
            )
            stream = None
            try:
                sd.check_input_settings(
                    device=self.device,
                    channels=self.channels,
                    dtype="int16",
                    samplerate=self.sample_rate,
                )
                stream = sd.InputStream(
                    device=self.device,
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                )
                stream.start()
            except (sd.PortAudioError, ValueError) as exc:
                if stream is not None:
                    stream.close(ignore_errors=True)
                logger.warning("Microphone unavailable: %s", exc)
                raise _capture_error(exc) from exc
            self._stream = stream
            self._running = True

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                self._emit_sentinel_if_needed()
                return
            stream, self._stream = self._stream, None
            try:
                if stream is not None:
                    # Blocks until in-flight callbacks have delivered their frames.
                    stream.stop()
                    stream.close()
            finally:
                self._running = False
                self._emit_sentinel_if_needed()
                self._audio_queue = None

    def latest_frame(self) -> Optional[AudioFrame]:
        if not self._running:
            return None
        return self._latest

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or self._audio_queue is None:
            return
        if status:
            logger.debug("Input stream status: %s", status)
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        frame = AudioFrame(
            pcm16_bytes=payload,
            sample_rate=self.sample_rate,
            channels=self.channels,
            timestamp_ms=int(time.time() * 1000),
        )
        self._latest = frame
        try:
            self._audio_queue.put_nowait(frame)
        except Full:
            self.dropped_chunks += 1

    def _emit_sentinel_if_needed(self) -> None:
        if self._audio_queue is None:
            return
        try:
            self._audio_queue.put_nowait(None)
        except Full:
            logger.warning("Audio queue full, completion sentinel dropped")
