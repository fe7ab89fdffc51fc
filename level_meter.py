"""
Live loudness sampling for the recording indicator.

The meter reads the capture tap on a repeating schedule and publishes a
value in 0.0--1.0. It is decoupled from assessment correctness; values
are approximate.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

import numpy as np

from interfaces import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

INT16_MAX = 32767.0
FFT_SIZE = 256
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0

LevelCallback = Callable[[float], None]


class LevelSource(Protocol):
    @property
    def is_recording(self) -> bool: ...

    def read_level_samples(self) -> Optional[np.ndarray]: ...


def frequency_level(samples: Optional[np.ndarray], fft_size: int = FFT_SIZE) -> float:
    """
    Average spectral magnitude of the newest ``fft_size`` samples, normalized
    like a Web Audio analyser: Blackman window, magnitudes in dB mapped from
    [MIN_DECIBELS, MAX_DECIBELS] onto [0, 1]. Returns 0.0 for missing data.
    """
    if samples is None or len(samples) == 0:
        return 0.0
    frame = np.asarray(samples[-fft_size:], dtype=np.float64) / INT16_MAX
    if frame.size < fft_size:
        frame = np.pad(frame, (fft_size - frame.size, 0))
    spectrum = np.abs(np.fft.rfft(frame * np.blackman(fft_size)))[: fft_size // 2] / fft_size
    with np.errstate(divide="ignore"):
        decibels = 20.0 * np.log10(spectrum)
    scaled = (decibels - MIN_DECIBELS) / (MAX_DECIBELS - MIN_DECIBELS)
    level = float(np.mean(np.clip(np.nan_to_num(scaled, nan=0.0, neginf=0.0), 0.0, 1.0)))
    return min(1.0, max(0.0, level))


def rms_level(samples: Optional[np.ndarray]) -> float:
    """RMS of int16 samples normalized to 0.0--1.0."""
    if samples is None or len(samples) == 0:
        return 0.0
    values = np.asarray(samples, dtype=np.float64)
    rms = float(np.sqrt(np.mean(values * values)))
    return min(1.0, rms / INT16_MAX)


class LevelMeter:
    def __init__(
        self,
        scheduler: Scheduler,
        interval_s: float = 0.1,
        on_level: Optional[LevelCallback] = None,
        measure: Callable[[Optional[np.ndarray]], float] = frequency_level,
    ) -> None:
        self._scheduler = scheduler
        self._interval_s = interval_s
        self._measure = measure
        self._lock = threading.Lock()
        self._subscribers: list[LevelCallback] = []
        if on_level is not None:
            self._subscribers.append(on_level)
        self._source: Optional[LevelSource] = None
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._level = 0.0

    @property
    def level(self) -> float:
        return self._level

    @property
    def running(self) -> bool:
        return self._source is not None

    def subscribe(self, callback: LevelCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def start(self, source: LevelSource) -> None:
        with self._lock:
            self._cancel_locked()
            self._source = source
            self._generation += 1
            self._schedule_locked(self._generation)

    def stop(self) -> None:
        with self._lock:
            was_running = self._source is not None
            self._cancel_locked()
            self._source = None
            self._generation += 1
            self._level = 0.0
            subscribers = list(self._subscribers) if was_running else []
        for callback in subscribers:
            callback(0.0)

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._source is None:
                return
            source = self._source
            self._handle = None
        if not source.is_recording:
            logger.debug("Capture no longer recording, level meter stopping")
            with self._lock:
                if generation == self._generation:
                    self._source = None
                    self._level = 0.0
            return
        level = self._measure(source.read_level_samples())
        with self._lock:
            if generation != self._generation:
                return
            self._level = level
            subscribers = list(self._subscribers)
            self._schedule_locked(generation)
        for callback in subscribers:
            callback(level)

    def _schedule_locked(self, generation: int) -> None:
        self._handle = self._scheduler.call_later(self._interval_s, lambda: self._tick(generation))

    def _cancel_locked(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
