"""Protocol interfaces used by AssessmentOrchestrator."""

from __future__ import annotations

from queue import Queue
from typing import Callable, Optional, Protocol

from models import AssessmentConfig, AudioBuffer, AudioFrame, CaptureConstraints, EngineEvent


class Recorder(Protocol):
    def start(self, audio_queue: Queue[AudioFrame | None], constraints: CaptureConstraints) -> None: ...

    def stop(self) -> None: ...

    def latest_frame(self) -> Optional[AudioFrame]: ...


class Submission(Protocol):
    def cancel(self) -> None: ...


class AssessmentEngine(Protocol):
    def submit(
        self,
        buffer: AudioBuffer,
        config: AssessmentConfig,
        on_event: Callable[[EngineEvent], None],
    ) -> Submission: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_language(self) -> str: ...

    def set_language(self, language: str) -> None: ...

    def get_model(self) -> str: ...

    def get_level_interval_ms(self) -> int: ...

    def get_constraints(self) -> CaptureConstraints: ...
