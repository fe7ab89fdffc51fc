"""Shared error codes and user-facing messages."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
DEVICE_UNAVAILABLE = "DEVICE_UNAVAILABLE"
NO_AUDIO_CAPTURED = "NO_AUDIO_CAPTURED"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
INVALID_RESPONSE_FORMAT = "INVALID_RESPONSE_FORMAT"
RECOGNITION_CANCELED = "RECOGNITION_CANCELED"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Microphone permission denied. Please allow access to continue.",
    DEVICE_UNAVAILABLE: "No microphone available. Please connect one and try again.",
    NO_AUDIO_CAPTURED: "No audio data recorded",
    NETWORK_ERROR: "Error connecting to the speech service. Please try again later.",
    AUTH_FAILED: "API key is invalid.",
    INVALID_RESPONSE_FORMAT: "The speech service returned an unreadable result.",
    RECOGNITION_CANCELED: "Recognition was canceled. Please speak clearly and try again.",
}


def message_for(code: str) -> str:
    return ERROR_MESSAGES.get(code, ERROR_MESSAGES[NETWORK_ERROR])


class CaptureError(Exception):
    """Microphone acquisition failed; ``code`` is PERMISSION_DENIED or DEVICE_UNAVAILABLE."""

    def __init__(self, code: str, detail: str = "") -> None:
        super().__init__(detail or code)
        self.code = code
        self.detail = detail


class InvalidResponseFormat(ValueError):
    code = INVALID_RESPONSE_FORMAT
