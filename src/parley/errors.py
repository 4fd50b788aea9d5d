"""
Error taxonomy for Parley.

Fatal errors are raised to the caller of start(); steady-state errors are
delivered through event channels and never unwind a running session.
"""

from typing import Optional

# Engine error kind meaning "no speech detected in this interval"
NO_SPEECH = "no-speech"


class ParleyError(Exception):
    """Base class for all Parley errors."""


class EngineUnavailable(ParleyError):
    """Raised when no recognition engine exists in the environment."""
    def __init__(self, engine_id: str, install_hint: str = ""):
        self.engine_id = engine_id
        self.install_hint = install_hint
        message = f"Recognition engine '{engine_id}' not available."
        if install_hint:
            message = f"{message} {install_hint}"
        super().__init__(message)


class AudioDeviceError(ParleyError):
    """Raised when the microphone cannot be acquired (denied or missing)."""


class RecognitionError(ParleyError):
    """Non-fatal error reported by the recognition engine."""
    def __init__(self, kind: str, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or f"Speech recognition error: {kind}")


class NoSpeechDetected(RecognitionError):
    """Engine heard nothing in its listening window. Absorbed, never surfaced."""
    def __init__(self):
        super().__init__(NO_SPEECH)


class EmptyTranscript(ParleyError):
    """Finalized text was empty after trimming; no transcript is created."""
