"""
Parley - live speech capture, transcription and utterance classification.
"""

from .app import ParleyApp
from .errors import (
    AudioDeviceError,
    EmptyTranscript,
    EngineUnavailable,
    NoSpeechDetected,
    ParleyError,
    RecognitionError,
)
from .events import EventChannel

__version__ = "0.1.0"

__all__ = [
    "ParleyApp",
    "EventChannel",
    "ParleyError",
    "EngineUnavailable",
    "AudioDeviceError",
    "RecognitionError",
    "NoSpeechDetected",
    "EmptyTranscript",
]
