"""
Speech Capture and Analysis

Turns a continuous recognition engine into an ordered, classified transcript.
"""

from .classifier import ClassificationResult, PatternClassifier, classify
from .ledger import Transcript, TranscriptLedger
from .registry import Participant, ParticipantRegistry
from .session import SessionState, SpeechSession

__all__ = [
    "ClassificationResult",
    "PatternClassifier",
    "classify",
    "Transcript",
    "TranscriptLedger",
    "Participant",
    "ParticipantRegistry",
    "SessionState",
    "SpeechSession",
]
