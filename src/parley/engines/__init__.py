"""
Parley Recognition Engines

Provides a unified interface for continuous speech recognition backends:
- Whisper (faster-whisper) - Default, runs locally on the microphone
"""

from .base import (
    RecognitionEngine,
    RecognitionBatch,
    RecognitionSegment,
    ModelInfo,
)
from .factory import (
    create_engine,
    get_available_engines,
    is_engine_available,
    get_all_models,
    get_default_engine,
    get_engine_class,
    get_all_engines,
    register_engine,
)

__all__ = [
    # Base classes
    "RecognitionEngine",
    "RecognitionBatch",
    "RecognitionSegment",
    "ModelInfo",
    # Factory functions
    "create_engine",
    "get_available_engines",
    "is_engine_available",
    "get_all_models",
    "get_default_engine",
    "get_engine_class",
    "get_all_engines",
    "register_engine",
]
