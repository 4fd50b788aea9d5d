"""
Engine factory for creating recognition engines.

Provides dynamic engine registration based on available dependencies.
"""

from typing import Dict, List, Optional, Type

from ..errors import EngineUnavailable
from ..logger import get_logger
from .base import ModelInfo, RecognitionEngine

logger = get_logger(__name__)

# Registry of engines (populated by register_engine)
_engine_registry: Dict[str, Type[RecognitionEngine]] = {}


def register_engine(engine_class: Type[RecognitionEngine]) -> Type[RecognitionEngine]:
    """
    Register an engine class in the registry.

    Use as a decorator:
        @register_engine
        class MyEngine(RecognitionEngine):
            ENGINE_ID = "my_engine"
    """
    _engine_registry[engine_class.ENGINE_ID] = engine_class
    return engine_class


def get_available_engines() -> List[str]:
    """
    Get list of engine IDs that are available (dependencies installed).

    Returns:
        List of engine IDs that can be used
    """
    return [engine_id for engine_id, engine_class in _engine_registry.items()
            if engine_class.is_available()]


def is_engine_available(engine_id: str) -> bool:
    """Check if a specific engine is registered and its dependencies are installed."""
    if engine_id not in _engine_registry:
        return False
    return _engine_registry[engine_id].is_available()


def create_engine(engine_id: str, **options) -> RecognitionEngine:
    """
    Create an instance of the specified engine.

    Args:
        engine_id: The engine ID to instantiate
        **options: Passed to the engine constructor

    Returns:
        An instance of the requested engine

    Raises:
        EngineUnavailable: If the engine is unknown or its dependencies are missing
    """
    if engine_id not in _engine_registry:
        available = list(_engine_registry.keys())
        raise EngineUnavailable(engine_id, f"Unknown engine. Registered: {available}")

    engine_class = _engine_registry[engine_id]

    if not engine_class.is_available():
        raise EngineUnavailable(engine_id, engine_class.get_install_hint())

    return engine_class(**options)


def get_engine_class(engine_id: str) -> Optional[Type[RecognitionEngine]]:
    """Get the class for a specific engine (without instantiating)."""
    return _engine_registry.get(engine_id)


def get_all_engines() -> Dict[str, Type[RecognitionEngine]]:
    """Get all registered engines (available or not)."""
    return dict(_engine_registry)


def get_all_models() -> List[ModelInfo]:
    """Combined list of models from all available engines."""
    all_models = []
    for engine_id in get_available_engines():
        try:
            engine = create_engine(engine_id)
        except EngineUnavailable as e:
            logger.warning(str(e))
            continue
        all_models.extend(engine.get_supported_models())
    return all_models


def get_default_engine() -> str:
    """
    Get the default engine ID (first available).

    Raises:
        EngineUnavailable: If no engines are available
    """
    available = get_available_engines()
    if not available:
        raise EngineUnavailable("default", "No recognition engines available. Install faster-whisper.")

    # Prefer whisper as default
    if "whisper" in available:
        return "whisper"

    return available[0]


# Import engines to register them (lazy import to avoid dependency errors)
def _register_engines():
    """Import engine modules to register them."""
    try:
        from . import whisper_engine  # noqa: F401
    except ImportError as e:
        logger.debug(f"Whisper engine not registered: {e}")


# Register engines on module load
_register_engines()
