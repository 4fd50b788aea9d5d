"""
Base classes for recognition engines.

A recognition engine listens continuously and reports incremental results
the way a browser speech recognizer does: a start event, result batches
(interim and final segments), errors and an end event. Backends deliver
every event on the event loop that started them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple


@dataclass(frozen=True)
class RecognitionSegment:
    """One recognized stretch of speech (top alternative only)."""
    text: str
    is_final: bool = False
    confidence: float = 1.0


@dataclass(frozen=True)
class RecognitionBatch:
    """
    Results delivered by one result event.

    segments holds every result of the current listening window; entries from
    result_index onwards are new or changed since the previous batch.
    """
    segments: Tuple[RecognitionSegment, ...] = ()
    result_index: int = 0

    def changed(self) -> Tuple[RecognitionSegment, ...]:
        return self.segments[self.result_index:]


@dataclass
class ModelInfo:
    """Information about a recognition model."""
    id: str
    name: str
    engine: str
    size_mb: int
    description: str
    languages: List[str] = field(default_factory=lambda: ["en"])


@dataclass
class EngineHandlers:
    """Listeners an engine reports to (set through RecognitionEngine.bind)."""
    on_start: Optional[Callable[[], None]] = None
    on_result: Optional[Callable[[RecognitionBatch], None]] = None
    on_error: Optional[Callable[[str, Optional[str]], None]] = None
    on_end: Optional[Callable[[], None]] = None


class RecognitionEngine(ABC):
    """
    Abstract base class for recognition engines.

    Subclasses implement start() and stop() and report back through the
    _dispatch_* helpers, always on the owning event loop.
    """

    # Class attributes to be overridden by subclasses
    ENGINE_ID: str = "base"
    ENGINE_NAME: str = "Base Engine"

    def __init__(self):
        self.continuous = True
        self.interim_results = True
        self.locale = "en-US"
        self.max_alternatives = 1
        self._handlers = EngineHandlers()
        self._listening = False

    @property
    def is_listening(self) -> bool:
        """True between the start event and the end event."""
        return self._listening

    @property
    def language(self) -> str:
        """Primary language subtag of the locale ("en-US" -> "en")."""
        return self.locale.split("-")[0].lower()

    def configure(self, continuous: bool = True, interim_results: bool = True,
                  locale: str = "en-US", max_alternatives: int = 1) -> None:
        """Set recognition options; takes effect on the next start()."""
        if max_alternatives < 1:
            raise ValueError("max_alternatives must be at least 1")
        self.continuous = continuous
        self.interim_results = interim_results
        self.locale = locale
        self.max_alternatives = max_alternatives

    def bind(self, on_start=None, on_result=None, on_error=None, on_end=None) -> None:
        """Attach the listener for each engine event (replaces previous ones)."""
        self._handlers = EngineHandlers(
            on_start=on_start,
            on_result=on_result,
            on_error=on_error,
            on_end=on_end,
        )

    @abstractmethod
    def start(self) -> None:
        """
        Begin listening.

        Raises:
            RuntimeError: If the engine is already listening
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop listening, finalize pending speech, then end. No-op when idle."""
        pass

    def abort(self) -> None:
        """Stop listening and discard pending speech."""
        self.stop()

    @classmethod
    def is_available(cls) -> bool:
        """
        Check if this engine is available (dependencies installed).

        Override in subclasses to check for specific dependencies.
        """
        return True

    @classmethod
    def get_install_hint(cls) -> str:
        """Installation instructions for this engine."""
        return "Install required dependencies."

    def get_supported_models(self) -> List[ModelInfo]:
        return []

    # --- event delivery, called on the event loop ---

    def _dispatch_start(self) -> None:
        self._listening = True
        if self._handlers.on_start:
            self._handlers.on_start()

    def _dispatch_result(self, batch: RecognitionBatch) -> None:
        if self._handlers.on_result:
            self._handlers.on_result(batch)

    def _dispatch_error(self, kind: str, message: Optional[str] = None) -> None:
        if self._handlers.on_error:
            self._handlers.on_error(kind, message)

    def _dispatch_end(self) -> None:
        self._listening = False
        if self._handlers.on_end:
            self._handlers.on_end()
