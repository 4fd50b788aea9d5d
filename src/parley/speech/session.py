"""
Speech session: lifecycle of one continuous recognition engine.

The session starts the engine, restarts it whenever it ends on its own while
the caller still wants to listen, and turns raw result batches into domain
events: interim text goes straight to listeners, final text is recorded in
the ledger, classified and then delivered.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

from ..engines.base import RecognitionBatch, RecognitionEngine
from ..errors import NO_SPEECH, EmptyTranscript, EngineUnavailable, RecognitionError
from ..events import EventChannel
from ..logger import get_logger, log_error
from .classifier import PatternClassifier
from .ledger import TranscriptLedger

logger = get_logger(__name__)

DEFAULT_RESTART_DELAY = 0.1  # seconds

# Error kinds that are not worth a warning in the log
_QUIET_ERRORS = {"aborted"}


class SessionState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    ENDING = "ending"
    RESTARTING = "restarting"


def _default_engine_factory() -> RecognitionEngine:
    from ..engines.factory import create_engine, get_default_engine
    return create_engine(get_default_engine())


class SpeechSession:
    """
    Orchestrates one recognition engine for the local microphone.

    Events:
        on_interim(text): provisional text, never recorded
        on_final(transcript, classification): a finalized utterance
        on_error(RecognitionError): a non-fatal engine error
        on_state(SessionState): every state change

    The continuation flag records whether the caller still wants to listen.
    While it is set, every engine end event arms exactly one restart after
    restart_delay seconds. stop() clears the flag and cancels an armed restart.
    """

    def __init__(self, ledger: TranscriptLedger,
                 classifier: Optional[PatternClassifier] = None,
                 engine_factory: Optional[Callable[[], RecognitionEngine]] = None,
                 locale: str = "en-US",
                 max_alternatives: int = 1,
                 restart_delay: float = DEFAULT_RESTART_DELAY,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.ledger = ledger
        self.classifier = classifier or PatternClassifier()
        self.locale = locale
        self.max_alternatives = max_alternatives
        self.restart_delay = restart_delay

        self.on_interim = EventChannel("on_interim")
        self.on_final = EventChannel("on_final")
        self.on_error = EventChannel("on_error")
        self.on_state = EventChannel("on_state")

        self.participant_label: Optional[str] = None
        self.current_interim = ""
        self.restart_count = 0

        self._engine_factory = engine_factory or _default_engine_factory
        self._engine: Optional[RecognitionEngine] = None
        self._loop = loop
        self._state = SessionState.IDLE
        self._should_continue = False
        self._restart_handle: Optional[asyncio.TimerHandle] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def should_continue(self) -> bool:
        return self._should_continue

    @property
    def is_listening(self) -> bool:
        return self._state == SessionState.LISTENING

    @property
    def restart_pending(self) -> bool:
        return self._restart_handle is not None

    @property
    def engine(self) -> Optional[RecognitionEngine]:
        return self._engine

    # --- caller API ---

    def start(self, participant_label: str) -> None:
        """
        Start listening; every transcript is attributed to participant_label.

        Raises:
            EngineUnavailable: If no recognition engine exists
        """
        if self._engine is None:
            self._engine = self._create_engine()

        self._should_continue = True
        self.participant_label = participant_label

        if self._state in (SessionState.STARTING, SessionState.LISTENING, SessionState.RESTARTING):
            logger.debug(f"Transcription already active, now attributed to: {participant_label}")
            return

        self._set_state(SessionState.STARTING)
        try:
            self._engine.start()
        except Exception:
            self._should_continue = False
            self._set_state(SessionState.IDLE)
            logger.error("Error starting transcription", exc_info=True)
            raise

        logger.info(f"Transcription started for: {participant_label}")

    def stop(self) -> None:
        """Stop listening. No restart happens after this returns."""
        self._should_continue = False
        self._cancel_restart()

        if self._engine is not None and self._state in (SessionState.STARTING, SessionState.LISTENING):
            self._engine.stop()
        elif self._state == SessionState.RESTARTING:
            self._set_state(SessionState.IDLE)

        logger.info("Transcription stopped")

    def close(self) -> None:
        """Stop, discard pending speech and detach from the engine."""
        self.stop()
        if self._engine is not None:
            self._engine.abort()
            self._engine.bind()
            self._engine = None
        self._set_state(SessionState.IDLE)

    # --- engine wiring ---

    def _create_engine(self) -> RecognitionEngine:
        try:
            engine = self._engine_factory()
        except EngineUnavailable:
            logger.error("Speech recognition engine not available")
            raise

        if engine is None:
            raise EngineUnavailable("none", "No recognition engine in this environment.")

        engine.configure(
            continuous=True,
            interim_results=True,
            locale=self.locale,
            max_alternatives=self.max_alternatives,
        )
        engine.bind(
            on_start=self._handle_start,
            on_result=self._handle_result,
            on_error=self._handle_error,
            on_end=self._handle_end,
        )
        return engine

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        self._state = state
        self.on_state.emit(state)

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

    # --- engine events ---

    def _handle_start(self) -> None:
        logger.debug("Recognition engine started")
        if self._state == SessionState.STARTING:
            self._set_state(SessionState.LISTENING)

    def _handle_result(self, batch: RecognitionBatch) -> None:
        final_text = ""
        interim_text = ""

        for segment in batch.changed():
            if segment.is_final:
                final_text += segment.text + " "
            else:
                interim_text += segment.text

        if final_text.strip():
            self._handle_final(final_text.strip())

        if interim_text:
            self.current_interim = interim_text
            self.on_interim.emit(interim_text)

    def _handle_final(self, text: str) -> None:
        label = self.participant_label or "Unknown"
        try:
            transcript = self.ledger.append(label, text)
        except EmptyTranscript:
            return

        logger.info(f"[TRANSCRIPTION] {transcript.participant}: {transcript.text}")

        classification = self.classifier.classify(transcript.text)
        if classification.has_speech:
            logger.debug(f"[SPEECH DETECTION] Detected: {classification.type} {classification.to_dict()}")

        self.on_final.emit(transcript, classification)

    def _handle_error(self, kind: str, message: Optional[str] = None) -> None:
        if kind == NO_SPEECH:
            # Not an error, just no speech detected
            logger.debug("No speech detected")
            return

        error = RecognitionError(kind, message)
        if kind in _QUIET_ERRORS:
            logger.debug(f"Speech recognition error: {kind}")
        else:
            logger.warning(f"Speech recognition error: {kind}" + (f" ({message})" if message else ""))
        self.on_error.emit(error)

    def _handle_end(self) -> None:
        self._set_state(SessionState.ENDING)

        # Restart if it was intentionally running
        if self._should_continue:
            self._set_state(SessionState.RESTARTING)
            self._cancel_restart()
            self._restart_handle = self._get_loop().call_later(self.restart_delay, self._restart)
        else:
            self._set_state(SessionState.IDLE)

    def _restart(self) -> None:
        self._restart_handle = None
        if not self._should_continue or self._engine is None:
            self._set_state(SessionState.IDLE)
            return

        self.restart_count += 1
        self._set_state(SessionState.STARTING)
        try:
            self._engine.start()
        except Exception as e:
            log_error("Error restarting recognition", e)
            self.on_error.emit(RecognitionError("restart-failed", str(e)))
            # No end event follows a failed start; treat it as one
            self._handle_end()
