"""
Application root.

ParleyApp owns one of each component and wires them from configuration.
The surrounding session layer calls join()/leave() and reports users
joining and leaving; a UI subscribes to the exposed event channels.
"""

import asyncio
from typing import Callable, Optional

from .audio.device import AudioConstraints, AudioDevice, SoundDeviceInput
from .audio.monitor import AudioActivityMonitor
from .engines.base import RecognitionEngine
from .engines.factory import create_engine
from .errors import AudioDeviceError
from .events import EventChannel
from .logger import get_logger, log_exception
from .speech.classifier import PatternClassifier
from .speech.ledger import TranscriptLedger
from .speech.registry import UNKNOWN_PARTICIPANT, ParticipantRegistry
from .speech.session import SpeechSession
from .utils import ConfigManager

logger = get_logger(__name__)


def _option(section: dict, key: str, default):
    """A config value, or default when it is unset."""
    value = section.get(key)
    return default if value is None else value


def engine_factory_from_config(config: ConfigManager) -> Callable[[], RecognitionEngine]:
    """Build the engine factory described by the 'recognition' section."""
    options = config.get_config_section('recognition')

    def factory() -> RecognitionEngine:
        return create_engine(
            _option(options, 'engine', "whisper"),
            model_name=_option(options, 'model', "base.en"),
            device=_option(options, 'device', "auto"),
            compute_type=_option(options, 'compute_type', "int8"),
            sample_rate=_option(options, 'sample_rate', 16000),
            window_seconds=_option(options, 'window_seconds', 60.0),
            chunk_seconds=_option(options, 'chunk_seconds', 3.0),
            silence_seconds=_option(options, 'silence_seconds', 0.8),
        )

    return factory


class ParleyApp:
    """Composition root for one participant's speech pipeline."""

    def __init__(self, config: Optional[ConfigManager] = None,
                 engine_factory: Optional[Callable[[], RecognitionEngine]] = None,
                 audio_device: Optional[AudioDevice] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.config = config or ConfigManager()
        recognition = self.config.get_config_section('recognition')
        audio = self.config.get_config_section('audio')
        transcript = self.config.get_config_section('transcript')

        self.registry = ParticipantRegistry()
        self.ledger = TranscriptLedger(nominal_confidence=_option(transcript, 'nominal_confidence', 1.0))
        self.classifier = PatternClassifier()
        self.session = SpeechSession(
            ledger=self.ledger,
            classifier=self.classifier,
            engine_factory=engine_factory or engine_factory_from_config(self.config),
            locale=_option(recognition, 'locale', "en-US"),
            max_alternatives=_option(recognition, 'max_alternatives', 1),
            restart_delay=_option(recognition, 'restart_delay_ms', 100) / 1000.0,
            loop=loop,
        )
        self.monitor = AudioActivityMonitor(
            device=audio_device or SoundDeviceInput(),
            fft_size=_option(audio, 'fft_size', 2048),
            speaking_threshold=_option(audio, 'speaking_threshold', 30.0),
            tick_interval=_option(audio, 'tick_interval', 1 / 60),
            smoothing_time_constant=_option(audio, 'smoothing_time_constant', 0.8),
            min_decibels=_option(audio, 'min_decibels', -100.0),
            max_decibels=_option(audio, 'max_decibels', -30.0),
            constraints=AudioConstraints(
                sample_rate=_option(audio, 'sample_rate', 48000),
                block_size=_option(audio, 'block_size', 1024),
                device=audio.get('device'),
            ),
            loop=loop,
        )

        self.on_user_added = EventChannel("on_user_added")
        self.on_user_removed = EventChannel("on_user_removed")
        self.on_audio_error = EventChannel("on_audio_error")

        self.user_name: Optional[str] = None
        self.joined = False

    def join(self, user_name: str) -> None:
        """
        Start transcription and activity monitoring for the local user.

        Raises:
            EngineUnavailable: If speech recognition is not available
        """
        self.session.start(user_name)
        self.user_name = user_name
        self.joined = True

        try:
            self.monitor.start()
        except AudioDeviceError as e:
            # Transcription keeps running without the level meter
            logger.error(f"Audio monitoring unavailable: {e}")
            self.on_audio_error.emit(e)

    def leave(self) -> None:
        """Stop transcription and release the microphone."""
        try:
            self.session.stop()
        except Exception as e:
            log_exception(e, "stopping transcription")

        try:
            self.monitor.stop()
        except Exception as e:
            log_exception(e, "stopping audio capture")

        self.joined = False
        logger.info("Session left")

    def user_added(self, user_id: str, display_name: Optional[str] = None) -> str:
        """Record a participant joining; returns the name shown for them."""
        name = display_name or user_id or UNKNOWN_PARTICIPANT
        self.registry.add(user_id, name)
        self.on_user_added.emit(name)
        return name

    def user_removed(self, user_id: str) -> str:
        """Record a participant leaving; returns the name shown for them."""
        name = self.registry.get(user_id, default=user_id or UNKNOWN_PARTICIPANT)
        self.registry.remove(user_id)
        self.on_user_removed.emit(name)
        return name
