"""
Speaking-activity monitor.

Samples the microphone's frequency spectrum once per display refresh and
reports the mean bin level whenever it crosses the speaking threshold.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import AudioDeviceError
from ..events import EventChannel
from ..logger import get_logger, log_exception
from .analyser import FrequencyAnalyser
from .device import AudioConstraints, AudioDevice, AudioStream

logger = get_logger(__name__)

DEFAULT_FFT_SIZE = 2048
DEFAULT_SPEAKING_THRESHOLD = 30.0
DEFAULT_TICK_INTERVAL = 1 / 60


@dataclass(frozen=True)
class AudioLevelSample:
    """One monitoring tick."""
    amplitude: float   # Mean bin magnitude, 0-255
    is_speaking: bool


class AudioActivityMonitor:
    """
    Owns one microphone stream and one analyser.

    The sampling loop is a timer re-armed after every tick. Each tick checks
    `capturing` before touching the stream, and stop() cancels the armed
    timer, so no level event fires once stop() has returned.

    Events:
        on_level(amplitude): the user is speaking at this level
        on_sample(sample): every tick, speaking or not
    """

    def __init__(self, device: AudioDevice,
                 fft_size: int = DEFAULT_FFT_SIZE,
                 speaking_threshold: float = DEFAULT_SPEAKING_THRESHOLD,
                 tick_interval: float = DEFAULT_TICK_INTERVAL,
                 smoothing_time_constant: float = 0.8,
                 min_decibels: float = -100.0,
                 max_decibels: float = -30.0,
                 constraints: Optional[AudioConstraints] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.device = device
        self.fft_size = fft_size
        self.speaking_threshold = speaking_threshold
        self.tick_interval = tick_interval
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self.constraints = constraints or AudioConstraints()

        self.on_level = EventChannel("on_level")
        self.on_sample = EventChannel("on_sample")

        self._loop = loop
        self._stream: Optional[AudioStream] = None
        self._analyser: Optional[FrequencyAnalyser] = None
        self._tick_handle: Optional[asyncio.Handle] = None
        self.capturing = False

    @property
    def stream(self) -> Optional[AudioStream]:
        return self._stream

    def start(self) -> None:
        """
        Acquire the microphone and begin sampling.

        Raises:
            AudioDeviceError: If the microphone cannot be acquired
        """
        if self.capturing:
            return

        loop = self._loop or asyncio.get_running_loop()
        # Validate analyser settings before touching the device
        analyser = FrequencyAnalyser(
            fft_size=self.fft_size,
            smoothing_time_constant=self.smoothing_time_constant,
            min_decibels=self.min_decibels,
            max_decibels=self.max_decibels,
        )

        try:
            stream = self.device.acquire(self.constraints)
        except AudioDeviceError:
            logger.error("[Audio] Error starting audio capture", exc_info=True)
            raise
        except Exception as e:
            logger.error("[Audio] Error starting audio capture", exc_info=True)
            raise AudioDeviceError(f"Could not acquire microphone: {e}") from e

        self._stream = stream
        self._analyser = analyser
        self.capturing = True
        self._tick_handle = loop.call_soon(self._tick)
        logger.info("[Audio] Audio capture started")

    def sample(self) -> AudioLevelSample:
        """Read the current spectrum and classify it."""
        bins = self._analyser.get_byte_frequency_data(self._stream.read(self.fft_size))
        amplitude = float(np.mean(bins))
        return AudioLevelSample(amplitude=amplitude, is_speaking=amplitude > self.speaking_threshold)

    def _tick(self) -> None:
        self._tick_handle = None
        if not self.capturing:
            return

        try:
            sample = self.sample()
        except Exception as e:
            log_exception(e, "sampling audio level")
            self.stop()
            return

        self.on_sample.emit(sample)
        # A listener may have called stop()
        if sample.is_speaking and self.capturing:
            self.on_level.emit(sample.amplitude)

        # A listener may have called stop()
        if self.capturing:
            loop = self._loop or asyncio.get_running_loop()
            self._tick_handle = loop.call_later(self.tick_interval, self._tick)

    def stop(self) -> None:
        """Stop sampling and release the microphone."""
        was_capturing = self.capturing
        self.capturing = False

        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

        if self._stream is not None:
            try:
                self._stream.stop()
            finally:
                self._stream = None

        if self._analyser is not None:
            self._analyser.close()
            self._analyser = None

        if was_capturing:
            logger.info("[Audio] Audio capture stopped")
