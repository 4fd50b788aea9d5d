"""
Microphone acquisition.

AudioDevice hands out AudioStreams: a live input with one track per capture
stream and a ring buffer holding the most recent samples. SoundDeviceInput
is the sounddevice (PortAudio) implementation.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from ..errors import AudioDeviceError
from ..logger import get_logger

logger = get_logger(__name__)

LIVE = "live"
ENDED = "ended"


@dataclass(frozen=True)
class AudioConstraints:
    """What the caller asks of the input device."""
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True
    sample_rate: int = 48000
    channels: int = 1
    block_size: int = 1024
    device: Optional[int] = None


class AudioTrack:
    """One capture source inside a stream."""

    def __init__(self, label: str, on_stop: Optional[Callable[[], None]] = None):
        self.kind = "audio"
        self.label = label
        self.ready_state = LIVE
        self._on_stop = on_stop

    def stop(self) -> None:
        """Stop and release the source. Safe to call more than once."""
        if self.ready_state == ENDED:
            return
        self.ready_state = ENDED
        if self._on_stop:
            self._on_stop()


class AudioStream:
    """
    An acquired input stream.

    Capture callbacks call write() from the audio thread; read() returns the
    most recent samples for analysis on the event loop.
    """

    def __init__(self, sample_rate: int, constraints: AudioConstraints,
                 buffer_size: int = 8192):
        self.sample_rate = sample_rate
        self.constraints = constraints
        self.tracks: List[AudioTrack] = []
        self._buffer = np.zeros(buffer_size, dtype=np.float32)
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return any(track.ready_state == LIVE for track in self.tracks)

    def write(self, samples: np.ndarray) -> None:
        """Append mono float32 samples, keeping only the newest buffer_size."""
        samples = np.asarray(samples, dtype=np.float32).ravel()
        size = len(self._buffer)
        with self._lock:
            if len(samples) >= size:
                self._buffer[:] = samples[-size:]
            else:
                self._buffer = np.roll(self._buffer, -len(samples))
                self._buffer[-len(samples):] = samples

    def read(self, count: int) -> np.ndarray:
        """The newest `count` samples (zero-padded on the left if needed)."""
        with self._lock:
            if count <= len(self._buffer):
                return self._buffer[-count:].copy()
            padded = np.zeros(count, dtype=np.float32)
            padded[-len(self._buffer):] = self._buffer
            return padded

    def stop(self) -> None:
        """Stop every track."""
        for track in self.tracks:
            track.stop()


class AudioDevice(ABC):
    """Audio input capability."""

    @abstractmethod
    def acquire(self, constraints: AudioConstraints) -> AudioStream:
        """
        Open an input stream.

        Raises:
            AudioDeviceError: If access is denied or no input device exists
        """
        pass


class SoundDeviceInput(AudioDevice):
    """Microphone input through sounddevice (PortAudio)."""

    def __init__(self, buffer_size: int = 8192):
        self.buffer_size = buffer_size

    def _find_input(self, device: Optional[int]) -> dict:
        import sounddevice as sd

        try:
            info = sd.query_devices(device, kind='input') if device is None else sd.query_devices(device)
        except (ValueError, sd.PortAudioError) as e:
            raise AudioDeviceError(f"No audio input device available: {e}") from e

        if int(info.get('max_input_channels', 0)) < 1:
            raise AudioDeviceError(f"Device '{info.get('name')}' has no input channels")
        return dict(info)

    def acquire(self, constraints: AudioConstraints) -> AudioStream:
        try:
            import sounddevice as sd
        except OSError as e:
            raise AudioDeviceError(f"PortAudio library not found: {e}") from e

        info = self._find_input(constraints.device)
        logger.debug(f"[Audio] Using input: {info['name']}")

        stream = AudioStream(constraints.sample_rate, constraints, buffer_size=self.buffer_size)

        def audio_callback(indata, frames, time_info, status):
            if status:
                logger.debug(f"[Audio] Callback status: {status}")
            # Downmix to mono
            stream.write(indata.mean(axis=1) if indata.shape[1] > 1 else indata[:, 0])

        try:
            sd_stream = sd.InputStream(
                device=constraints.device,
                samplerate=constraints.sample_rate,
                channels=constraints.channels,
                dtype='float32',
                blocksize=constraints.block_size,
                callback=audio_callback,
            )
            sd_stream.start()
        except sd.PortAudioError as e:
            raise AudioDeviceError(f"Could not open audio input: {e}") from e

        def release():
            try:
                sd_stream.stop()
            finally:
                sd_stream.close()

        stream.tracks.append(AudioTrack(label=info['name'], on_stop=release))
        logger.info(f"[Audio] Microphone stream started ({constraints.sample_rate}Hz, {constraints.channels}ch)")
        return stream
