"""
Test doubles for the recognition engine and audio device.
"""

import numpy as np

from parley.audio.device import AudioConstraints, AudioDevice, AudioStream, AudioTrack
from parley.engines.base import RecognitionBatch, RecognitionEngine, RecognitionSegment
from parley.errors import AudioDeviceError


class FakeEngine(RecognitionEngine):
    """Engine driven by the test: events fire only when a test calls them."""

    ENGINE_ID = "fake"
    ENGINE_NAME = "Fake Engine"

    def __init__(self, **options):
        super().__init__()
        self.options = options
        self.start_calls = 0
        self.stop_calls = 0
        self.abort_calls = 0
        self.running = False
        self.fail_next_starts = 0

    def start(self):
        self.start_calls += 1
        if self.fail_next_starts:
            self.fail_next_starts -= 1
            raise RuntimeError("engine refused to start")
        if self.running:
            raise RuntimeError("Recognition has already started")
        self.running = True

    def stop(self):
        self.stop_calls += 1

    def abort(self):
        self.abort_calls += 1

    # --- driven by tests ---

    def emit_start(self):
        self._dispatch_start()

    def emit_result(self, *segments, result_index=0):
        batch = RecognitionBatch(
            segments=tuple(RecognitionSegment(text=text, is_final=is_final)
                           for text, is_final in segments),
            result_index=result_index,
        )
        self._dispatch_result(batch)

    def emit_error(self, kind, message=None):
        self._dispatch_error(kind, message)

    def emit_end(self):
        self.running = False
        self._dispatch_end()


class FakeAudioDevice(AudioDevice):
    """Device producing a fixed noise signal, or refusing access."""

    def __init__(self, level=0.5, deny=False, error=None, seed=0):
        self.level = level
        self.deny = deny
        self.error = error
        self.seed = seed
        self.acquire_calls = 0
        self.last_constraints = None
        self.streams = []

    def acquire(self, constraints: AudioConstraints) -> AudioStream:
        self.acquire_calls += 1
        self.last_constraints = constraints
        if self.deny:
            raise AudioDeviceError("Permission denied")
        if self.error is not None:
            raise self.error

        stream = AudioStream(constraints.sample_rate, constraints)
        rng = np.random.default_rng(self.seed)
        stream.write(self.level * rng.standard_normal(8192).astype(np.float32))
        stream.tracks.append(AudioTrack(label="Fake Microphone"))
        self.streams.append(stream)
        return stream
