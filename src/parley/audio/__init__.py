"""
Audio Activity Monitoring

Captures the microphone and reports coarse speaking activity from its
frequency spectrum.
"""

from .analyser import FrequencyAnalyser
from .device import AudioConstraints, AudioDevice, AudioStream, AudioTrack, SoundDeviceInput
from .monitor import AudioActivityMonitor, AudioLevelSample

__all__ = [
    "AudioActivityMonitor",
    "AudioLevelSample",
    "AudioConstraints",
    "AudioDevice",
    "AudioStream",
    "AudioTrack",
    "SoundDeviceInput",
    "FrequencyAnalyser",
]
