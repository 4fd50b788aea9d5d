"""
Frequency analysis of the live input.

Behaves like a browser analyser node: Blackman-windowed FFT, smoothing over
successive frames, magnitudes converted to dB and scaled to bytes between
min_decibels (0) and max_decibels (255).
"""

import numpy as np

VALID_FFT_SIZES = (32, 64, 128, 256, 512, 1024, 2048, 4096, 8192, 16384, 32768)


class FrequencyAnalyser:
    """Spectral magnitudes for the newest fft_size samples."""

    def __init__(self, fft_size: int = 2048, smoothing_time_constant: float = 0.8,
                 min_decibels: float = -100.0, max_decibels: float = -30.0):
        if fft_size not in VALID_FFT_SIZES:
            raise ValueError(f"fft_size must be a power of two in {VALID_FFT_SIZES}, got {fft_size}")
        if not 0.0 <= smoothing_time_constant <= 1.0:
            raise ValueError("smoothing_time_constant must be within [0, 1]")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be lower than max_decibels")

        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self._window = np.blackman(fft_size).astype(np.float32)
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)
        self._closed = False

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    @property
    def closed(self) -> bool:
        return self._closed

    def get_float_frequency_data(self, samples: np.ndarray) -> np.ndarray:
        """Smoothed magnitude per bin, in dB."""
        if self._closed:
            raise RuntimeError("Analyser is closed")

        samples = np.asarray(samples, dtype=np.float32)
        if len(samples) != self.fft_size:
            raise ValueError(f"Expected {self.fft_size} samples, got {len(samples)}")

        spectrum = np.fft.rfft(samples * self._window)[:self.frequency_bin_count]
        magnitudes = np.abs(spectrum) / self.fft_size

        tau = self.smoothing_time_constant
        self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitudes

        with np.errstate(divide='ignore'):
            return 20.0 * np.log10(self._smoothed)

    def get_byte_frequency_data(self, samples: np.ndarray) -> np.ndarray:
        """Smoothed magnitude per bin scaled to 0-255."""
        decibels = self.get_float_frequency_data(samples)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.floor(scale * (decibels - self.min_decibels))
        # -inf (silence) maps below zero and is clipped
        return np.clip(np.nan_to_num(scaled, nan=0.0, neginf=0.0), 0, 255).astype(np.uint8)

    def close(self) -> None:
        self._closed = True
