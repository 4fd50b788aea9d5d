"""
Continuous recognition engine using faster-whisper.

Captures the default microphone with sounddevice, segments speech with
WebRTC VAD and transcribes each utterance with a Whisper model. Partial
passes over an utterance in progress are reported as interim results; the
pass after trailing silence is reported as final. Like a browser recognizer
the engine ends on its own after a bounded listening window.
"""

import asyncio
import math
import queue
import threading
import time
from typing import List, Optional

import numpy as np

from ..errors import NO_SPEECH
from ..logger import get_logger, log_error
from .base import ModelInfo, RecognitionBatch, RecognitionEngine, RecognitionSegment
from .factory import register_engine

logger = get_logger(__name__)

# WebRTC VAD accepts 10/20/30 ms frames
FRAME_DURATION_MS = 30
VAD_AGGRESSIVENESS = 2

WHISPER_MODELS = [
    ModelInfo(
        id="tiny.en",
        name="Whisper Tiny (English)",
        engine="whisper",
        size_mb=75,
        description="Fastest, lowest accuracy. Good for testing.",
    ),
    ModelInfo(
        id="base.en",
        name="Whisper Base (English)",
        engine="whisper",
        size_mb=150,
        description="Good balance of speed and accuracy for live CPU use.",
    ),
    ModelInfo(
        id="small.en",
        name="Whisper Small (English)",
        engine="whisper",
        size_mb=500,
        description="Better accuracy, still CPU-friendly.",
    ),
    ModelInfo(
        id="small",
        name="Whisper Small",
        engine="whisper",
        size_mb=500,
        description="Multilingual variant of Small.",
        languages=["multilingual"]
    ),
    ModelInfo(
        id="large-v3",
        name="Whisper Large v3",
        engine="whisper",
        size_mb=3000,
        description="Best accuracy, needs ~4GB VRAM. Too slow for live CPU use.",
        languages=["multilingual"]
    ),
]


@register_engine
class WhisperEngine(RecognitionEngine):
    """
    Recognition engine backed by faster-whisper.

    Audio capture and inference run on a worker thread; every event is
    handed back to the event loop with call_soon_threadsafe, so listeners
    see them in capture order.
    """

    ENGINE_ID = "whisper"
    ENGINE_NAME = "Whisper (faster-whisper)"

    def __init__(self, model_name: str = "base.en", device: str = "auto",
                 compute_type: str = "int8", sample_rate: int = 16000,
                 window_seconds: float = 60.0, chunk_seconds: float = 3.0,
                 silence_seconds: float = 0.8, input_device: Optional[int] = None,
                 loop=None):
        super().__init__()
        self.model_name = model_name
        self.device = device
        self.compute_type = compute_type
        self.sample_rate = sample_rate
        self.window_seconds = window_seconds
        self.chunk_seconds = chunk_seconds
        self.silence_seconds = silence_seconds
        self.input_device = input_device

        self._loop = loop
        self._model = None
        self._model_lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._discard = False
        self._results: List[RecognitionSegment] = []

    @classmethod
    def is_available(cls) -> bool:
        """Check if faster-whisper, sounddevice and webrtcvad are installed."""
        try:
            import faster_whisper  # noqa: F401
            import sounddevice  # noqa: F401
            import webrtcvad  # noqa: F401
            return True
        except (ImportError, OSError):
            # sounddevice raises OSError when the PortAudio library is missing
            return False

    @classmethod
    def get_install_hint(cls) -> str:
        return "pip install faster-whisper sounddevice webrtcvad (and the PortAudio system library)"

    def get_supported_models(self) -> List[ModelInfo]:
        return WHISPER_MODELS.copy()

    def start(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            raise RuntimeError("Recognition has already started")

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        self._stop_event.clear()
        self._discard = False
        self._results = []
        self._worker = threading.Thread(target=self._run, name="whisper-recognition", daemon=True)
        self._worker.start()

    def stop(self) -> None:
        self._stop_event.set()

    def abort(self) -> None:
        self._discard = True
        self._stop_event.set()

    # --- worker thread ---

    def _post(self, callback, *args) -> None:
        """Hand an event to the event loop."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    def _load_model(self):
        with self._model_lock:
            if self._model is not None:
                return self._model

            from faster_whisper import WhisperModel

            # CTranslate2 resolves "auto" to cuda when available
            device = self.device
            logger.info(f"[WhisperEngine] Loading model '{self.model_name}' on {device} ({self.compute_type})...")
            try:
                self._model = WhisperModel(self.model_name, device=device, compute_type=self.compute_type)
            except Exception as e:
                if device == "cpu":
                    raise
                logger.warning(f"[WhisperEngine] GPU load failed ({e}), falling back to CPU...")
                self._model = WhisperModel(self.model_name, device="cpu", compute_type="int8")
            logger.info("[WhisperEngine] Model loaded")
            return self._model

    def _run(self) -> None:
        try:
            model = self._load_model()
        except Exception as e:
            log_error("[WhisperEngine] Failed to load model", e)
            self._post(self._dispatch_error, "service-not-allowed", str(e))
            self._post(self._dispatch_end)
            return

        try:
            self._listen(model)
        except Exception as e:
            log_error("[WhisperEngine] Audio capture failed", e)
            self._post(self._dispatch_error, "audio-capture", str(e))
        finally:
            self._post(self._dispatch_end)

    def _listen(self, model) -> None:
        import sounddevice as sd
        import webrtcvad

        vad = webrtcvad.Vad(VAD_AGGRESSIVENESS)
        frame_size = int(self.sample_rate * FRAME_DURATION_MS / 1000)
        silence_frames_needed = max(1, int(self.silence_seconds * 1000 / FRAME_DURATION_MS))
        chunk_frames = max(1, int(self.chunk_seconds * 1000 / FRAME_DURATION_MS))
        frames: "queue.Queue[np.ndarray]" = queue.Queue()

        def audio_callback(indata, frame_count, time_info, status):
            if status:
                logger.debug(f"[WhisperEngine] Audio callback status: {status}")
            frames.put(indata[:, 0].copy())

        utterance: List[np.ndarray] = []
        pending = np.array([], dtype=np.int16)
        silent_frames = 0
        frames_since_partial = 0
        heard_speech = False
        started_at = time.monotonic()

        with sd.InputStream(samplerate=self.sample_rate, channels=1, dtype='int16',
                            blocksize=frame_size, device=self.input_device,
                            callback=audio_callback):
            self._post(self._dispatch_start)

            while not self._stop_event.is_set():
                if time.monotonic() - started_at >= self.window_seconds:
                    break
                try:
                    pending = np.concatenate([pending, frames.get(timeout=0.1)])
                except queue.Empty:
                    continue

                while len(pending) >= frame_size:
                    frame, pending = pending[:frame_size], pending[frame_size:]
                    is_speech = vad.is_speech(frame.tobytes(), self.sample_rate)

                    if is_speech:
                        heard_speech = True
                        silent_frames = 0
                        utterance.append(frame)
                        frames_since_partial += 1
                    elif utterance:
                        silent_frames += 1
                        utterance.append(frame)

                    if utterance and silent_frames >= silence_frames_needed:
                        self._recognize(model, utterance, is_final=True)
                        utterance = []
                        silent_frames = 0
                        frames_since_partial = 0
                    elif utterance and self.interim_results and frames_since_partial >= chunk_frames:
                        self._recognize(model, utterance, is_final=False)
                        frames_since_partial = 0

        if utterance and not self._discard:
            self._recognize(model, utterance, is_final=True)

        if not heard_speech and not self._stop_event.is_set():
            self._post(self._dispatch_error, NO_SPEECH, None)

    def _recognize(self, model, utterance: List[np.ndarray], is_final: bool) -> None:
        audio = np.concatenate(utterance).astype(np.float32) / 32768.0
        segments_iter, _info = model.transcribe(
            audio=audio,
            language=self.language,
            vad_filter=False,
            condition_on_previous_text=False,
            beam_size=max(1, self.max_alternatives),
        )

        texts = []
        logprobs = []
        for segment in segments_iter:
            texts.append(segment.text)
            logprobs.append(segment.avg_logprob)

        text = "".join(texts).strip()
        if not text:
            return

        confidence = min(1.0, math.exp(sum(logprobs) / len(logprobs))) if logprobs else 1.0
        segment = RecognitionSegment(text=text, is_final=is_final, confidence=confidence)

        # The trailing slot holds the utterance in progress until it is final
        if self._results and not self._results[-1].is_final:
            self._results[-1] = segment
        else:
            self._results.append(segment)
        batch = RecognitionBatch(segments=tuple(self._results), result_index=len(self._results) - 1)
        self._post(self._dispatch_result, batch)
