"""
In-memory transcript ledger.

The ledger is the only writer of Transcript objects: it assigns ids, stamps
times and keeps the finalized utterances in arrival order.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional, Tuple

from ..errors import EmptyTranscript

DEFAULT_CONFIDENCE = 1.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Transcript:
    """A single finalized utterance."""
    id: int
    participant: str
    text: str
    timestamp: datetime
    confidence: float = DEFAULT_CONFIDENCE

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "participant": self.participant,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
            "confidence": self.confidence,
        }


class TranscriptLedger:
    """Append-only ordered log of transcripts."""

    def __init__(self, nominal_confidence: float = DEFAULT_CONFIDENCE,
                 clock: Optional[Callable[[], datetime]] = None):
        if not 0.0 <= nominal_confidence <= 1.0:
            raise ValueError(f"nominal_confidence must be within [0, 1], got {nominal_confidence}")
        self.nominal_confidence = float(nominal_confidence)
        self._clock = clock or _utc_now
        self._entries: List[Transcript] = []
        self._last_id = 0

    def append(self, participant: str, text: str) -> Transcript:
        """
        Record a finalized utterance.

        Args:
            participant: Who the text is attributed to
            text: Finalized text (stored trimmed)

        Returns:
            The new Transcript

        Raises:
            EmptyTranscript: If the text is empty after trimming (no id is used)
        """
        text = (text or "").strip()
        if not text:
            raise EmptyTranscript("Transcript text is empty")

        self._last_id += 1
        transcript = Transcript(
            id=self._last_id,
            participant=participant,
            text=text,
            timestamp=self._clock(),
            confidence=self.nominal_confidence,
        )
        self._entries.append(transcript)
        return transcript

    def all(self) -> Tuple[Transcript, ...]:
        """All transcripts in arrival order (read-only snapshot)."""
        return tuple(self._entries)

    def latest(self) -> Optional[Transcript]:
        return self._entries[-1] if self._entries else None

    def by_participant(self, participant: str) -> Tuple[Transcript, ...]:
        return tuple(t for t in self._entries if t.participant == participant)

    def full_text(self) -> str:
        """Get all text without formatting, one "speaker: text" line each."""
        return "\n".join(f"{t.participant}: {t.text}" for t in self._entries)

    def to_dicts(self) -> List[dict]:
        return [t.to_dict() for t in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transcript]:
        return iter(tuple(self._entries))
