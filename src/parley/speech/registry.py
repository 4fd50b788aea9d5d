"""
Participant bookkeeping.

Tracks who is in the session for display purposes only. Transcripts are
always attributed to the session's own participant label, never looked up here.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from ..logger import get_logger

logger = get_logger(__name__)

UNKNOWN_PARTICIPANT = "Unknown"


@dataclass(frozen=True)
class Participant:
    """A session participant."""
    id: str
    display_name: str


class ParticipantRegistry:
    """Mapping of participant id to display name (last write wins)."""

    def __init__(self):
        self._names: Dict[str, str] = {}

    def add(self, participant_id: str, display_name: str) -> None:
        """Insert or overwrite a participant."""
        self._names[participant_id] = display_name
        logger.info(f"Added user to transcription: {display_name} ({participant_id})")

    def remove(self, participant_id: str) -> None:
        """Remove a participant; unknown ids are ignored."""
        display_name = self._names.pop(participant_id, None)
        if display_name is not None:
            logger.info(f"Removed user from transcription: {display_name} ({participant_id})")

    def get(self, participant_id: str, default: Optional[str] = None) -> str:
        """Display name for an id, or the fallback ("Unknown")."""
        fallback = UNKNOWN_PARTICIPANT if default is None else default
        return self._names.get(participant_id, fallback)

    def participants(self) -> Tuple[Participant, ...]:
        return tuple(Participant(pid, name) for pid, name in self._names.items())

    def __contains__(self, participant_id) -> bool:
        return participant_id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[Participant]:
        return iter(self.participants())
