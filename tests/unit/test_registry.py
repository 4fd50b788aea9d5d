"""
Tests for participant bookkeeping.
"""

from parley.speech.registry import Participant, ParticipantRegistry


class TestParticipantRegistry:
    """Tests for ParticipantRegistry."""

    def test_add_and_get(self):
        registry = ParticipantRegistry()
        registry.add("u1", "Alice")
        assert registry.get("u1") == "Alice"
        assert "u1" in registry
        assert len(registry) == 1

    def test_add_overwrites(self):
        """A repeated id replaces the display name."""
        registry = ParticipantRegistry()
        registry.add("u1", "Alice")
        registry.add("u1", "Alicia")
        assert registry.get("u1") == "Alicia"
        assert len(registry) == 1

    def test_remove(self):
        registry = ParticipantRegistry()
        registry.add("u1", "Alice")
        registry.remove("u1")
        assert "u1" not in registry
        assert registry.get("u1") == "Unknown"

    def test_remove_unknown_is_noop(self):
        """Removing an id that was never added changes nothing."""
        registry = ParticipantRegistry()
        registry.add("u1", "Alice")
        registry.remove("nobody")
        assert len(registry) == 1

    def test_get_fallback(self):
        registry = ParticipantRegistry()
        assert registry.get("missing") == "Unknown"
        assert registry.get("missing", default="Guest") == "Guest"

    def test_participants(self):
        registry = ParticipantRegistry()
        registry.add("u1", "Alice")
        registry.add("u2", "Bob")
        assert registry.participants() == (Participant("u1", "Alice"), Participant("u2", "Bob"))
        assert list(registry) == list(registry.participants())
