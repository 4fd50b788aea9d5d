"""
Tests for EventChannel.
"""

from parley.events import EventChannel


class TestEventChannel:
    """Tests for subscribe/unsubscribe/emit."""

    def test_multiple_listeners_in_order(self):
        calls = []
        channel = EventChannel("on_test")
        channel.subscribe(lambda value: calls.append(("a", value)))
        channel.subscribe(lambda value: calls.append(("b", value)))
        channel.emit(1)
        assert calls == [("a", 1), ("b", 1)]

    def test_unsubscribe_handle(self):
        calls = []
        channel = EventChannel("on_test")
        unsubscribe = channel.subscribe(calls.append)
        unsubscribe()
        channel.emit("ignored")
        assert calls == []
        assert len(channel) == 0

    def test_unsubscribe_unknown(self):
        assert EventChannel("on_test").unsubscribe(print) is False

    def test_listener_error_is_contained(self):
        """A raising listener is logged; the others still run."""
        calls = []
        channel = EventChannel("on_test")

        def broken(value):
            raise RuntimeError("boom")

        channel.subscribe(broken)
        channel.subscribe(calls.append)
        channel.emit("x")
        assert calls == ["x"]

    def test_unsubscribe_during_emit(self):
        calls = []
        channel = EventChannel("on_test")

        def once(value):
            calls.append(value)
            channel.unsubscribe(once)

        channel.subscribe(once)
        channel.emit(1)
        channel.emit(2)
        assert calls == [1]
