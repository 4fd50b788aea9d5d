"""
Tests for the speech session lifecycle and result routing.
"""

import pytest

from parley.errors import EngineUnavailable, RecognitionError
from parley.speech.classifier import classify
from parley.speech.ledger import TranscriptLedger
from parley.speech.session import SessionState, SpeechSession

from fakes import FakeEngine


@pytest.fixture
def session(loop, fake_engine):
    return SpeechSession(
        ledger=TranscriptLedger(),
        engine_factory=lambda: fake_engine,
        restart_delay=0.01,
        loop=loop,
    )


@pytest.fixture
def finals(session):
    received = []
    session.on_final.subscribe(lambda transcript, classification: received.append((transcript, classification)))
    return received


@pytest.fixture
def interims(session):
    received = []
    session.on_interim.subscribe(received.append)
    return received


@pytest.fixture
def errors(session):
    received = []
    session.on_error.subscribe(received.append)
    return received


def _listening(session, engine, label="Alice"):
    session.start(label)
    engine.emit_start()


class TestStart:
    """Tests for SpeechSession.start."""

    def test_no_engine_raises(self, loop):
        """A factory that cannot provide an engine fails start()."""
        def factory():
            raise EngineUnavailable("whisper", "pip install faster-whisper")

        session = SpeechSession(TranscriptLedger(), engine_factory=factory, loop=loop)
        with pytest.raises(EngineUnavailable):
            session.start("Alice")
        assert session.state == SessionState.IDLE
        assert not session.should_continue

    def test_factory_returning_none_raises(self, loop):
        session = SpeechSession(TranscriptLedger(), engine_factory=lambda: None, loop=loop)
        with pytest.raises(EngineUnavailable):
            session.start("Alice")

    def test_engine_is_configured(self, loop, fake_engine):
        """The engine is configured for continuous interim recognition."""
        session = SpeechSession(TranscriptLedger(), engine_factory=lambda: fake_engine,
                                locale="en-GB", loop=loop)
        session.start("Alice")
        assert fake_engine.continuous is True
        assert fake_engine.interim_results is True
        assert fake_engine.locale == "en-GB"
        assert fake_engine.max_alternatives == 1

    def test_states(self, session, fake_engine):
        """Idle -> Starting on start(), Listening on the engine start event."""
        states = []
        session.on_state.subscribe(states.append)

        assert session.state == SessionState.IDLE
        session.start("Alice")
        assert session.state == SessionState.STARTING
        assert session.should_continue
        fake_engine.emit_start()
        assert session.state == SessionState.LISTENING
        assert states == [SessionState.STARTING, SessionState.LISTENING]

    def test_engine_created_once(self, loop):
        created = []

        def factory():
            created.append(FakeEngine())
            return created[-1]

        session = SpeechSession(TranscriptLedger(), engine_factory=factory, restart_delay=0.01, loop=loop)
        session.start("Alice")
        created[0].emit_start()
        session.stop()
        created[0].emit_end()
        session.start("Alice")
        assert len(created) == 1
        assert created[0].start_calls == 2

    def test_start_while_active_updates_label(self, session, fake_engine, finals):
        """A second start() keeps the engine running and changes attribution."""
        _listening(session, fake_engine, "Alice")
        session.start("Alicia")
        assert fake_engine.start_calls == 1
        fake_engine.emit_result(("Hello", True))
        assert finals[0][0].participant == "Alicia"

    def test_engine_start_failure_propagates(self, session, fake_engine):
        fake_engine.fail_next_starts = 1
        with pytest.raises(RuntimeError):
            session.start("Alice")
        assert session.state == SessionState.IDLE
        assert not session.should_continue


class TestResults:
    """Tests for splitting result batches into interim and final text."""

    def test_final_segments_accumulate(self, session, fake_engine, finals, interims):
        """Final segments join with a separator; interim text is delivered verbatim."""
        _listening(session, fake_engine)
        fake_engine.emit_result(("Hello", True), ("world", True), ("how are", False), (" you", False))

        assert len(finals) == 1
        transcript, classification = finals[0]
        assert transcript.text == "Hello world"
        assert transcript.participant == "Alice"
        assert interims == ["how are you"]
        assert session.current_interim == "how are you"

    def test_result_index_skips_old_segments(self, session, fake_engine, finals):
        """Only segments from result_index onwards are new."""
        _listening(session, fake_engine)
        fake_engine.emit_result(("old news", True), ("fresh news", True), result_index=1)
        assert [t.text for t, _ in finals] == ["fresh news"]

    def test_interim_never_recorded(self, session, fake_engine, finals, interims):
        """Interim text is neither stored nor classified."""
        _listening(session, fake_engine)
        fake_engine.emit_result(("what time", False))
        assert interims == ["what time"]
        assert finals == []
        assert len(session.ledger) == 0

    def test_whitespace_final_dropped(self, session, fake_engine, finals):
        """A final result that trims to nothing produces no transcript."""
        _listening(session, fake_engine)
        fake_engine.emit_result(("   ", True))
        assert finals == []
        assert len(session.ledger) == 0

    def test_final_is_classified(self, session, fake_engine, finals):
        """Every final transcript arrives with its classification."""
        _listening(session, fake_engine)
        fake_engine.emit_result(("Please start the demo", True))
        transcript, classification = finals[0]
        assert classification == classify("Please start the demo")
        assert classification.type == "command"

    def test_final_before_interim(self, session, fake_engine):
        """Within a batch the final is delivered before the interim."""
        order = []
        session.on_final.subscribe(lambda t, c: order.append("final"))
        session.on_interim.subscribe(lambda text: order.append("interim"))
        _listening(session, fake_engine)
        fake_engine.emit_result(("done", True), ("next", False))
        assert order == ["final", "interim"]

    def test_delivery_order_matches_ids(self, session, fake_engine, finals):
        """Finals arrive in batch order with increasing ids."""
        _listening(session, fake_engine)
        for text in ["one", "two", "three"]:
            fake_engine.emit_result((text, True))
        assert [t.text for t, _ in finals] == ["one", "two", "three"]
        assert [t.id for t, _ in finals] == [1, 2, 3]

    def test_failing_listener_does_not_unwind(self, session, fake_engine, finals):
        """A listener that raises does not stop other listeners or the session."""
        def broken(transcript, classification):
            raise ValueError("render failed")

        session.on_final.subscribe(broken)
        _listening(session, fake_engine)
        fake_engine.emit_result(("first", True))
        fake_engine.emit_result(("second", True))
        assert [t.text for t, _ in finals] == ["first", "second"]
        assert session.state == SessionState.LISTENING


class TestErrors:
    """Tests for engine error handling."""

    def test_no_speech_is_swallowed(self, session, fake_engine, errors):
        _listening(session, fake_engine)
        fake_engine.emit_error("no-speech")
        assert errors == []
        assert session.state == SessionState.LISTENING

    def test_other_errors_forwarded(self, session, fake_engine, errors):
        """Errors reach on_error but do not stop the session."""
        _listening(session, fake_engine)
        fake_engine.emit_error("network", "connection lost")
        assert len(errors) == 1
        assert isinstance(errors[0], RecognitionError)
        assert errors[0].kind == "network"
        assert session.state == SessionState.LISTENING
        assert session.should_continue
        assert not session.restart_pending


class TestRestart:
    """Tests for the restart policy."""

    def test_end_while_continuing_restarts_once(self, session, fake_engine, run_for):
        """An engine end without stop() arms exactly one restart."""
        _listening(session, fake_engine)
        fake_engine.emit_end()
        assert session.state == SessionState.RESTARTING
        assert session.restart_pending
        assert fake_engine.start_calls == 1

        run_for(0.05)
        assert fake_engine.start_calls == 2
        assert session.restart_count == 1
        assert session.state == SessionState.STARTING
        fake_engine.emit_start()
        assert session.state == SessionState.LISTENING

    def test_restart_is_delayed(self, loop, fake_engine, run_for):
        session = SpeechSession(TranscriptLedger(), engine_factory=lambda: fake_engine,
                                restart_delay=0.2, loop=loop)
        _listening(session, fake_engine)
        fake_engine.emit_end()
        run_for(0.05)
        assert fake_engine.start_calls == 1
        run_for(0.25)
        assert fake_engine.start_calls == 2

    def test_restarts_indefinitely(self, session, fake_engine, run_for):
        """No retry limit while the caller keeps listening."""
        _listening(session, fake_engine)
        for _ in range(5):
            fake_engine.emit_end()
            run_for(0.03)
            fake_engine.emit_start()
        assert session.restart_count == 5
        assert session.state == SessionState.LISTENING

    def test_stop_before_end_means_no_restart(self, session, fake_engine, run_for):
        """stop() then end settles in Idle with zero restarts."""
        _listening(session, fake_engine)
        session.stop()
        assert fake_engine.stop_calls == 1
        fake_engine.emit_end()
        run_for(0.05)
        assert session.state == SessionState.IDLE
        assert fake_engine.start_calls == 1
        assert session.restart_count == 0

    def test_stop_after_end_cancels_armed_restart(self, session, fake_engine, run_for):
        """stop() racing an armed restart cancels the timer (no spurious restart)."""
        _listening(session, fake_engine)
        fake_engine.emit_end()
        assert session.restart_pending

        session.stop()
        assert not session.restart_pending
        assert session.state == SessionState.IDLE
        run_for(0.05)
        assert fake_engine.start_calls == 1
        assert session.restart_count == 0

    def test_ids_continue_across_restarts(self, session, fake_engine, finals, run_for):
        """Transcript ids never restart with the engine."""
        _listening(session, fake_engine)
        fake_engine.emit_result(("before restart", True))
        fake_engine.emit_end()
        run_for(0.05)
        fake_engine.emit_start()
        fake_engine.emit_result(("after restart", True))
        assert [t.id for t, _ in finals] == [1, 2]

    def test_failed_restart_reports_and_retries(self, session, fake_engine, errors, run_for):
        """A restart that throws is reported and another restart is armed."""
        _listening(session, fake_engine)
        fake_engine.fail_next_starts = 1
        fake_engine.emit_end()
        run_for(0.015)
        run_for(0.05)

        assert errors and errors[0].kind == "restart-failed"
        assert fake_engine.start_calls == 3
        assert fake_engine.running

        session.stop()
        fake_engine.emit_end()
        run_for(0.05)
        assert fake_engine.start_calls == 3
        assert session.state == SessionState.IDLE

    def test_stop_when_idle_is_harmless(self, session, fake_engine):
        session.stop()
        assert fake_engine.stop_calls == 0
        assert session.state == SessionState.IDLE

    def test_close_detaches_engine(self, session, fake_engine, finals):
        _listening(session, fake_engine)
        session.close()
        assert fake_engine.abort_calls == 1
        assert session.engine is None
        fake_engine.emit_result(("late", True))
        assert finals == []
