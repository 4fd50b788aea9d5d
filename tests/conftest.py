"""
Pytest fixtures for Parley tests.
"""

import asyncio
import sys
import tempfile
from pathlib import Path

import pytest

# Add src and tests directories to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeAudioDevice, FakeEngine  # noqa: E402


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def loop():
    """A fresh event loop, closed after the test."""
    event_loop = asyncio.new_event_loop()
    yield event_loop
    event_loop.close()


@pytest.fixture
def run_for(loop):
    """Run the loop for a number of seconds so timers can fire."""
    def _run(seconds):
        loop.run_until_complete(asyncio.sleep(seconds))
    return _run


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def loud_device():
    """Device whose stream carries broadband noise (clearly speaking)."""
    return FakeAudioDevice(level=0.5)


@pytest.fixture
def silent_device():
    return FakeAudioDevice(level=0.0)


@pytest.fixture
def mock_config():
    """User configuration overrides for testing."""
    return {
        "recognition": {
            "engine": "fake",
            "locale": "en-GB",
            "restart_delay_ms": 10,
        },
        "audio": {
            "tick_interval": 0.005,
            "speaking_threshold": 30.0,
        },
        "transcript": {
            "nominal_confidence": 0.9,
        },
        "logging": {
            "level": "DEBUG",
            "log_to_file": False,
        },
    }
