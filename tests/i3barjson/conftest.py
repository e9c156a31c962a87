"""Pytest configuration and fixtures for i3barjson tests."""

import io
import sys
from pathlib import Path

import pytest

# Add repository root to Python path BEFORE test collection
package_root = Path(__file__).parent.parent.parent
if str(package_root) not in sys.path:
    sys.path.insert(0, str(package_root))

from i3barjson.models import Block, Header


class FailingSink(io.StringIO):
    """StringIO that raises on selected write calls (1-based)."""

    def __init__(self, fail_on=(), error=None):
        super().__init__()
        self.fail_on = set(fail_on)
        self.error = error or BrokenPipeError(32, "Broken pipe")
        self.calls = 0

    def write(self, data):
        self.calls += 1
        if self.calls in self.fail_on:
            raise self.error
        return super().write(data)


class FailingFlushSink(io.StringIO):
    """StringIO whose selected flush calls (1-based) raise after the write landed."""

    def __init__(self, fail_on=(), error=None):
        super().__init__()
        self.fail_on = set(fail_on)
        self.error = error or BrokenPipeError(32, "Broken pipe")
        self.flushes = 0

    def flush(self):
        self.flushes += 1
        if self.flushes in self.fail_on:
            raise self.error
        super().flush()


class ShortWriteSink(io.RawIOBase):
    """Raw sink accepting at most ``chunk`` bytes per write.

    After ``fail_after`` bytes have been accepted, further writes raise.
    """

    def __init__(self, chunk=5, fail_after=None, error=None):
        super().__init__()
        self.chunk = chunk
        self.fail_after = fail_after
        self.error = error or BrokenPipeError(32, "Broken pipe")
        self.data = bytearray()
        self.calls = 0

    def writable(self):
        return True

    def write(self, b):
        self.calls += 1
        if self.fail_after is not None and len(self.data) >= self.fail_after:
            raise self.error
        accepted = bytes(b[:self.chunk])
        self.data.extend(accepted)
        return len(accepted)

    def getvalue(self):
        return self.data.decode("utf-8")


@pytest.fixture
def sink():
    """In-memory text sink."""
    return io.StringIO()


@pytest.fixture
def failing_sink_factory():
    """Build sinks that fail on chosen write calls."""
    return FailingSink


@pytest.fixture
def header():
    """Minimal protocol header."""
    return Header(version=1, click_events=False)


@pytest.fixture
def cpu_line():
    """Two-block status line."""
    return [Block(full_text="CPU 10%"), Block(full_text="MEM 2G")]


@pytest.fixture
def sample_block():
    """Block with most optional fields populated."""
    return Block(
        name="volume",
        instance="sink0",
        full_text="75%",
        short_text="75",
        color="#a6e3a1",
        markup="pango",
        separator=True,
        separator_block_width=15,
    )


@pytest.fixture
def failing_flush_sink_factory():
    """Build text sinks whose flush fails on chosen calls."""
    return FailingFlushSink


@pytest.fixture
def short_write_sink_factory():
    """Build raw sinks that accept only part of each write."""
    return ShortWriteSink
