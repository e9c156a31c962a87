"""
i3barjson

Producer side of the i3bar JSON protocol: a header line followed by an
infinite, never closed JSON array of status lines.
"""

from .encoder import StreamingArrayEncoder, emit_header, encode_header, encode_status_line
from .errors import (
    ConfigurationError,
    ErrorCode,
    I3barError,
    ProtocolViolationError,
    PublisherClosedError,
    SerializationError,
    WriteError,
)
from .models import Align, Block, Click, Header, Markup, MouseButton, StatusLine, pretty
from .publisher import StatusPublisher, SyncPublisher, init, open_stream

__version__ = "1.0.0"

__all__ = [
    "Align",
    "Block",
    "Click",
    "ConfigurationError",
    "ErrorCode",
    "Header",
    "I3barError",
    "Markup",
    "MouseButton",
    "ProtocolViolationError",
    "PublisherClosedError",
    "SerializationError",
    "StatusLine",
    "StatusPublisher",
    "StreamingArrayEncoder",
    "SyncPublisher",
    "WriteError",
    "emit_header",
    "encode_header",
    "encode_status_line",
    "init",
    "open_stream",
    "pretty",
]
