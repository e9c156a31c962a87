"""Header emitter and streaming array encoder for the i3bar protocol.

Wire format::

    {"version":1}
    [[{"full_text":"a","separator":false}]
    ,[{"full_text":"b","separator":false}]
    ...

The array is opened by the first status line and is never closed.
"""

import errno
import io
import json
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from .errors import (
    ConfigurationError,
    ErrorCode,
    ProtocolViolationError,
    SerializationError,
    WriteError,
)
from .models import Block, Header

logger = logging.getLogger(__name__)

ARRAY_OPEN = "["
ELEMENT_SEPARATOR = ","


def require_sink(sink: Any) -> None:
    """Fail fast when no output sink was supplied."""
    if sink is None:
        raise ConfigurationError(
            "Output sink required",
            code=ErrorCode.SINK_REQUIRED,
            suggestion="Pass a writable stream such as sys.stdout",
        )


def _dumps(data: Any, what: str, ensure_ascii: bool = False, indent: Optional[int] = None) -> str:
    separators = None if indent else (",", ":")
    try:
        return json.dumps(data, separators=separators, indent=indent, ensure_ascii=ensure_ascii, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(what, str(e)) from e


def encode_header(header: Header, pretty: bool = False) -> str:
    """Serialize a header (without line terminator)."""
    if not isinstance(header, Header):
        raise SerializationError("header", f"expected Header, got {type(header).__name__}")
    return _dumps(header.to_json(), "header", indent=4 if pretty else None)


def _as_block(item: Union[Block, Mapping[str, Any]], index: int) -> Block:
    if isinstance(item, Block):
        return item
    if isinstance(item, Mapping):
        try:
            return Block.model_validate(item)
        except ValidationError as e:
            raise SerializationError(
                "status line", f"block {index} is invalid: {e}", code=ErrorCode.INVALID_BLOCK
            ) from e
    raise SerializationError(
        "status line", f"block {index} is a {type(item).__name__}, not a Block", code=ErrorCode.INVALID_BLOCK
    )


def encode_status_line(status_line: Iterable[Union[Block, Mapping[str, Any]]], ensure_ascii: bool = False) -> str:
    """Serialize one status line as a compact JSON array of block objects."""
    if isinstance(status_line, (str, bytes, Mapping, Block)) or status_line is None:
        raise SerializationError("status line", "expected a sequence of blocks")
    try:
        items = list(status_line)
    except TypeError as e:
        raise SerializationError("status line", str(e)) from e
    blocks = [_as_block(item, index).to_json() for index, item in enumerate(items)]
    return _dumps(blocks, "status line", ensure_ascii=ensure_ascii)


def _is_binary(sink: Any) -> bool:
    if isinstance(sink, io.TextIOBase):
        return False
    if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)):
        return True
    mode = getattr(sink, "mode", "")
    return isinstance(mode, str) and "b" in mode


def _write_error(operation: str, error: Exception, committed: bool) -> WriteError:
    # Closed file objects raise ValueError
    return WriteError(operation, str(error), broken_pipe=isinstance(error, BrokenPipeError), committed=committed)


def commit_to_sink(sink: Any, text: str, operation: str) -> None:
    """Hand all of ``text`` to ``sink`` without flushing.

    Binary sinks may accept fewer bytes than offered (unbuffered pipes); the
    rest is written until nothing is left.

    Raises:
        WriteError: If the sink rejects the data. ``committed`` is True when
            part of it was already accepted.
    """
    if not _is_binary(sink):
        try:
            sink.write(text)
        except (OSError, ValueError) as e:
            raise _write_error(operation, e, committed=False) from e
        return

    data = memoryview(text.encode("utf-8"))
    offset = 0
    try:
        while offset < len(data):
            written = sink.write(data[offset:])
            if written is None:
                raise BlockingIOError(errno.EAGAIN, "sink would block")
            if written <= 0:
                raise OSError(errno.EIO, "sink accepted no data")
            offset += written
    except (OSError, ValueError) as e:
        raise _write_error(operation, e, committed=offset > 0) from e


def flush_sink(sink: Any, operation: str) -> None:
    """Flush data already committed to ``sink``.

    Raises:
        WriteError: With ``committed`` set, since the data is in the sink
    """
    try:
        sink.flush()
    except (OSError, ValueError) as e:
        raise _write_error(operation, e, committed=True) from e


def write_to_sink(sink: Any, text: str, operation: str, flush: bool = True) -> None:
    """Write all of ``text`` to ``sink``, then flush.

    Raises:
        WriteError: If the write or the flush fails
    """
    commit_to_sink(sink, text, operation)
    if flush:
        flush_sink(sink, operation)


def emit_header(header: Header, sink: Any, *, pretty: bool = False, flush: bool = True) -> None:
    """Write the protocol header line to ``sink``.

    Must be the first thing written to the stream. Use
    StreamingArrayEncoder.write_header for the guarded form.

    Raises:
        ConfigurationError: If sink is None
        SerializationError: If the header cannot be encoded
        WriteError: If the sink rejects the write
    """
    require_sink(sink)
    line = encode_header(header, pretty=pretty) + "\n"
    write_to_sink(sink, line, "header", flush=flush)
    logger.debug(f"Header written: {line.strip()}")


class StreamingArrayEncoder:
    """Streams an infinite JSON array of status lines to a sink.

    Each call to encode() adds one element to the array. The first element
    opens the array with "[", later ones are prefixed with ",". A closing
    bracket is never written.

    Not thread-safe: one writer only (see publisher.StatusPublisher).
    """

    def __init__(self, sink: Any, *, flush: bool = True, ensure_ascii: bool = False, pretty_header: bool = False):
        """Initialize encoder.

        Args:
            sink: Writable text or binary stream (usually sys.stdout)
            flush: Flush the sink after every write
            ensure_ascii: Escape non-ASCII characters in block text
            pretty_header: Indent the header object
        """
        require_sink(sink)
        self.sink = sink
        self.flush = flush
        self.ensure_ascii = ensure_ascii
        self.pretty_header = pretty_header
        self._count = 0
        self._header_written = False
        self._failed = False

    @property
    def count(self) -> int:
        """Number of array elements written so far."""
        return self._count

    @property
    def opened(self) -> bool:
        """True once the array's "[" is on the wire."""
        return self._count > 0

    @property
    def header_written(self) -> bool:
        return self._header_written

    def write_header(self, header: Header) -> None:
        """Write the header line, once, before any array element.

        The header counts as written once its bytes are in the sink, even if
        the following flush fails.

        Raises:
            ProtocolViolationError: If a header was already written or the array is open
            WriteError: If the sink rejects the header
        """
        if self._header_written:
            raise ProtocolViolationError(ErrorCode.HEADER_ALREADY_SENT, "Header was already written to this stream")
        if self._count:
            raise ProtocolViolationError(
                ErrorCode.HEADER_AFTER_DATA, f"Cannot write header after {self._count} status line(s)"
            )
        self._check_usable("header")
        line = encode_header(header, pretty=self.pretty_header) + "\n"
        self._commit(line, "header")
        self._header_written = True
        if self.flush:
            flush_sink(self.sink, "header")
        logger.debug(f"Header written: {line.strip()}")

    def serialize(self, status_line: Iterable[Union[Block, Mapping[str, Any]]]) -> str:
        """Serialize a status line with this encoder's settings."""
        return encode_status_line(status_line, ensure_ascii=self.ensure_ascii)

    def encode(self, status_line: Iterable[Union[Block, Mapping[str, Any]]]) -> None:
        """Append one status line to the array.

        Raises:
            SerializationError: If the status line cannot be encoded (nothing is written)
            WriteError: If the sink rejects the write
        """
        self.write_element(self.serialize(status_line))

    def write_element(self, payload: str) -> None:
        """Append an already serialized status line to the array.

        The element counts as written as soon as the sink has accepted all of
        its bytes, so a failed flush never causes "[" to be written twice. If
        the sink accepts only part of the element the stream can no longer be
        continued and the encoder is marked failed.

        Raises:
            WriteError: If the sink rejects the write, or STREAM_CORRUPTED
                after an earlier partial write
        """
        operation = f"element {self._count + 1}"
        self._check_usable(operation)
        prefix = ELEMENT_SEPARATOR if self._count else ARRAY_OPEN
        self._commit(prefix + payload + "\n", operation)
        self._count += 1
        if self.flush:
            flush_sink(self.sink, operation)

    @property
    def failed(self) -> bool:
        """True once a partial write left an incomplete element on the wire."""
        return self._failed

    def _check_usable(self, operation: str) -> None:
        if self._failed:
            raise WriteError(
                operation,
                "stream holds a partially written element",
                code=ErrorCode.STREAM_CORRUPTED,
            )

    def _commit(self, text: str, operation: str) -> None:
        try:
            commit_to_sink(self.sink, text, operation)
        except WriteError as e:
            if e.committed:
                self._failed = True
                logger.error(f"Stream corrupted by partial {operation}: {e.message}")
            raise
