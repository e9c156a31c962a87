"""Single-writer publishers for the i3bar status line stream.

StatusPublisher hands status lines to one background writer thread through a
FIFO queue. SyncPublisher writes on the caller's thread and leaves
serialization of concurrent callers to the application.
"""

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from .config import StreamConfig
from .encoder import StreamingArrayEncoder, require_sink
from .errors import I3barError, PublisherClosedError
from .models import Block, Header

logger = logging.getLogger(__name__)

StatusLineLike = Iterable[Union[Block, Mapping[str, Any]]]


@dataclass
class _Submission:
    """Serialized status line waiting for the writer."""
    payload: str
    future: Future


_CLOSE = object()


def open_stream(sink: Any, header: Optional[Header] = None, *, config: Optional[StreamConfig] = None) -> StreamingArrayEncoder:
    """Create an encoder for ``sink`` and write ``header`` if given.

    Raises:
        ConfigurationError: If sink is None
        WriteError: If the header cannot be written
    """
    config = config or StreamConfig()
    encoder = StreamingArrayEncoder(
        sink,
        flush=config.flush,
        ensure_ascii=config.ensure_ascii,
        pretty_header=config.pretty_header,
    )
    if header is not None:
        encoder.write_header(header)
    return encoder


class SyncPublisher:
    """Publishes status lines directly on the calling thread.

    Not thread-safe: call from a single thread, or guard publish() with a
    lock shared by all producers.
    """

    def __init__(self, encoder: StreamingArrayEncoder):
        self.encoder = encoder
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, status_line: StatusLineLike) -> None:
        """Write one status line.

        Raises:
            PublisherClosedError: If close() was called
            SerializationError: If the status line cannot be encoded
            WriteError: If the sink rejects the write
        """
        if self._closed:
            raise PublisherClosedError()
        self.encoder.encode(status_line)

    def close(self) -> None:
        """Stop accepting status lines. The array stays open on the wire."""
        self._closed = True


class StatusPublisher:
    """Publishes status lines through a queue drained by one writer thread.

    Status lines reach the wire in submission order, one complete element at
    a time. close() drains everything already queued before the done signal
    is set.
    """

    def __init__(
        self,
        encoder: StreamingArrayEncoder,
        *,
        queue_size: int = 0,
        click_input: Any = None,
        name: str = "i3bar-writer",
    ):
        """Initialize publisher.

        Args:
            encoder: Encoder owning the output sink (written only by the worker)
            queue_size: Maximum pending status lines, 0 for unbounded
            click_input: Raw input handle for an external click event reader
            name: Worker thread name
        """
        self.encoder = encoder
        self.click_input = click_input
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._done = threading.Event()
        self._submit_lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._write_loop, name=name, daemon=True)
        self._started = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def done(self) -> threading.Event:
        """Set when the writer has drained the queue and exited."""
        return self._done

    @property
    def pending(self) -> int:
        """Approximate number of queued status lines."""
        return self._queue.qsize()

    def start(self) -> "StatusPublisher":
        """Start the writer thread (idempotent)."""
        with self._submit_lock:
            if not self._started:
                self._started = True
                self._thread.start()
                logger.info(f"Status publisher started (queue size: {self._queue.maxsize or 'unbounded'})")
        return self

    def submit(self, status_line: StatusLineLike) -> Future:
        """Queue one status line for writing.

        The status line is serialized immediately, so later changes to the
        caller's objects do not affect what is written.

        Returns:
            Future resolved once the element is on the wire, or failed with
            the WriteError raised while writing it

        Raises:
            PublisherClosedError: If close() was called
            SerializationError: If the status line cannot be encoded
        """
        payload = self.encoder.serialize(status_line)
        if not self._started:
            self.start()
        submission = _Submission(payload=payload, future=Future())
        with self._submit_lock:
            if self._closed:
                raise PublisherClosedError()
            self._queue.put(submission)
        return submission.future

    def publish(self, status_line: StatusLineLike, timeout: Optional[float] = None) -> None:
        """Queue one status line and wait until it is written.

        Raises:
            PublisherClosedError: If close() was called
            SerializationError: If the status line cannot be encoded
            WriteError: If the sink rejected this status line
            concurrent.futures.TimeoutError: If the write did not finish in time
        """
        self.submit(status_line).result(timeout=timeout)

    def close(self, timeout: Optional[float] = None) -> bool:
        """Stop accepting status lines and wait for the queue to drain.

        Returns:
            True if the writer finished within ``timeout``
        """
        self.start()
        with self._submit_lock:
            if not self._closed:
                self._closed = True
                logger.info(f"Closing status publisher ({self._queue.qsize()} pending)")
                self._queue.put(_CLOSE)
        return self._done.wait(timeout)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the done signal."""
        return self._done.wait(timeout)

    def _write_loop(self) -> None:
        """Write queued status lines in FIFO order until closed."""
        logger.debug("Writer loop started")
        try:
            while True:
                item = self._queue.get()
                try:
                    if item is _CLOSE:
                        break
                    self._write(item)
                finally:
                    self._queue.task_done()
        finally:
            self._done.set()
            logger.info(f"Status publisher drained ({self.encoder.count} status lines written)")

    def _write(self, submission: _Submission) -> None:
        if not submission.future.set_running_or_notify_cancel():
            logger.debug("Skipping cancelled status line")
            return
        try:
            self.encoder.write_element(submission.payload)
        except I3barError as e:
            logger.error(f"Failed to write status line: {e.to_dict()}")
            submission.future.set_exception(e)
        except Exception as e:
            logger.error(f"Unexpected error writing status line: {e}", exc_info=True)
            submission.future.set_exception(e)
        else:
            submission.future.set_result(None)

    def __enter__(self) -> "StatusPublisher":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def init(
    header: Header,
    output: Any,
    input: Any = None,
    *,
    config: Optional[StreamConfig] = None,
) -> StatusPublisher:
    """Write the header to ``output`` and start a publisher for it.

    Args:
        header: Protocol header
        output: Writable stream for the protocol (usually sys.stdout)
        input: Stream the bar sends click events on (usually sys.stdin), kept
            as ``click_input`` for an external reader
        config: Stream settings

    Raises:
        ConfigurationError: If output is None
        WriteError: If the header cannot be written
    """
    require_sink(output)
    config = config or StreamConfig()
    if header.click_events and input is None:
        logger.warning("Header enables click events but no input stream was given")
    encoder = open_stream(output, header, config=config)
    return StatusPublisher(encoder, queue_size=config.queue_size, click_input=input).start()
