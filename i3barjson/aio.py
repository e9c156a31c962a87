"""Status line publisher for asyncio producers.

Same contract as publisher.StatusPublisher: one worker task drains an
asyncio.Queue in FIFO order, close() drains before signaling done.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .encoder import StreamingArrayEncoder
from .errors import I3barError, PublisherClosedError
from .publisher import StatusLineLike

logger = logging.getLogger(__name__)


@dataclass
class QueuedStatusLine:
    """Status line queued for the writer task."""

    payload: str
    future: "asyncio.Future[None]"


class AsyncStatusPublisher:
    """Publishes status lines from coroutines through one writer task.

    Sink writes are synchronous; they happen inside the writer task.
    """

    def __init__(self, encoder: StreamingArrayEncoder, *, queue_size: int = 0, click_input: Any = None):
        """Initialize publisher.

        Args:
            encoder: Encoder owning the output sink
            queue_size: Maximum pending status lines, 0 for unbounded
            click_input: Raw input handle for an external click event reader
        """
        self.encoder = encoder
        self.click_input = click_input
        self._queue: asyncio.Queue[Optional[QueuedStatusLine]] = asyncio.Queue(maxsize=queue_size)
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self.done = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Start the writer task."""
        if self._task is not None:
            logger.warning("Async status publisher already running")
            return

        logger.info("Starting async status publisher")
        self._task = asyncio.create_task(self._write_loop())

    async def submit(self, status_line: StatusLineLike) -> "asyncio.Future[None]":
        """Queue one status line.

        Returns:
            Future resolved once the element is written

        Raises:
            PublisherClosedError: If close() was called
            SerializationError: If the status line cannot be encoded
        """
        if self._closed:
            raise PublisherClosedError()
        if self._task is None:
            await self.start()
        payload = self.encoder.serialize(status_line)
        future = asyncio.get_running_loop().create_future()
        await self._queue.put(QueuedStatusLine(payload=payload, future=future))
        return future

    async def publish(self, status_line: StatusLineLike) -> None:
        """Queue one status line and wait until it is written.

        Raises:
            WriteError: If the sink rejected this status line
        """
        future = await self.submit(status_line)
        await future

    async def close(self) -> None:
        """Stop accepting status lines, drain the queue and wait for the writer."""
        if not self._closed:
            self._closed = True
            if self._task is None:
                await self.start()
            logger.info(f"Closing async status publisher ({self._queue.qsize()} pending)")
            await self._queue.put(None)

        await self.done.wait()
        if self._task is not None:
            await self._task

    async def _write_loop(self) -> None:
        """Write queued status lines in FIFO order until the close marker."""
        try:
            while True:
                queued = await self._queue.get()
                try:
                    if queued is None:
                        break
                    self._write(queued)
                finally:
                    self._queue.task_done()
        finally:
            self.done.set()
            logger.info(f"Async status publisher drained ({self.encoder.count} status lines written)")

    def _write(self, queued: QueuedStatusLine) -> None:
        if queued.future.cancelled():
            logger.debug("Skipping cancelled status line")
            return
        try:
            self.encoder.write_element(queued.payload)
        except I3barError as e:
            logger.error(f"Failed to write status line: {e.to_dict()}")
            queued.future.set_exception(e)
        except Exception as e:
            logger.error(f"Unexpected error writing status line: {e}", exc_info=True)
            queued.future.set_exception(e)
        else:
            queued.future.set_result(None)
