"""Single-producer/single-consumer event channel with backpressure."""

import asyncio
from typing import Any, Generic, TypeVar

from hal_coder.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class ChannelClosed(Exception):
    """The receiving side closed the channel."""


class EventChannel(Generic[T]):
    """Ordered async channel between one producer and one consumer.

    ``send`` suspends while the buffer is full and never drops an event.
    The producer calls ``end`` when it is done; the consumer drains what is
    left and then stops. The consumer may call ``close`` to hang up, after
    which every ``send`` raises ``ChannelClosed``.
    """

    def __init__(self, maxsize: int = 32):
        if maxsize < 0:
            raise ValueError("maxsize must be >= 0 (0 means unbounded)")
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)
        self._ended = asyncio.Event()
        self._closed = asyncio.Event()

    @property
    def is_closed(self) -> bool:
        """Receiver hung up."""
        return self._closed.is_set()

    @property
    def is_ended(self) -> bool:
        """Producer finished sending."""
        return self._ended.is_set()

    def qsize(self) -> int:
        return self._queue.qsize()

    @staticmethod
    async def _discard(task: asyncio.Task[Any]) -> Any:
        """Cancel a helper task; return its result if it finished first."""
        if not task.done():
            task.cancel()
        try:
            return await task
        except asyncio.CancelledError:
            return None

    async def send(self, item: T) -> None:
        """Deliver ``item``, waiting for room if the buffer is full.

        Raises:
            ChannelClosed if the receiver closed the channel
        """
        if item is None:
            raise ValueError("None cannot be sent; it marks end of stream")
        if self.is_closed:
            raise ChannelClosed()
        if self.is_ended:
            raise RuntimeError("send() called after end()")

        if not self._queue.full():
            self._queue.put_nowait(item)
            return

        put_task = asyncio.create_task(self._queue.put(item))
        closed_task = asyncio.create_task(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {put_task, closed_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            await self._discard(closed_task)
            if not put_task.done():
                await self._discard(put_task)

        # close() frees a slot while draining, so the put may land after it
        if self.is_closed:
            self._drain()
            raise ChannelClosed()
        if put_task not in done:
            raise ChannelClosed()

    async def recv(self) -> T | None:
        """Next event, or ``None`` once the stream ended and is drained."""
        while True:
            if self.is_closed:
                return None
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self.is_ended:
                return None

            get_task = asyncio.create_task(self._queue.get())
            ended_task = asyncio.create_task(self._ended.wait())
            closed_task = asyncio.create_task(self._closed.wait())
            try:
                await asyncio.wait(
                    {get_task, ended_task, closed_task},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                await self._discard(ended_task)
                await self._discard(closed_task)
                item = await self._discard(get_task)
            if item is not None:
                return item

    def end(self) -> None:
        """Mark the producer side as finished."""
        self._ended.set()

    def close(self) -> None:
        """Hang up the receiving side and discard buffered events."""
        if self.is_closed:
            return
        self._closed.set()
        dropped = self._drain()
        if dropped:
            log.debug("Event channel closed with pending events", dropped=dropped)

    def _drain(self) -> int:
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            dropped += 1
        return dropped

    def __aiter__(self) -> "EventChannel[T]":
        return self

    async def __anext__(self) -> T:
        item = await self.recv()
        if item is None:
            raise StopAsyncIteration
        return item
