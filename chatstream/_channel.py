"""Bounded single-producer/single-consumer channel for streamed deltas."""

from __future__ import annotations

import asyncio
from typing import AsyncGenerator, AsyncIterator, Optional, Union

from .exceptions import ChannelClosedError
from .models import Delta, Done

DEFAULT_CHANNEL_CAPACITY = 100
DONE_SENTINEL = "[DONE]"

_CLOSED = object()


class DeliveryChannel:
    """Carry delta text from the task reading the response to its consumer.

    ``send`` suspends while ``capacity`` values are waiting. ``finish`` sends
    the end-of-stream sentinel; ``close`` ends the stream without one, and
    the consumer treats both the same way. When the consumer calls
    ``close_receiver``, pending and future sends raise ``ChannelClosedError``.
    """

    def __init__(self, capacity: int = DEFAULT_CHANNEL_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._queue: asyncio.Queue = asyncio.Queue()
        self._slots = asyncio.Semaphore(capacity)
        self._sender_closed = False
        self._receiver_closed = False
        self._ended = False
        self._pending = 0

    @property
    def pending(self) -> int:
        """Number of values sent but not yet received."""
        return self._pending

    @property
    def closed(self) -> bool:
        return self._sender_closed or self._receiver_closed

    async def send(self, text: str) -> None:
        await self._put(text)

    async def finish(self) -> None:
        """Send the sentinel; nothing can be sent afterwards."""
        await self._put(Done())
        self._sender_closed = True

    def close(self) -> None:
        """End the stream from the sending side. Safe to call repeatedly."""
        if self._sender_closed:
            return
        self._sender_closed = True
        self._queue.put_nowait(_CLOSED)

    def close_receiver(self) -> None:
        """Drop the receiving end; a sender blocked on capacity is woken."""
        if self._receiver_closed:
            return
        self._receiver_closed = True
        self._slots.release()

    async def _put(self, item: Union[str, Done]) -> None:
        if self._receiver_closed:
            raise ChannelClosedError("receiver has gone away")
        if self._sender_closed:
            raise ChannelClosedError("channel is already closed for sending")
        await self._slots.acquire()
        if self._receiver_closed:
            raise ChannelClosedError("receiver has gone away")
        self._queue.put_nowait(item)
        self._pending += 1

    async def recv_event(self) -> Optional[Union[Delta, Done]]:
        """Return the next event, or None once the stream has ended."""
        if self._ended or self._receiver_closed:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._ended = True
            return None
        self._pending -= 1
        self._slots.release()
        if isinstance(item, Done):
            self._ended = True
            return item
        return Delta(text=item)

    async def recv(self) -> Optional[str]:
        """Return the next text value, ``"[DONE]"`` for the sentinel, or None on closure.

        A delta whose text is literally ``[DONE]`` looks the same as the
        sentinel here; use ``recv_event`` or ``async for`` to tell them apart.
        """
        event = await self.recv_event()
        if event is None:
            return None
        if isinstance(event, Done):
            return DONE_SENTINEL
        return event.text

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iter_text()

    async def _iter_text(self) -> AsyncGenerator[str, None]:
        while True:
            event = await self.recv_event()
            if event is None or isinstance(event, Done):
                return
            yield event.text
