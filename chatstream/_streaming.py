"""Frame decoder for chat-completion event streams.

The endpoint streams ``data: <payload>`` segments where the ``data: `` marker
itself is the separator between frames. Network chunks do not line up with
frames, so the decoder keeps the unconsumed tail of the text between chunks
and only decodes a segment once the next marker or the end of the body
arrives. The ``[DONE]`` literal is the exception: it is recognised as soon
as it is whole, since nothing follows it.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncGenerator, AsyncIterable, Callable, Generator, Iterable, Optional, Union

from .models import Delta, Done

logger = logging.getLogger(__name__)

FRAME_MARKER = "data: "
DONE_LITERAL = "[DONE]"

StreamEvent = Union[Delta, Done]

# Longest tail still worth comparing against the [DONE] literal.
_DONE_TAIL_LIMIT = 64


def _extract_content(payload: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` if it is a string, else None."""
    try:
        content = payload["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


class FrameDecoder:
    """Turn raw byte chunks into ``Delta``/``Done`` events.

    Frames that are not valid JSON, or carry no content, produce no event.
    ``on_drop`` is called with the body of every frame that failed to parse,
    and the ``malformed``/``ignored`` counters record how many frames were
    skipped for each reason.
    """

    def __init__(self, on_drop: Optional[Callable[[str], None]] = None) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._scan_from = 0
        self._on_drop = on_drop
        self.malformed = 0
        self.ignored = 0
        self.done = False

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Consume one network chunk and return the events it completed."""
        if self.done:
            return []
        self._buffer += self._utf8.decode(chunk)
        return self._drain(final=False)

    def flush(self) -> list[StreamEvent]:
        """Decode whatever is left once the body has ended."""
        if self.done:
            return []
        self._buffer += self._utf8.decode(b"", final=True)
        return self._drain(final=True)

    def _drain(self, final: bool) -> list[StreamEvent]:
        # A body is complete only once the next marker (or end of body) is
        # seen. The buffer holds the unfinished body, without its marker.
        buf = self._buffer
        events: list[StreamEvent] = []
        start = 0
        search = self._scan_from
        while True:
            idx = buf.find(FRAME_MARKER, search)
            if idx < 0:
                break
            event = self._decode(buf[start:idx])
            start = search = idx + len(FRAME_MARKER)
            if event is not None:
                events.append(event)
                if isinstance(event, Done):
                    self._finish()
                    return events

        rest = buf[start:]
        if final or self._is_done_literal(rest):
            self._buffer = ""
            self._scan_from = 0
            event = self._decode(rest)
            if event is not None:
                events.append(event)
                self.done = isinstance(event, Done)
            return events

        self._buffer = rest
        # The marker may straddle chunks; rescan only the last few characters.
        self._scan_from = max(0, len(rest) - len(FRAME_MARKER) + 1)
        return events

    def _finish(self) -> None:
        self._buffer = ""
        self._scan_from = 0
        self.done = True

    @staticmethod
    def _is_done_literal(body: str) -> bool:
        return len(body) <= _DONE_TAIL_LIMIT and body.strip() == DONE_LITERAL

    def _decode(self, body: str) -> Optional[StreamEvent]:
        body = body.strip()
        if not body:
            return None
        if body == DONE_LITERAL:
            return Done()
        try:
            payload = json.loads(body)
        except ValueError:
            self.malformed += 1
            logger.debug("Dropping malformed frame: %r", body[:200])
            if self._on_drop is not None:
                self._on_drop(body)
            return None
        content = _extract_content(payload)
        if content is None:
            self.ignored += 1
            return None
        return Delta(text=content)


def iter_events(
    chunks: Iterable[bytes], decoder: Optional[FrameDecoder] = None
) -> Generator[StreamEvent, None, None]:
    """Yield decoded events from a synchronous chunk iterator, ending at ``Done``."""
    decoder = decoder or FrameDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
        if decoder.done:
            return
    yield from decoder.flush()


async def aiter_events(
    chunks: AsyncIterable[bytes], decoder: Optional[FrameDecoder] = None
) -> AsyncGenerator[StreamEvent, None]:
    """Yield decoded events from an async chunk iterator, ending at ``Done``."""
    decoder = decoder or FrameDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
        if decoder.done:
            return
    for event in decoder.flush():
        yield event
