"""chatstream sync and async clients."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, AsyncGenerator, Callable, Generator, Mapping, Optional, Sequence, Union

import httpx

from . import __version__
from ._channel import DEFAULT_CHANNEL_CAPACITY, DeliveryChannel
from ._streaming import FrameDecoder, aiter_events, iter_events
from .credentials import load_credentials
from .exceptions import (
    AuthenticationError,
    ChannelClosedError,
    RateLimitError,
    ResponseParseError,
    TransportError,
)
from .models import ChatCompletionParams, Credentials, Done, Message, StreamSummary

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com"
COMPLETIONS_PATH = "/v1/chat/completions"
DEFAULT_TIMEOUT = 300.0

_USER_AGENT = f"chatstream-python/{__version__}"

MessageLike = Union[Message, Mapping[str, Any]]
DropHook = Callable[[str], None]


def _check_response(resp: httpx.Response) -> None:
    if resp.status_code == 401:
        raise AuthenticationError(f"Authentication failed: {resp.text}", status_code=401)
    if resp.status_code == 429:
        raise RateLimitError(f"Rate limited: {resp.text}", status_code=429)
    if not resp.is_success:
        raise TransportError(f"HTTP {resp.status_code}: {resp.text}", status_code=resp.status_code)


def _build_headers(credentials: Credentials) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {credentials.api_key}",
        "Content-Type": "application/json",
        "User-Agent": _USER_AGENT,
    }
    if credentials.organization:
        headers["OpenAI-Organization"] = credentials.organization
    if credentials.project:
        headers["OpenAI-Project"] = credentials.project
    return headers


def _build_body(
    messages: Sequence[MessageLike],
    model: str,
    params: ChatCompletionParams | None,
    stream: bool,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": model,
        "messages": [m.model_dump() if isinstance(m, Message) else dict(m) for m in messages],
    }
    if params is not None:
        body.update(params.to_payload())
    if stream:
        body["stream"] = True
    else:
        # A streamed body cannot be parsed as a single JSON document.
        body.pop("stream", None)
    return body


def _parse_completion(resp: httpx.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as e:
        raise ResponseParseError(f"Response body is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class ChatClient:
    """Synchronous chat-completion client."""

    def __init__(
        self,
        credentials: Credentials | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        on_drop: Optional[DropHook] = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        self._credentials = credentials or load_credentials()
        self._on_drop = on_drop
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=_build_headers(self._credentials),
            timeout=timeout,
            transport=transport,
        )

    def chat_completion(
        self,
        messages: Sequence[MessageLike],
        model: str,
        params: ChatCompletionParams | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the parsed JSON response."""
        body = _build_body(messages, model, params, stream=False)
        try:
            resp = self._client.post(COMPLETIONS_PATH, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}") from e
        _check_response(resp)
        return _parse_completion(resp)

    def stream(
        self,
        messages: Sequence[MessageLike],
        model: str,
        params: ChatCompletionParams | None = None,
    ) -> Generator[str, None, None]:
        """Yield delta text as it arrives, stopping at ``[DONE]`` or end of body."""
        body = _build_body(messages, model, params, stream=True)
        decoder = FrameDecoder(on_drop=self._on_drop)
        try:
            with self._client.stream("POST", COMPLETIONS_PATH, json=body) as resp:
                if not resp.is_success:
                    resp.read()
                    _check_response(resp)
                for event in iter_events(resp.iter_bytes(), decoder):
                    if isinstance(event, Done):
                        return
                    yield event.text
        except httpx.HTTPError as e:
            raise TransportError(f"Streaming request failed: {e}") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class AsyncChatClient:
    """Asynchronous chat-completion client."""

    def __init__(
        self,
        credentials: Credentials | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        on_drop: Optional[DropHook] = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        self._credentials = credentials or load_credentials()
        self._on_drop = on_drop
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=_build_headers(self._credentials),
            timeout=timeout,
            transport=transport,
        )

    async def chat_completion(
        self,
        messages: Sequence[MessageLike],
        model: str,
        params: ChatCompletionParams | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the parsed JSON response."""
        body = _build_body(messages, model, params, stream=False)
        try:
            resp = await self._client.post(COMPLETIONS_PATH, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}") from e
        _check_response(resp)
        return _parse_completion(resp)

    async def chat_completion_stream(
        self,
        messages: Sequence[MessageLike],
        model: str,
        params: ChatCompletionParams | None,
        channel: DeliveryChannel,
    ) -> StreamSummary:
        """Stream a completion into ``channel``.

        Each delta is sent as its text; ``[DONE]`` becomes the channel's
        sentinel. The channel is closed on every exit path. If the consumer
        drops its end, the request is abandoned and the summary reports
        ``"cancelled"``. HTTP failures raise ``TransportError`` without a
        sentinel being sent.
        """
        body = _build_body(messages, model, params, stream=True)
        decoder = FrameDecoder(on_drop=self._on_drop)
        status = "closed"
        deltas = 0
        try:
            async with self._client.stream("POST", COMPLETIONS_PATH, json=body) as resp:
                if not resp.is_success:
                    await resp.aread()
                    _check_response(resp)
                logger.debug("Streaming %s from %s", model, resp.url)
                async with contextlib.aclosing(aiter_events(resp.aiter_bytes(), decoder)) as events:
                    async for event in events:
                        if isinstance(event, Done):
                            await channel.finish()
                            status = "completed"
                            break
                        await channel.send(event.text)
                        deltas += 1
        except ChannelClosedError:
            logger.debug("Consumer went away after %d deltas, abandoning stream", deltas)
            status = "cancelled"
        except httpx.HTTPError as e:
            raise TransportError(f"Streaming request failed: {e}") from e
        finally:
            channel.close()

        logger.debug(
            "Stream %s: %d deltas, %d ignored, %d malformed frames",
            status, deltas, decoder.ignored, decoder.malformed,
        )
        return StreamSummary(
            status=status,
            deltas=deltas,
            ignored_frames=decoder.ignored,
            malformed_frames=decoder.malformed,
        )

    async def stream(
        self,
        messages: Sequence[MessageLike],
        model: str,
        params: ChatCompletionParams | None = None,
        capacity: int = DEFAULT_CHANNEL_CAPACITY,
    ) -> AsyncGenerator[str, None]:
        """Yield delta text as it arrives.

        The response is read by a separate task feeding a bounded channel, so
        a slow consumer pauses the download instead of buffering it. A
        transport failure is raised after the deltas received before it.
        """
        channel = DeliveryChannel(capacity)
        producer = asyncio.create_task(
            self.chat_completion_stream(messages, model, params, channel)
        )
        drained = False
        try:
            async for text in channel:
                yield text
            drained = True
            await producer
        finally:
            if not producer.done():
                channel.close_receiver()
                producer.cancel()
                with contextlib.suppress(asyncio.CancelledError, TransportError):
                    await producer
            elif not drained and not producer.cancelled() and producer.exception() is not None:
                # The caller stopped early; the failure has nobody to report to.
                logger.debug("Stream failed after consumer left: %r", producer.exception())

    async def close(self) -> None:
        await self._client.aclose()

    async def aclose(self) -> None:
        await self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
