"""chatstream — streaming chat-completion client."""

__version__ = "0.1.0"

from ._channel import DEFAULT_CHANNEL_CAPACITY, DONE_SENTINEL, DeliveryChannel
from ._streaming import FrameDecoder, aiter_events, iter_events
from .client import ChatClient, AsyncChatClient
from .credentials import load_credentials
from .models import (
    ChatCompletionParams, Message, Credentials, Delta, Done, StreamSummary,
)
from .exceptions import (
    ChatStreamError, TransportError, AuthenticationError, RateLimitError,
    ResponseParseError, ChannelClosedError, CredentialsError,
)

__all__ = [
    "ChatClient",
    "AsyncChatClient",
    "DeliveryChannel",
    "DEFAULT_CHANNEL_CAPACITY",
    "DONE_SENTINEL",
    "FrameDecoder",
    "iter_events",
    "aiter_events",
    "load_credentials",
    "ChatCompletionParams",
    "Message",
    "Credentials",
    "Delta",
    "Done",
    "StreamSummary",
    "ChatStreamError",
    "TransportError",
    "AuthenticationError",
    "RateLimitError",
    "ResponseParseError",
    "ChannelClosedError",
    "CredentialsError",
]
