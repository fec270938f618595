"""Exceptions for chatstream."""

from __future__ import annotations

from typing import Optional


class ChatStreamError(Exception):
    """Base exception for chatstream."""


class TransportError(ChatStreamError):
    """Raised when the request or the response body fails at the HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(TransportError):
    """Raised on 401 responses."""


class RateLimitError(TransportError):
    """Raised on 429 responses."""


class ResponseParseError(ChatStreamError):
    """Raised when a non-streaming response body is not valid JSON."""


class ChannelClosedError(ChatStreamError):
    """Raised on send once the receiving end of a channel has gone away."""


class CredentialsError(ChatStreamError):
    """Raised when no usable API credentials can be found."""
