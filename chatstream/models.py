"""Pydantic models for chatstream."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatCompletionParams(BaseModel):
    """Optional sampling parameters for a chat completion request.

    Unset fields are left out of the request body entirely; the endpoint
    treats a missing field differently from one sent with its default value.
    """

    max_tokens: Optional[int] = Field(default=None, ge=0)
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stream: Optional[bool] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Message(BaseModel):
    role: str
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role="assistant", content=content)


class Credentials(BaseModel):
    api_key: str
    organization: Optional[str] = None
    project: Optional[str] = None


class Delta(BaseModel):
    """An incremental fragment of generated text."""

    model_config = ConfigDict(frozen=True)

    text: str


class Done(BaseModel):
    """End of stream, decoded from the ``[DONE]`` frame."""

    model_config = ConfigDict(frozen=True)


class StreamSummary(BaseModel):
    """Outcome of one streaming request, as seen by the producer."""

    status: Literal["completed", "closed", "cancelled"]
    deltas: int = 0
    ignored_frames: int = 0
    malformed_frames: int = 0
