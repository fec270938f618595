"""Tests for chatstream models."""

import pytest
from pydantic import ValidationError

from chatstream.client import _build_body
from chatstream.models import ChatCompletionParams, Delta, Done, Message, StreamSummary


def test_params_only_temperature():
    payload = ChatCompletionParams(temperature=0.2).to_payload()
    assert payload == {"temperature": 0.2}
    for key in ("max_tokens", "top_p", "frequency_penalty", "presence_penalty", "stream"):
        assert key not in payload


def test_params_defaults_are_empty():
    assert ChatCompletionParams().to_payload() == {}


def test_params_zero_values_are_sent():
    payload = ChatCompletionParams(max_tokens=0, frequency_penalty=0.0, stream=False).to_payload()
    assert payload == {"max_tokens": 0, "frequency_penalty": 0.0, "stream": False}


def test_negative_max_tokens_rejected():
    with pytest.raises(ValidationError):
        ChatCompletionParams(max_tokens=-1)


def test_message_helpers():
    assert Message.system("be brief").model_dump() == {"role": "system", "content": "be brief"}
    assert Message.user("hi").role == "user"
    assert Message.assistant("hello").role == "assistant"


def test_body_keeps_message_order():
    messages = [Message.system("s"), {"role": "user", "content": "u1"}, Message.assistant("a"), Message.user("u2")]
    body = _build_body(messages, "gpt-4o", ChatCompletionParams(presence_penalty=0.5), stream=True)
    assert [m["content"] for m in body["messages"]] == ["s", "u1", "a", "u2"]
    assert body["presence_penalty"] == 0.5
    assert body["stream"] is True
    assert "temperature" not in body


def test_events_are_frozen():
    delta = Delta(text="x")
    with pytest.raises(ValidationError):
        delta.text = "y"
    assert Done() == Done()
    assert Delta(text="x") != Done()


def test_stream_summary_defaults():
    s = StreamSummary(status="closed")
    assert s.deltas == 0
    assert s.ignored_frames == 0
    assert s.malformed_frames == 0


def test_stream_summary_status_validated():
    with pytest.raises(ValidationError):
        StreamSummary(status="exploded")
