"""
Tests for the Anthropic-backed LLM client.
"""

from types import SimpleNamespace

import anthropic
import httpx
import pytest

from therapy_chat.agent.llm import AnthropicClient, LLMError


class FakeMessages:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs: dict | None = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.response


def _client_with(messages: FakeMessages) -> AnthropicClient:
    client = AnthropicClient(model="test-model", max_tokens=256)
    client._client = SimpleNamespace(messages=messages)
    return client


@pytest.mark.asyncio
async def test_complete_joins_text_blocks():
    response = SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="Hello "),
            SimpleNamespace(type="tool_use", id="t1"),
            SimpleNamespace(type="text", text="there."),
        ]
    )
    messages = FakeMessages(response=response)
    client = _client_with(messages)

    text = await client.complete(
        system="You are a professional therapist.",
        history=[{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}],
        prompt="How are you?",
        temperature=0.7,
    )

    assert text == "Hello there."
    assert messages.kwargs["model"] == "test-model"
    assert messages.kwargs["max_tokens"] == 256
    assert messages.kwargs["system"] == "You are a professional therapist."
    assert messages.kwargs["temperature"] == 0.7
    assert messages.kwargs["messages"] == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "How are you?"},
    ]


@pytest.mark.asyncio
async def test_connection_error_becomes_llm_error():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    client = _client_with(FakeMessages(error=anthropic.APIConnectionError(request=request)))

    with pytest.raises(LLMError) as exc_info:
        await client.complete(system="s", history=[], prompt="p", temperature=0.2)

    assert exc_info.value.status_code is None
    assert exc_info.value.message


@pytest.mark.asyncio
async def test_status_error_keeps_provider_message():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(529, request=request)
    error = anthropic.APIStatusError("Overloaded", response=response, body=None)
    client = _client_with(FakeMessages(error=error))

    with pytest.raises(LLMError) as exc_info:
        await client.complete(system="s", history=[], prompt="p", temperature=0.2)

    assert exc_info.value.message == "Overloaded"
    assert exc_info.value.status_code == 529
