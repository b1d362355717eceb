"""Test the Anthropic chat client wrapper and retry policy."""
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from execution.llm_client import AnthropicChatClient, ChatMessage, split_system
from execution.retry_handler import RetryHandler

MESSAGES = [
    ChatMessage(role="system", content="Be brief."),
    ChatMessage(role="user", content="Name a sailor."),
]


def usage():
    return SimpleNamespace(input_tokens=10, output_tokens=5)


class FakeMessages:
    def __init__(self, failures=0, deltas=()):
        self.failures = failures
        self.deltas = deltas
        self.create_calls = []
        self.stream_calls = []

    async def create(self, **kwargs):
        self.create_calls.append(kwargs)
        if self.failures:
            self.failures -= 1
            request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
            raise anthropic.RateLimitError(
                "rate limited", response=httpx.Response(429, request=request), body=None
            )
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Alice")],
            usage=usage()
        )

    def stream(self, **kwargs):
        self.stream_calls.append(kwargs)
        return FakeStream(self.deltas)


class FakeStream:
    def __init__(self, deltas):
        self.deltas = deltas

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    async def text_stream(self):
        for delta in self.deltas:
            yield delta

    async def get_final_message(self):
        return SimpleNamespace(usage=usage())


def make_client(messages):
    return AnthropicChatClient(
        api_key="test",
        model="test-model",
        retry_handler=RetryHandler(max_retries=3, base_delay=0),
        client=SimpleNamespace(messages=messages)
    )


def test_split_system():
    """Test system messages become the system parameter."""
    system, turns = split_system(MESSAGES)

    assert system == "Be brief."
    assert turns == [{"role": "user", "content": "Name a sailor."}]


@pytest.mark.asyncio
async def test_complete_request_and_usage():
    """Test a completion sends the model, sampling settings and system prompt."""
    messages = FakeMessages()
    client = make_client(messages)

    text = await client.complete(MESSAGES, temperature=0.1, max_tokens=256)

    assert text == "Alice"
    call = messages.create_calls[0]
    assert call["model"] == "test-model"
    assert call["temperature"] == 0.1
    assert call["max_tokens"] == 256
    assert call["system"] == "Be brief."
    assert "top_k" not in call
    assert client.total_tokens_used == 15


@pytest.mark.asyncio
async def test_complete_retries_rate_limits():
    """Test transient rate-limit errors are retried."""
    messages = FakeMessages(failures=2)

    assert await make_client(messages).complete(MESSAGES, temperature=0.1) == "Alice"
    assert len(messages.create_calls) == 3


@pytest.mark.asyncio
async def test_complete_gives_up_after_max_retries():
    """Test the last transient error propagates once retries are exhausted."""
    messages = FakeMessages(failures=5)

    with pytest.raises(anthropic.RateLimitError):
        await make_client(messages).complete(MESSAGES, temperature=0.1)
    assert len(messages.create_calls) == 3


@pytest.mark.asyncio
async def test_stream_yields_deltas_and_sampling():
    """Test streamed deltas arrive in order and optional sampling is forwarded."""
    messages = FakeMessages(deltas=["Once", " upon", " a time"])
    client = make_client(messages)

    deltas = [d async for d in client.stream(MESSAGES, temperature=0.7, max_tokens=100, top_k=5, top_p=0.9)]

    assert deltas == ["Once", " upon", " a time"]
    call = messages.stream_calls[0]
    assert (call["top_k"], call["top_p"]) == (5, 0.9)
    assert client.total_tokens_used == 15


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
