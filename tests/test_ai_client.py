"""Tests for the chat completion client: sandbox mode and provider error mapping."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from services.ai_client import (
    SANDBOX_MODEL,
    SANDBOX_PAYLOAD,
    AIConfigurationError,
    AIRateLimitError,
    AIUpstreamError,
    ChatCompletionClient,
    new_request_id,
)

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]
_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _fake_completion(content='{"ok": true}'):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model="gpt-4o-mini-2024",
        usage=SimpleNamespace(prompt_tokens=11, completion_tokens=22, total_tokens=33),
    )


def _live_client(create):
    client = ChatCompletionClient(api_key="sk-live-123")
    client._client.chat.completions.create = create
    return client


class TestConstruction:
    def test_missing_key_is_a_configuration_error(self):
        with pytest.raises(AIConfigurationError):
            ChatCompletionClient(api_key=None)

    def test_sandbox_detection(self):
        assert ChatCompletionClient(api_key="sk-test-abc").sandbox is True
        assert ChatCompletionClient(api_key="sk-live-abc").sandbox is False

    def test_custom_sandbox_prefix(self):
        assert ChatCompletionClient(api_key="demo-1", sandbox_prefix="demo-").sandbox is True


class TestSandbox:
    async def test_returns_canned_payload_without_network(self):
        client = ChatCompletionClient(api_key="sk-test-abc")
        create = AsyncMock()
        client._client.chat.completions.create = create

        first = await client.complete(MESSAGES)
        second = await client.complete(MESSAGES)

        create.assert_not_called()
        assert first.content == second.content
        assert json.loads(first.content) == SANDBOX_PAYLOAD
        assert first.model == SANDBOX_MODEL
        assert first.usage.prompt_tokens == 150
        assert first.usage.completion_tokens == 200
        assert first.usage.total_tokens == 350

    async def test_each_call_gets_fresh_request_id(self):
        client = ChatCompletionClient(api_key="sk-test-abc")
        first = await client.complete(MESSAGES)
        second = await client.complete(MESSAGES)
        assert first.request_id != second.request_id
        assert first.request_id.startswith("ai_")


class TestLiveCalls:
    async def test_passes_generation_parameters(self):
        create = AsyncMock(return_value=_fake_completion())
        client = _live_client(create)

        result = await client.complete(MESSAGES, response_format="json_object")

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.6
        assert kwargs["top_p"] == 0.8
        assert kwargs["frequency_penalty"] == 0.2
        assert kwargs["messages"] == MESSAGES
        assert result.content == '{"ok": true}'
        assert result.usage.total_tokens == 33
        assert result.model == "gpt-4o-mini-2024"

    async def test_empty_choices_give_empty_content(self):
        completion = _fake_completion()
        completion.choices = []
        client = _live_client(AsyncMock(return_value=completion))
        result = await client.complete(MESSAGES)
        assert result.content == ""

    async def test_rate_limit_is_distinguished(self):
        error = openai.RateLimitError(
            "slow down",
            response=httpx.Response(429, request=_REQUEST),
            body=None,
        )
        client = _live_client(AsyncMock(side_effect=error))
        with pytest.raises(AIRateLimitError) as exc_info:
            await client.complete(MESSAGES)
        assert exc_info.value.request_id.startswith("ai_")

    async def test_provider_error_is_upstream(self):
        error = openai.InternalServerError(
            "boom",
            response=httpx.Response(500, request=_REQUEST),
            body=None,
        )
        client = _live_client(AsyncMock(side_effect=error))
        with pytest.raises(AIUpstreamError) as exc_info:
            await client.complete(MESSAGES)
        assert not isinstance(exc_info.value, AIRateLimitError)

    async def test_connection_error_is_upstream(self):
        client = _live_client(AsyncMock(side_effect=openai.APIConnectionError(request=_REQUEST)))
        with pytest.raises(AIUpstreamError):
            await client.complete(MESSAGES)

    async def test_unexpected_error_is_upstream(self):
        client = _live_client(AsyncMock(side_effect=RuntimeError("socket closed")))
        with pytest.raises(AIUpstreamError):
            await client.complete(MESSAGES)


def test_request_id_format():
    parts = new_request_id("draft").split("_")
    assert parts[0] == "draft"
    assert parts[1].isdigit()
    assert len(parts[2]) == 9
