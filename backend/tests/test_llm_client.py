"""
Tests for InferenceClient error mapping.

Uses httpx.MockTransport; no real HTTP calls.
"""
import json

import httpx
import pytest

from worship_assistant.services.ai.errors import (
    InferenceNotConfiguredError,
    InferenceRateLimitError,
    InferenceTimeoutError,
    InferenceTransportError,
)
from worship_assistant.services.ai.llm_client import InferenceClient
from worship_assistant.services.ai.schema import ConversationTurn

COMPLETION = {
    "model": "deepseek-chat",
    "choices": [{"message": {"role": "assistant", "content": "  Análise reformada.  "}}],
    "usage": {"prompt_tokens": 120, "completion_tokens": 40, "total_tokens": 160},
}


def _client(handler, api_key="test-key"):
    return InferenceClient(
        api_base="https://inference.test/v1/",
        api_key=api_key,
        model="deepseek-chat",
        transport=httpx.MockTransport(handler),
    )


async def _infer(client, **overrides):
    kwargs = dict(
        system_prompt="Você é um teólogo reformado.",
        history=[ConversationTurn(role="user", content="oi"), ConversationTurn(role="assistant", content="olá")],
        user_prompt="PERGUNTA: o que é graça?",
        max_output_tokens=800,
    )
    kwargs.update(overrides)
    return await client.infer(**kwargs)


@pytest.mark.asyncio
async def test_successful_completion():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=COMPLETION)

    result = await _infer(_client(handler))

    assert result.content == "Análise reformada."
    assert result.model == "deepseek-chat"
    assert result.usage.total_tokens == 160
    assert seen["url"] == "https://inference.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["max_tokens"] == 800
    assert [message["role"] for message in seen["body"]["messages"]] == [
        "system",
        "user",
        "assistant",
        "user",
    ]


@pytest.mark.asyncio
async def test_missing_usage_is_none():
    body = {"choices": [{"message": {"content": "ok"}}]}
    result = await _infer(_client(lambda request: httpx.Response(200, json=body)))

    assert result.usage is None
    assert result.model == "deepseek-chat"


@pytest.mark.asyncio
async def test_not_configured_makes_no_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(InferenceNotConfiguredError):
        await _infer(_client(handler, api_key="  "))


@pytest.mark.asyncio
async def test_rate_limit():
    with pytest.raises(InferenceRateLimitError) as exc_info:
        await _infer(_client(lambda request: httpx.Response(429, json={"error": "slow down"})))

    assert exc_info.value.status_code == 429
    assert exc_info.value.error_type == "rate_limited"


@pytest.mark.asyncio
async def test_server_error():
    with pytest.raises(InferenceTransportError) as exc_info:
        await _infer(_client(lambda request: httpx.Response(500, text="internal error")))

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"unexpected": True}),
    ],
)
async def test_malformed_body(response):
    with pytest.raises(InferenceTransportError):
        await _infer(_client(lambda request: response))


@pytest.mark.asyncio
async def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(InferenceTimeoutError) as exc_info:
        await _infer(_client(handler), timeout_seconds=5.0, agent="batch")

    assert exc_info.value.agent == "batch"


@pytest.mark.asyncio
async def test_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(InferenceTransportError) as exc_info:
        await _infer(_client(handler))

    assert not isinstance(exc_info.value, InferenceRateLimitError)
    assert exc_info.value.status_code is None
