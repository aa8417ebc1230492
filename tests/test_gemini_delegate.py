import asyncio
import json

import httpx
import pytest

from product_analyzer.delegates import GeminiDelegate
from product_analyzer.exceptions import (
    InvalidCredentialsError,
    MalformedUpstreamResponseError,
    UpstreamAPIError,
    UpstreamUnavailableError,
)

from conftest import gemini_success


class RecordingHandler:
    """MockTransport handler that records requests and answers per model."""

    def __init__(self, primary=None, fallback=None):
        self.requests = []
        self.primary = primary or (lambda request: gemini_success('{"Product name": "Widget"}'))
        self.fallback = fallback or (lambda request: gemini_success('{"Product name": "Widget"}'))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("gemini-2.5-pro:generateContent"):
            return self.primary(request)
        return self.fallback(request)


def _connect_error(request):
    raise httpx.ConnectError("connection refused", request=request)


def _analyze(handler, api_key="test-key", prompt="Analyze Widget X"):
    async def run():
        async with GeminiDelegate(transport=httpx.MockTransport(handler)) as gemini:
            text = await gemini.analyze(prompt, api_key)
            return text, gemini.last_model
    return asyncio.run(run())


def test_successful_call_returns_raw_text():
    handler = RecordingHandler()
    text, model = _analyze(handler)

    assert text == '{"Product name": "Widget"}'
    assert model == "gemini-2.5-pro"
    assert len(handler.requests) == 1

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.headers["X-goog-api-key"] == "test-key"
    body = json.loads(request.content)
    assert body["contents"] == [{"role": "user", "parts": [{"text": "Analyze Widget X"}]}]
    generation = body["generationConfig"]
    assert generation["temperature"] == 0.7
    assert generation["topK"] == 40
    assert generation["topP"] == 0.95
    assert generation["maxOutputTokens"] == 2048
    assert generation["responseMimeType"] == "application/json"
    assert "Product name" in generation["responseSchema"]["properties"]


def test_transport_failure_retries_once_on_fallback_model():
    handler = RecordingHandler(primary=_connect_error)
    text, model = _analyze(handler)

    assert text == '{"Product name": "Widget"}'
    assert model == "gemini-2.5-flash"
    assert len(handler.requests) == 2
    first, second = handler.requests
    assert first.url.path.endswith("/models/gemini-2.5-pro:generateContent")
    assert second.url.path.endswith("/models/gemini-2.5-flash:generateContent")
    assert json.loads(first.content) == json.loads(second.content)


def test_both_models_unreachable():
    handler = RecordingHandler(primary=_connect_error, fallback=_connect_error)

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        _analyze(handler)

    assert len(handler.requests) == 2
    assert excinfo.value.models == ["gemini-2.5-pro", "gemini-2.5-flash"]


def test_error_status_uses_envelope_message_without_fallback():
    handler = RecordingHandler(
        primary=lambda request: httpx.Response(403, json={"error": {"code": 403, "message": "API key not valid."}}),
    )

    with pytest.raises(UpstreamAPIError) as excinfo:
        _analyze(handler)

    assert excinfo.value.status == 403
    assert excinfo.value.message == "API key not valid."
    assert len(handler.requests) == 1


def test_error_status_on_fallback_after_transport_failure():
    handler = RecordingHandler(
        primary=_connect_error,
        fallback=lambda request: httpx.Response(503, text="upstream down"),
    )

    with pytest.raises(UpstreamAPIError) as excinfo:
        _analyze(handler)

    assert excinfo.value.status == 503
    assert excinfo.value.message == "Service Unavailable"


@pytest.mark.parametrize("body", [
    {},
    {"candidates": []},
    {"candidates": [{"finishReason": "SAFETY"}]},
    {"candidates": [{"content": {"parts": []}}]},
    {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
])
def test_malformed_success_body(body):
    handler = RecordingHandler(primary=lambda request: httpx.Response(200, json=body))

    with pytest.raises(MalformedUpstreamResponseError):
        _analyze(handler)


def test_missing_api_key_fails_before_sending():
    handler = RecordingHandler()

    with pytest.raises(InvalidCredentialsError):
        _analyze(handler, api_key="")

    assert handler.requests == []
