"""
FinSight Backend — OpenRouter Service Unit Tests (Mocked)
===========================================================

What:  Tests for OpenRouterService over httpx.MockTransport.
Why:   Tests should not make real API calls (costs money, requires network).

What we test:
    ✅ Request shape (model, single user message, bearer key)
    ✅ Completion text returned
    ✅ Timeout / HTTP error / transport error / empty content → UpstreamError
    ✅ Health check against the model listing
    ❌ Real API calls
"""

import json

import httpx
import pytest

from app.exceptions import UpstreamError
from app.services.openrouter_service import OpenRouterService, completion_text


def _service(test_settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenRouterService(test_settings, client=client)


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestCompletionText:
    def test_extracts_content(self):
        assert completion_text(_completion("hi")) == "hi"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"choices": []}, {"choices": [{}]}, {"choices": [{"message": {"content": None}}]}, None, "x"],
    )
    def test_missing_content(self, payload):
        assert completion_text(payload) is None


class TestComplete:
    @pytest.mark.asyncio
    async def test_success_and_request_shape(self, test_settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion('{"ok": true}'))

        service = _service(test_settings, handler)
        result = await service.complete("hello")
        await service.aclose()

        assert result == '{"ok": true}'
        assert seen["url"] == test_settings.openrouter_api_url
        assert seen["auth"] == f"Bearer {test_settings.openrouter_api_key}"
        assert seen["body"] == {
            "model": test_settings.llm_model,
            "messages": [{"role": "user", "content": "hello"}],
        }

    @pytest.mark.asyncio
    async def test_timeout(self, test_settings):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await _service(test_settings, handler).complete("hello")
        assert exc_info.value.reason == "timeout"

    @pytest.mark.asyncio
    async def test_http_error_status(self, test_settings):
        def handler(request):
            return httpx.Response(502, json={"error": {"message": "provider down"}})

        with pytest.raises(UpstreamError) as exc_info:
            await _service(test_settings, handler).complete("hello")
        assert exc_info.value.reason == "request_failed"
        assert exc_info.value.context["status_code"] == 502
        assert "provider down" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_error(self, test_settings):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await _service(test_settings, handler).complete("hello")
        assert exc_info.value.reason == "request_failed"

    @pytest.mark.asyncio
    async def test_non_json_body(self, test_settings):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(UpstreamError):
            await _service(test_settings, handler).complete("hello")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"choices": []}, _completion(""), _completion("   ")])
    async def test_empty_content(self, test_settings, payload):
        def handler(request):
            return httpx.Response(200, json=payload)

        with pytest.raises(UpstreamError) as exc_info:
            await _service(test_settings, handler).complete("hello")
        assert exc_info.value.reason == "empty"
        assert exc_info.value.message == "No content returned from model"


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_models_listing_ok(self, test_settings):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"data": []})

        assert await _service(test_settings, handler).health_check() is True
        assert seen["url"].endswith("/models")

    @pytest.mark.asyncio
    async def test_unreachable(self, test_settings):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        assert await _service(test_settings, handler).health_check() is False
