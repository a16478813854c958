"""Tests for the Gemini REST client using httpx's mock transport."""

import asyncio
import json

import httpx
import pytest

from pydays.gemini_client import GeminiClient, _to_gemini_schema
from pydays.settings import settings


def _gemini_response(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def ai_studio(monkeypatch):
    monkeypatch.setattr(settings, "gemini_provider", "ai_studio")
    monkeypatch.setattr(settings, "openrouter_api_key", None)


def _run(client, coro):
    async def go():
        try:
            return await coro
        finally:
            await client.aclose()

    return asyncio.run(go())


class TestGeminiClient:
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "gemini_api_key", None)
        with pytest.raises(ValueError):
            GeminiClient()

    def test_generate_sends_prompt_and_key(self, ai_studio):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_response("hello"))

        client = GeminiClient("test-key", model="gemini-test", transport=httpx.MockTransport(handler))
        assert _run(client, client.generate("Say hi", system="Be brief")) == "hello"
        assert "gemini-test:generateContent" in seen["url"]
        assert "key=test-key" in seen["url"]
        assert seen["body"]["contents"][0]["parts"][0]["text"] == "Say hi"
        assert seen["body"]["systemInstruction"]["parts"][0]["text"] == "Be brief"

    def test_generate_json_sends_schema_and_decodes(self, ai_studio):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_response('{"valid": true}'))

        schema = {"title": "check", "type": "object", "properties": {"valid": {"type": "boolean"}}, "additionalProperties": False}
        client = GeminiClient("test-key", transport=httpx.MockTransport(handler))
        assert _run(client, client.generate_json("check", schema)) == {"valid": True}
        config = seen["body"]["generationConfig"]
        assert config["responseMimeType"] == "application/json"
        assert config["responseSchema"] == {"type": "OBJECT", "properties": {"valid": {"type": "BOOLEAN"}}}

    def test_generate_json_rejects_non_json(self, ai_studio):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=_gemini_response("not json")))
        client = GeminiClient("test-key", transport=transport)
        with pytest.raises(ValueError):
            _run(client, client.generate_json("check", {"type": "object"}))

    def test_http_error_without_fallback_raises(self, ai_studio):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "down"}))
        client = GeminiClient("test-key", transport=transport)
        with pytest.raises(httpx.HTTPStatusError):
            _run(client, client.generate("hi"))

    def test_rejected_request_is_sent_once(self, ai_studio):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(400, json={"error": "bad request"})

        client = GeminiClient("test-key", transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.HTTPStatusError):
            _run(client, client.generate("hi"))
        assert len(bodies) == 1
        assert "generationConfig" not in bodies[0]

    def test_openrouter_fallback(self, ai_studio, monkeypatch):
        monkeypatch.setattr(settings, "openrouter_api_key", "router-key")
        seen = {}

        def handler(request):
            if "openrouter" in request.url.host:
                seen["body"] = json.loads(request.content)
                seen["auth"] = request.headers.get("Authorization")
                return httpx.Response(200, json={"choices": [{"message": {"content": '{"valid": false}'}}]})
            return httpx.Response(503)

        client = GeminiClient("test-key", transport=httpx.MockTransport(handler))
        schema = {"title": "syntax_check", "type": "object", "properties": {"valid": {"type": "boolean"}}}
        assert _run(client, client.generate_json("check", schema, system="sys")) == {"valid": False}
        assert seen["auth"] == "Bearer router-key"
        assert seen["body"]["messages"][0] == {"role": "system", "content": "sys"}
        assert seen["body"]["response_format"]["json_schema"]["name"] == "syntax_check"


class TestSchemaConversion:
    def test_nested_types_are_upper_cased(self):
        schema = {
            "type": "object",
            "title": "x",
            "properties": {"tags": {"type": "array", "items": {"type": "string"}}},
            "additionalProperties": False,
        }
        assert _to_gemini_schema(schema) == {
            "type": "OBJECT",
            "properties": {"tags": {"type": "ARRAY", "items": {"type": "STRING"}}},
        }

    def test_nullable_type_list(self):
        schema = {"type": "object", "properties": {"error": {"type": ["string", "null"]}}}
        assert _to_gemini_schema(schema) == {
            "type": "OBJECT",
            "properties": {"error": {"type": "STRING", "nullable": True}},
        }
