"""
Unit tests for the text-generation transports.
"""

import pytest
import pytest_asyncio
from httpx import HTTPStatusError, Request, Response, TimeoutException

from config import Settings
from src.core.errors import GenerationTransportError, GenerationUnavailable
from src.generation.transport import (
    ChatCompletionsTextGenerator,
    GeminiTextGenerator,
    TextGenerationRequest,
    build_text_generator,
    check_connection,
)


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def request_():
    return TextGenerationRequest(
        system_instruction="Respond with JSON.",
        user_prompt="Say hi",
        temperature=0.5,
        max_output_tokens=50,
    )


@pytest_asyncio.fixture
async def client():
    """OpenAI-compatible client instance."""
    client = ChatCompletionsTextGenerator.for_openai(
        api_key="sk-test",
        base_url="https://api.example.com/v1/",
        model="gpt-4o-mini",
        retry_attempts=3,
    )
    yield client
    await client.close()


class TestChatCompletionsTextGenerator:
    """Tests for the httpx chat-completions backend."""

    @pytest.mark.asyncio
    async def test_complete_success(self, client, request_, monkeypatch):
        """Test request shape and content extraction."""
        seen = {}

        async def mock_post(url, **kwargs):
            seen["url"] = url
            seen.update(kwargs)
            return Response(200, json=completion('{"ok": true}'), request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        text = await client.complete(request_)

        assert text == '{"ok": true}'
        assert seen["url"] == "https://api.example.com/v1/chat/completions"
        assert seen["headers"] == {"Authorization": "Bearer sk-test"}
        assert seen["json"]["model"] == "gpt-4o-mini"
        assert seen["json"]["max_tokens"] == 50
        assert seen["json"]["messages"][0] == {"role": "system", "content": "Respond with JSON."}

    @pytest.mark.asyncio
    async def test_timeout_retry(self, client, request_, monkeypatch):
        """Test retry logic on timeout."""
        call_count = 0

        async def mock_post(url, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise TimeoutException("Timeout")
            return Response(200, json=completion("[]"), request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)
        monkeypatch.setattr("src.generation.transport.asyncio.sleep", _no_sleep)

        assert await client.complete(request_) == "[]"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_server_error_retry(self, client, request_, monkeypatch):
        """Test retry logic on 5xx server errors."""
        call_count = 0

        async def mock_post(url, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                return Response(503, json={"error": "busy"}, request=Request("POST", url))
            return Response(200, json=completion("[]"), request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)
        monkeypatch.setattr("src.generation.transport.asyncio.sleep", _no_sleep)

        assert await client.complete(request_) == "[]"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_client_error_no_retry(self, client, request_, monkeypatch):
        """Test that 4xx errors don't trigger retries."""
        call_count = 0

        async def mock_post(url, **kwargs):
            nonlocal call_count
            call_count += 1
            response = Response(401, json={"error": "bad key"}, request=Request("POST", url))
            raise HTTPStatusError("Client error", request=response.request, response=response)

        monkeypatch.setattr(client.client, "post", mock_post)

        with pytest.raises(GenerationTransportError):
            await client.complete(request_)

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_all_retries_exhausted(self, client, request_, monkeypatch):
        """Test behavior when all retries are exhausted."""
        call_count = 0

        async def mock_post(url, **kwargs):
            nonlocal call_count
            call_count += 1
            raise TimeoutException("Timeout")

        monkeypatch.setattr(client.client, "post", mock_post)
        monkeypatch.setattr("src.generation.transport.asyncio.sleep", _no_sleep)

        with pytest.raises(GenerationTransportError):
            await client.complete(request_)

        assert call_count == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"choices": []}, completion(""), {"unexpected": 1}])
    async def test_missing_content(self, client, request_, monkeypatch, body):
        async def mock_post(url, **kwargs):
            return Response(200, json=body, request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        with pytest.raises(GenerationTransportError):
            await client.complete(request_)

    @pytest.mark.asyncio
    async def test_non_json_envelope(self, client, request_, monkeypatch):
        async def mock_post(url, **kwargs):
            return Response(200, text="<html>oops</html>", request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        with pytest.raises(GenerationTransportError):
            await client.complete(request_)

    @pytest.mark.asyncio
    async def test_azure_url_and_headers(self):
        azure = ChatCompletionsTextGenerator.for_azure(
            api_key="az-key",
            endpoint="https://kq.openai.azure.com/",
            deployment="gpt-35-turbo",
            api_version="2024-02-15-preview",
        )
        try:
            assert azure.name == "azure-openai"
            assert azure.url == "https://kq.openai.azure.com/openai/deployments/gpt-35-turbo/chat/completions"
            assert azure.headers == {"api-key": "az-key"}
            assert azure.params == {"api-version": "2024-02-15-preview"}
            assert "model" not in azure._payload(TextGenerationRequest("s", "u"))
        finally:
            await azure.close()


async def _no_sleep(_seconds):
    return None


class TestFactory:
    """Tests for provider selection."""

    def test_none_when_unconfigured(self, settings):
        assert build_text_generator(settings) is None

    def test_gemini_preferred_in_auto(self):
        settings = Settings(_env_file=None, ai_provider="auto", gemini_api_key="g-key", openai_api_key="o-key")

        assert isinstance(build_text_generator(settings), GeminiTextGenerator)

    def test_openai_selected(self):
        settings = Settings(_env_file=None, ai_provider="openai", gemini_api_key="g-key", openai_api_key="o-key")

        generator = build_text_generator(settings)

        assert isinstance(generator, ChatCompletionsTextGenerator)
        assert generator.name == "openai"

    def test_provider_none_disables(self):
        settings = Settings(_env_file=None, ai_provider="none", gemini_api_key="g-key")

        assert build_text_generator(settings) is None

    def test_gemini_requires_key(self):
        with pytest.raises(GenerationUnavailable):
            GeminiTextGenerator(api_key="", model_name="gemini-2.0-flash")


class TestCheckConnection:
    """Tests for the connectivity probe."""

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        result = await check_connection(None)

        assert result["success"] is False
        assert "not configured" in result["error"]

    @pytest.mark.asyncio
    async def test_success(self, client, monkeypatch):
        async def mock_post(url, **kwargs):
            return Response(200, json=completion('{"test": "success"}'), request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        result = await check_connection(client)

        assert result == {"success": True, "error": None, "response": '{"test": "success"}'}

    @pytest.mark.asyncio
    async def test_non_json_reply(self, client, monkeypatch):
        async def mock_post(url, **kwargs):
            return Response(200, json=completion("hello there"), request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        result = await check_connection(client)

        assert result["success"] is False
