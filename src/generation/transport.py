"""
Text-generation transports.

Every generated artifact (question sets, feedback messages, analytics
reports) goes through the same request shape:

    TextGenerationRequest(system_instruction, user_prompt, temperature, max_output_tokens)

and comes back as raw text. Transports raise only the generation error
taxonomy so callers can collapse every failure into one fallback path:

- GenerationUnavailable: no credential configured
- GenerationTransportError: network failure, timeout, non-2xx, empty reply

Backends:
- GeminiTextGenerator: google-generativeai
- ChatCompletionsTextGenerator: OpenAI-compatible /chat/completions over httpx
  (plain OpenAI or an Azure OpenAI deployment)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from loguru import logger

from config import Settings, get_settings
from src.core.errors import (
    GenerationError,
    GenerationTransportError,
    GenerationUnavailable,
)
from src.generation.schemas import parse_json_payload


@dataclass(frozen=True)
class TextGenerationRequest:
    """One call to the generative-text collaborator."""

    system_instruction: str
    user_prompt: str
    temperature: float = 0.7
    max_output_tokens: int = 800


class TextGenerator(Protocol):
    name: str

    async def complete(self, request: TextGenerationRequest) -> str: ...


# =============================================================================
# Gemini
# =============================================================================


class GeminiTextGenerator:
    """Gemini backend using google-generativeai."""

    name = "gemini"

    def __init__(self, api_key: str, model_name: str, timeout_seconds: float = 20.0):
        if not api_key:
            raise GenerationUnavailable("Gemini API key required")
        self.api_key = api_key
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self._models: dict[str, Any] = {}
        self._configured = False

    def _model_for(self, system_instruction: str):
        """Lazy-load one GenerativeModel per system instruction."""
        model = self._models.get(system_instruction)
        if model is None:
            import google.generativeai as genai

            if not self._configured:
                genai.configure(api_key=self.api_key)
                self._configured = True
            model = genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=system_instruction,
            )
            self._models[system_instruction] = model
        return model

    async def complete(self, request: TextGenerationRequest) -> str:
        from google.api_core.exceptions import GoogleAPIError

        model = self._model_for(request.system_instruction)
        try:
            response = await asyncio.wait_for(
                model.generate_content_async(
                    request.user_prompt,
                    generation_config={
                        "temperature": request.temperature,
                        "max_output_tokens": request.max_output_tokens,
                    },
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise GenerationTransportError(f"Gemini timed out after {self.timeout_seconds}s") from e
        except GoogleAPIError as e:
            raise GenerationTransportError(f"Gemini API error: {e}") from e

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or has no parts
            raise GenerationTransportError(f"Gemini returned no text: {e}") from e

        if not text:
            raise GenerationTransportError("Empty response from Gemini")
        return text


# =============================================================================
# OpenAI-compatible chat completions
# =============================================================================


class ChatCompletionsTextGenerator:
    """HTTP backend for OpenAI-compatible /chat/completions endpoints."""

    name = "openai"

    def __init__(
        self,
        url: str,
        model: str | None,
        headers: dict[str, str],
        params: dict[str, str] | None = None,
        timeout_seconds: float = 20.0,
        retry_attempts: int = 2,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the chat-completions client.

        Args:
            url: Full URL of the chat completions endpoint
            model: Model name sent in the body (None for Azure deployments)
            headers: Auth headers
            params: Extra query parameters (Azure api-version)
            timeout_seconds: Request timeout
            retry_attempts: Attempts on timeout / 5xx before giving up
            client: Pre-built httpx client (tests)
        """
        self.url = url
        self.model = model
        self.headers = headers
        self.params = params or {}
        self.retry_attempts = max(1, retry_attempts)
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )

    @classmethod
    def for_openai(cls, api_key: str, base_url: str, model: str, **kwargs) -> ChatCompletionsTextGenerator:
        return cls(
            url=f"{base_url.rstrip('/')}/chat/completions",
            model=model,
            headers={"Authorization": f"Bearer {api_key}"},
            **kwargs,
        )

    @classmethod
    def for_azure(
        cls,
        api_key: str,
        endpoint: str,
        deployment: str,
        api_version: str,
        **kwargs,
    ) -> ChatCompletionsTextGenerator:
        generator = cls(
            url=f"{endpoint.rstrip('/')}/openai/deployments/{deployment}/chat/completions",
            model=None,
            headers={"api-key": api_key},
            params={"api-version": api_version},
            **kwargs,
        )
        generator.name = "azure-openai"
        return generator

    async def close(self) -> None:
        await self.client.aclose()

    def _payload(self, request: TextGenerationRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_prompt},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_output_tokens,
        }
        if self.model:
            payload["model"] = self.model
        return payload

    async def complete(self, request: TextGenerationRequest) -> str:
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.post(
                    self.url,
                    json=self._payload(request),
                    headers=self.headers,
                    params=self.params,
                )
                response.raise_for_status()
                return self._extract_content(response.json())

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(f"{self.name} timeout on attempt {attempt + 1}/{self.retry_attempts}")

            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code < 500:
                    # 4xx will not get better on retry
                    raise GenerationTransportError(
                        f"{self.name} rejected request: HTTP {e.response.status_code}"
                    ) from e
                logger.warning(
                    f"{self.name} server error {e.response.status_code} on attempt "
                    f"{attempt + 1}/{self.retry_attempts}"
                )

            except httpx.RequestError as e:
                last_error = e
                logger.warning(f"{self.name} request error on attempt {attempt + 1}/{self.retry_attempts}: {e}")

            except ValueError as e:
                raise GenerationTransportError(f"{self.name} returned a non-JSON envelope") from e

            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(0.5 * 2 ** attempt)

        raise GenerationTransportError(
            f"{self.name} failed after {self.retry_attempts} attempts: {last_error}"
        )

    @staticmethod
    def _extract_content(data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationTransportError("No content in chat completion response") from e
        if not isinstance(content, str) or not content.strip():
            raise GenerationTransportError("No content in chat completion response")
        return content


# =============================================================================
# Factory & Diagnostics
# =============================================================================


def build_text_generator(settings: Settings | None = None) -> TextGenerator | None:
    """
    Build the configured backend, or None when no credential is available.

    Azure is preferred over plain OpenAI when both are configured.
    """
    settings = settings or get_settings()
    if not settings.has_ai_configured():
        logger.info("No generation provider configured; using offline content")
        return None

    timeout = settings.ai_request_timeout_seconds
    use_gemini = settings.ai_provider == "gemini" or (
        settings.ai_provider == "auto" and settings.has_gemini_configured()
    )
    if use_gemini:
        logger.info(f"Generation provider: Gemini ({settings.ai_model})")
        return GeminiTextGenerator(settings.gemini_api_key, settings.ai_model, timeout_seconds=timeout)

    if settings.azure_openai_api_key and settings.azure_openai_endpoint:
        logger.info(f"Generation provider: Azure OpenAI ({settings.azure_openai_deployment})")
        return ChatCompletionsTextGenerator.for_azure(
            api_key=settings.azure_openai_api_key,
            endpoint=settings.azure_openai_endpoint,
            deployment=settings.azure_openai_deployment,
            api_version=settings.azure_openai_api_version,
            timeout_seconds=timeout,
        )

    logger.info(f"Generation provider: OpenAI-compatible ({settings.openai_model})")
    return ChatCompletionsTextGenerator.for_openai(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
        timeout_seconds=timeout,
    )


async def check_connection(generator: TextGenerator | None) -> dict[str, Any]:
    """
    Send a tiny JSON request and report whether the round trip works.

    Returns {"success": bool, "error": str | None, "response": str | None}.
    """
    if generator is None:
        return {"success": False, "error": "AI not configured - no API key found", "response": None}

    request = TextGenerationRequest(
        system_instruction="You are a helpful assistant. Respond with valid JSON only.",
        user_prompt='Generate a simple test response in JSON format: {"test": "success", "message": "AI is working"}',
        temperature=0.1,
        max_output_tokens=100,
    )
    try:
        text = await generator.complete(request)
        parse_json_payload(text)
    except GenerationError as e:
        logger.warning(f"AI connection test failed: {e}")
        return {"success": False, "error": str(e), "response": None}

    return {"success": True, "error": None, "response": text}
