from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod

import anthropic
import openai
from openai import AzureOpenAI, OpenAI

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

_RATE_LIMIT_MARKER = re.compile(r"rate limit", re.IGNORECASE)
_RETRY_AFTER_PATTERN = re.compile(r"try again in\s+(?:(\d+)m)?(\d+(?:\.\d+)?)s", re.IGNORECASE)


class ModelError(RuntimeError):
    """Provider call failed; message carries the provider's text."""


class RateLimitedError(ModelError):
    def __init__(self, message: str, wait_seconds: float | None = None) -> None:
        super().__init__(message)
        self.wait_seconds = wait_seconds


class ModelUnavailableError(ModelError):
    """Raised when no provider is configured in the current environment."""


def parse_retry_after(message: str) -> float | None:
    """Return the suggested wait from "Please try again in 1m2.5s" style text."""
    match = _RETRY_AFTER_PATTERN.search(message or "")
    if not match:
        return None
    minutes = int(match.group(1)) if match.group(1) else 0
    return minutes * 60 + float(match.group(2))


def classify_provider_error(exc: BaseException) -> ModelError:
    """Map any SDK exception onto the typed ModelError taxonomy."""
    if isinstance(exc, ModelError):
        return exc
    message = str(exc) or exc.__class__.__name__
    is_rate_limited = (
        isinstance(exc, (openai.RateLimitError, anthropic.RateLimitError))
        or getattr(exc, "status_code", None) == 429
        or bool(_RATE_LIMIT_MARKER.search(message))
    )
    if is_rate_limited:
        return RateLimitedError(message, wait_seconds=parse_retry_after(message))
    return ModelError(message)


class LLMClient(ABC):
    @abstractmethod
    def complete(self, prompt: str, max_output_tokens: int) -> str:
        raise NotImplementedError


class _BaseProviderAdapter(LLMClient):
    def __init__(self, model: str, temperature: float = 0.2, timeout: int = 30) -> None:
        self.model = model
        self.temperature = temperature
        self.timeout = timeout

    @abstractmethod
    def _completion(self, prompt: str, max_output_tokens: int) -> str:
        raise NotImplementedError

    def complete(self, prompt: str, max_output_tokens: int) -> str:
        try:
            content = self._completion(prompt, max_output_tokens)
        except Exception as exc:
            error = classify_provider_error(exc)
            logger.error("%s call to %s failed: %s", self.__class__.__name__, self.model, error)
            raise error from exc
        if not content or not content.strip():
            raise ModelError("LLM returned empty content.")
        return content


class _ChatCompletionsAdapter(_BaseProviderAdapter):
    client: OpenAI

    def _completion(self, prompt: str, max_output_tokens: int) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            max_tokens=max_output_tokens,
            messages=[{"role": "user", "content": prompt}],
            timeout=self.timeout,
        )
        return response.choices[0].message.content or ""


class OpenAIClient(_ChatCompletionsAdapter):
    def __init__(self, api_key: str, model: str) -> None:
        super().__init__(model=model)
        self.client = OpenAI(api_key=api_key)


class GroqClient(_ChatCompletionsAdapter):
    def __init__(self, api_key: str, model: str) -> None:
        super().__init__(model=model)
        self.client = OpenAI(api_key=api_key, base_url=GROQ_BASE_URL)


class AzureOpenAIClient(_ChatCompletionsAdapter):
    def __init__(self, endpoint: str, api_key: str, deployment: str) -> None:
        super().__init__(model=deployment)
        self.client = AzureOpenAI(api_key=api_key, azure_endpoint=endpoint, api_version="2024-02-15-preview")


class AnthropicClient(_BaseProviderAdapter):
    def __init__(self, api_key: str, model: str) -> None:
        super().__init__(model=model)
        self.client = anthropic.Anthropic(api_key=api_key)

    def _completion(self, prompt: str, max_output_tokens: int) -> str:
        msg = self.client.messages.create(
            model=self.model,
            max_tokens=max_output_tokens,
            temperature=self.temperature,
            messages=[{"role": "user", "content": prompt}],
            timeout=self.timeout,
        )
        return "".join(block.text for block in msg.content if getattr(block, "type", "") == "text")


def create_llm_client_from_env(provider: str | None = None) -> LLMClient:
    provider = (provider or os.getenv("AI_PROVIDER", "groq")).strip().lower()

    groq_key = os.getenv("GROQ_API_KEY", "").strip()
    groq_model = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant").strip()

    openai_key = os.getenv("OPENAI_API_KEY", "").strip()
    openai_model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()

    azure_endpoint = os.getenv("AZURE_OPENAI_ENDPOINT", "").strip()
    azure_key = os.getenv("AZURE_OPENAI_API_KEY", "").strip()
    azure_deployment = os.getenv("AZURE_OPENAI_DEPLOYMENT", "").strip()

    anthropic_key = os.getenv("ANTHROPIC_API_KEY", "").strip()
    anthropic_model = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514").strip()

    if provider == "groq":
        if groq_key:
            return GroqClient(api_key=groq_key, model=groq_model)
        raise ModelUnavailableError("GROQ_API_KEY is not set.")

    if provider == "openai":
        if openai_key:
            return OpenAIClient(api_key=openai_key, model=openai_model)
        raise ModelUnavailableError("OPENAI_API_KEY is not set.")

    if provider == "azure":
        if azure_endpoint and azure_key and azure_deployment:
            return AzureOpenAIClient(endpoint=azure_endpoint, api_key=azure_key, deployment=azure_deployment)
        if openai_key:
            return OpenAIClient(api_key=openai_key, model=openai_model)
        raise ModelUnavailableError("Azure configuration missing and OpenAI fallback is not configured.")

    if provider == "anthropic":
        if anthropic_key:
            return AnthropicClient(api_key=anthropic_key, model=anthropic_model)
        raise ModelUnavailableError("ANTHROPIC_API_KEY is not set.")

    raise ModelUnavailableError("Unsupported AI_PROVIDER. Use 'groq', 'openai', 'azure' or 'anthropic'.")
