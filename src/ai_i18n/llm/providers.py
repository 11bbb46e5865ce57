"""
Provider variants for the external text-transformation service.

Each provider wraps one LLM HTTP API behind the same capability,
``async invoke(prompt) -> str``. The set of variants is closed and selected
through ``create_provider`` from the ``llm.provider`` setting:

    - openai: OpenAI-compatible chat completions API
    - anthropic: Anthropic messages API
    - ollama: local Ollama chat API

Requests are made with aiohttp. Any network error, HTTP error status or
unexpected response shape is raised as ProviderCallError, which the
CallClient treats as retryable.

Author: ai-i18n contributors
License: MIT
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict

import aiohttp

from ..config.logging_config import get_logger
from ..config.schema import LLMConfig
from ..config.settings import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_BASE_URL,
    LLM_MAX_TOKENS,
    LLM_TIMEOUT_SECONDS,
    OLLAMA_BASE_URL,
    OPENAI_BASE_URL,
)
from ..core.errors import ConfigurationError, ProviderCallError

# Initialize module logger
logger = get_logger(__name__)


class ProviderType(str, Enum):
    """Supported provider variants."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class BaseProvider(ABC):
    """
    Common HTTP plumbing of the provider variants.

    Subclasses define the endpoint, headers, request payload and how the
    generated text is read from the response body.

    Args:
        model: Model name sent with every request.
        base_url: API base URL without trailing slash.
        api_key: API key (unused by Ollama).
        temperature: Sampling temperature.
        max_tokens: Maximum number of generated tokens.
        timeout: Total request timeout in seconds.
    """

    provider_type: ProviderType

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str = "",
        temperature: float = 0.0,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.provider_type.value

    @abstractmethod
    def endpoint(self) -> str:
        """Return the URL requests are posted to."""

    @abstractmethod
    def build_payload(self, prompt: str) -> Dict[str, Any]:
        """Return the JSON request body for a prompt."""

    @abstractmethod
    def read_text(self, body: Dict[str, Any]) -> str:
        """Return the generated text from a decoded response body."""

    def headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def invoke(self, prompt: str) -> str:
        """
        Send a prompt and return the generated text.

        Args:
            prompt: Complete prompt text.

        Returns:
            str: The raw text produced by the model.

        Raises:
            ProviderCallError: On connection errors, HTTP status >= 400 or
                a response body without generated text.
        """
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers(),
            ) as session:
                async with session.post(self.endpoint(), json=self.build_payload(prompt)) as response:
                    if response.status >= 400:
                        detail = await response.text()
                        raise ProviderCallError(
                            f"{self.name} returned HTTP {response.status}: {detail[:200]}",
                            provider=self.name,
                            model=self.model,
                            status=response.status,
                        )
                    body = await response.json(content_type=None)

        # Handle connection-related and payload errors
        except aiohttp.ClientError as e:
            raise ProviderCallError(
                f"Connection error calling {self.name}: {e}",
                provider=self.name,
                model=self.model,
            ) from e

        try:
            text = self.read_text(body)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderCallError(
                f"Unexpected response shape from {self.name}: {e}",
                provider=self.name,
                model=self.model,
            ) from e

        logger.debug(f"{self.name}/{self.model} returned {len(text)} characters")
        return text


class OpenAIProvider(BaseProvider):
    """OpenAI-compatible chat completions API."""

    provider_type = ProviderType.OPENAI

    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def headers(self) -> Dict[str, str]:
        headers = super().headers()
        headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def read_text(self, body: Dict[str, Any]) -> str:
        return body["choices"][0]["message"]["content"]


class AnthropicProvider(BaseProvider):
    """Anthropic messages API."""

    provider_type = ProviderType.ANTHROPIC

    def endpoint(self) -> str:
        return f"{self.base_url}/messages"

    def headers(self) -> Dict[str, str]:
        headers = super().headers()
        headers["x-api-key"] = self.api_key
        headers["anthropic-version"] = ANTHROPIC_API_VERSION
        return headers

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def read_text(self, body: Dict[str, Any]) -> str:
        # The response content is a list of blocks; only text blocks count.
        return "".join(
            block["text"] for block in body["content"] if block.get("type") == "text"
        )


class OllamaProvider(BaseProvider):
    """Local Ollama chat API (non-streaming)."""

    provider_type = ProviderType.OLLAMA

    def endpoint(self) -> str:
        return f"{self.base_url}/api/chat"

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }

    def read_text(self, body: Dict[str, Any]) -> str:
        return body["message"]["content"]


# Provider class and default base URL for each variant.
PROVIDERS = {
    ProviderType.OPENAI: (OpenAIProvider, OPENAI_BASE_URL),
    ProviderType.ANTHROPIC: (AnthropicProvider, ANTHROPIC_BASE_URL),
    ProviderType.OLLAMA: (OllamaProvider, OLLAMA_BASE_URL),
}

# Variants that cannot be called without an API key.
REQUIRES_API_KEY = {ProviderType.OPENAI, ProviderType.ANTHROPIC}


def create_provider(llm_config: LLMConfig, task: str = "extraction") -> BaseProvider:
    """
    Create the provider variant configured for a task.

    Args:
        llm_config: LLM section of the run configuration.
        task: "extraction" or "translation"; selects the per-task model,
            temperature and token overrides.

    Returns:
        BaseProvider: A ready-to-use provider.

    Raises:
        ConfigurationError: If the provider name is unknown or a hosted
            provider has no API key.

    Example:
        >>> provider = create_provider(LLMConfig(provider="ollama", model="qwen2.5"))
        >>> provider.endpoint()
        'http://localhost:11434/api/chat'
    """
    config = llm_config.for_task(task)

    try:
        provider_type = ProviderType(config.provider)
    except ValueError:
        raise ConfigurationError(
            f"Unsupported LLM provider: {config.provider}",
            [f"llm.provider must be one of {[p.value for p in ProviderType]}"],
        ) from None

    if provider_type in REQUIRES_API_KEY and not config.api_key:
        raise ConfigurationError(
            f"Missing API key for provider {provider_type.value}",
            ["set llm.api_key or the AI_I18N_LLM_API_KEY environment variable"],
        )

    provider_class, default_url = PROVIDERS[provider_type]
    logger.debug(f"Using {provider_type.value} provider with model {config.model} for {task}")
    return provider_class(
        model=config.model,
        base_url=config.base_url or default_url,
        api_key=config.api_key,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )
