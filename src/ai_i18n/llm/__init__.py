"""
LLM access module for the ai-i18n pipeline.

This module provides everything needed to talk to the external
text-transformation service: provider variants, prompt builders, the
content-addressed response cache and the retrying CallClient.

Submodules:
    providers: OpenAI, Anthropic and Ollama providers over aiohttp.
    prompts: Extraction and translation prompt builders.
    cache: ResponseCache with TTL, capacity eviction and persistence.
    client: CallClient with retry, parsing, caching and batching.
"""

from .cache import CacheEntry, ResponseCache
from .client import BatchResult, CallClient, EXTRACTION, TRANSLATION
from .prompts import (
    EXTRACTION_FIELDS,
    TRANSLATION_FIELDS,
    build_extraction_prompt,
    build_translation_prompt,
)
from .providers import (
    ProviderType,
    BaseProvider,
    OpenAIProvider,
    AnthropicProvider,
    OllamaProvider,
    create_provider,
)

__all__ = [
    "CacheEntry",
    "ResponseCache",
    "BatchResult",
    "CallClient",
    "EXTRACTION",
    "TRANSLATION",
    "EXTRACTION_FIELDS",
    "TRANSLATION_FIELDS",
    "build_extraction_prompt",
    "build_translation_prompt",
    "ProviderType",
    "BaseProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "OllamaProvider",
    "create_provider",
]
