"""
Retrying, caching client for the external text-transformation service.

This module provides the CallClient that sits between the orchestrator and
the provider variants. It adds to the bare ``invoke`` capability:

    - a per-call timeout and bounded retries with exponential backoff
    - parsing of fenced or bare JSON responses into tagged results
    - a content-addressed response cache consulted before every call
    - batched processing where one failed batch degrades only its own items

Expected failures (provider errors after all retries, unparseable
responses) are returned as ``Err`` values; only unexpected errors raise.

Author: ai-i18n contributors
License: MIT
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from ..config.logging_config import get_logger
from ..config.settings import (
    LLM_RETRY_BASE_DELAY,
    LLM_RETRY_COUNT,
    LLM_TIMEOUT_SECONDS,
    TRANSLATION_BATCH_SIZE,
)
from ..core.errors import ParseError, ProviderCallError
from ..core.models import ExtractionRecord
from ..core.result import PARSE_ERROR, PROVIDER_ERROR, Err, Ok, Result
from ..core.string_utils import extract_fenced_json
from .cache import ResponseCache
from .prompts import EXTRACTION_FIELDS, TRANSLATION_FIELDS, build_translation_prompt
from .providers import BaseProvider

# Module-level logger for consistent logging.
logger = get_logger(__name__)

# Call kinds, used as cache key namespaces.
EXTRACTION = "extraction"
TRANSLATION = "translation"

# Prompt used by test_connection().
CONNECTION_TEST_PROMPT = 'Reply with the single word "OK".'

BatchTransform = Callable[[Dict[str, str]], Awaitable[Result]]


@dataclass
class BatchResult:
    """
    Outcome of a batched operation.

    Attributes:
        values: Output value for every input key, in input order. Items of a
            failed batch carry their original value.
        failed_batches: Number of batches whose call failed.
        degraded_keys: Keys that fell back to their original value.
    """
    values: Dict[str, str] = field(default_factory=dict)
    failed_batches: int = 0
    degraded_keys: List[str] = field(default_factory=list)


class CallClient:
    """
    Client wrapping one provider per task with timeout, retry and caching.

    Args:
        provider: Provider used for extraction calls.
        cache: Response cache, or None to disable caching.
        translation_provider: Provider used for translation calls; defaults
            to ``provider``.
        max_retries: Additional attempts after a failed call.
        retry_base_delay: Backoff base in seconds; the delay after attempt n
            (0-based) is ``retry_base_delay * 2 ** n``.
        timeout: Timeout in seconds applied to every single call.
        sleep: Awaitable sleep function, replaceable in tests.
    """

    def __init__(
        self,
        provider: BaseProvider,
        cache: Optional[ResponseCache] = None,
        translation_provider: Optional[BaseProvider] = None,
        max_retries: int = LLM_RETRY_COUNT,
        retry_base_delay: float = LLM_RETRY_BASE_DELAY,
        timeout: float = LLM_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.translation_provider = translation_provider or provider
        self.cache = cache
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.timeout = timeout
        self._sleep = sleep

    # =========================================================================
    # RAW CALLS
    # =========================================================================

    async def invoke_with_retry(
        self,
        prompt: str,
        max_retries: Optional[int] = None,
        provider: Optional[BaseProvider] = None,
    ) -> str:
        """
        Call the provider, retrying failed attempts with exponential backoff.

        Every error raised by the provider (network, timeout, rate limit,
        HTTP status) is retryable. The provider is called at most
        ``1 + max_retries`` times.

        Args:
            prompt: Prompt to send.
            max_retries: Overrides the client's retry count for this call.
            provider: Overrides the extraction provider for this call.

        Returns:
            str: Raw response text.

        Raises:
            ProviderCallError: When every attempt failed. The last provider
                error is chained as the cause.
        """
        retries = self.max_retries if max_retries is None else max_retries
        provider = provider or self.provider
        attempts = retries + 1
        last_error: Optional[BaseException] = None

        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(provider.invoke(prompt), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(
                    f"Attempt {attempt + 1}/{attempts} timed out after {self.timeout}s"
                )
            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt + 1}/{attempts} failed: {e}")

            # Only sleep if we're going to retry
            if attempt < retries:
                delay = self.retry_base_delay * 2 ** attempt
                logger.debug(f"Retrying in {delay:.1f}s")
                await self._sleep(delay)

        raise ProviderCallError(
            f"Provider call failed after {attempts} attempts: {last_error or 'timeout'}",
            provider=getattr(provider, "name", ""),
            model=getattr(provider, "model", ""),
            attempts=attempts,
            status=getattr(last_error, "status", None),
        ) from last_error

    @staticmethod
    def parse_structured_response(raw: str, required_fields: Sequence[str] = ()) -> Result:
        """
        Parse a JSON object out of a raw response.

        The payload may be wrapped in a fenced code block. A response that is
        not a JSON object, or lacks any required field, is a parse error:
        no partial result is returned.

        Args:
            raw: Raw provider text.
            required_fields: Top-level fields that must be present.

        Returns:
            Result: Ok(dict) or Err(PARSE_ERROR, ...).

        Example:
            >>> CallClient.parse_structured_response('```json\\n{"a": 1}\\n```', ["a"])
            Ok(value={'a': 1})
        """
        payload = extract_fenced_json(raw or "")
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            error = ParseError(f"Invalid JSON in response: {e.msg}", {"position": e.pos})
            return Err(PARSE_ERROR, error.message, error)

        if not isinstance(data, dict):
            error = ParseError("Response is not a JSON object")
            return Err(PARSE_ERROR, error.message, error)

        missing = [name for name in required_fields if name not in data]
        if missing:
            error = ParseError(f"Response is missing fields: {', '.join(missing)}")
            return Err(PARSE_ERROR, error.message, error)

        return Ok(data)

    # =========================================================================
    # CACHED TASK CALLS
    # =========================================================================

    async def _cached_call(
        self,
        prompt: str,
        kind: str,
        provider: BaseProvider,
        required_fields: Sequence[str],
        convert: Callable[[Dict[str, Any]], Any],
    ) -> Result:
        """
        Answer a prompt from the cache or through the provider.

        ``convert`` turns the parsed response into the cached value; it
        raises ParseError when the response has the wrong shape.
        """
        key = ResponseCache.cache_key(prompt, kind)

        # Checks the cache first; population below happens without an await
        # between the miss and the set.
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit for {kind} call")
                return Ok(cached)

        try:
            raw = await self.invoke_with_retry(prompt, provider=provider)
        except ProviderCallError as e:
            return Err(PROVIDER_ERROR, e.message, e)

        parsed = self.parse_structured_response(raw, required_fields)
        if not parsed.ok:
            logger.warning(f"Unusable {kind} response: {parsed.message}")
            return parsed

        try:
            value = convert(parsed.value)
        except ParseError as e:
            logger.warning(f"Unusable {kind} response: {e.message}")
            return Err(PARSE_ERROR, e.message, e)

        if self.cache is not None:
            self.cache.set(key, value)
            await self.cache.persist()
        return Ok(value)

    async def extract(self, prompt: str) -> Result:
        """
        Run an extraction prompt.

        Returns:
            Result: Ok(ExtractionRecord) or Err(PARSE_ERROR | PROVIDER_ERROR).
        """
        result = await self._cached_call(
            prompt, EXTRACTION, self.provider, EXTRACTION_FIELDS, _extraction_value
        )
        if not result.ok:
            return result
        return Ok(ExtractionRecord.from_dict(result.value))

    async def translate(self, prompt: str) -> Result:
        """
        Run a translation prompt.

        Returns:
            Result: Ok(dict of key -> translated text) or Err.
        """
        return await self._cached_call(
            prompt, TRANSLATION, self.translation_provider, TRANSLATION_FIELDS, _translation_value
        )

    # =========================================================================
    # BATCHING
    # =========================================================================

    async def batch_process(
        self,
        items: Dict[str, str],
        batch_size: int,
        transform: BatchTransform,
    ) -> BatchResult:
        """
        Run ``transform`` over fixed-size, ordered batches of items.

        Each batch is one call and one failure domain: when a batch's
        transform returns Err or raises, every item of that batch keeps its
        original value and processing continues with the next batch. Items
        missing from a successful response also keep their original value.

        Args:
            items: Mapping of key to original value.
            batch_size: Maximum number of items per batch.
            transform: Coroutine turning one batch into Ok(dict) or Err.

        Returns:
            BatchResult: A value for every input key.
        """
        result = BatchResult()
        if not items:
            return result

        keys = list(items)
        total_batches = (len(keys) - 1) // batch_size + 1

        for start in range(0, len(keys), batch_size):
            batch = {key: items[key] for key in keys[start:start + batch_size]}
            batch_num = start // batch_size + 1
            logger.info(f"Processing batch {batch_num}/{total_batches} ({len(batch)} items)")

            try:
                outcome = await transform(batch)
            except Exception as e:
                logger.error(f"Batch {batch_num} raised an error: {e}")
                outcome = Err(PROVIDER_ERROR, str(e), e)

            if not outcome.ok:
                logger.warning(
                    f"Batch {batch_num} failed ({outcome.message}); "
                    f"keeping original text for {len(batch)} items"
                )
                result.failed_batches += 1
                result.values.update(batch)
                result.degraded_keys.extend(batch)
                continue

            for key, original in batch.items():
                value = outcome.value.get(key)
                if isinstance(value, str) and value.strip():
                    result.values[key] = value
                else:
                    result.values[key] = original
                    result.degraded_keys.append(key)

        return result

    async def batch_translate(
        self,
        texts: Dict[str, str],
        source_locale: str,
        target_locale: str,
        batch_size: int = TRANSLATION_BATCH_SIZE,
    ) -> BatchResult:
        """
        Translate key -> text entries in batches.

        Example:
            >>> result = await client.batch_translate({"ti_jiao": "提交"}, "zh-CN", "en-US")
            >>> result.values
            {'ti_jiao': 'Submit'}
        """
        async def _translate_batch(batch: Dict[str, str]) -> Result:
            return await self.translate(build_translation_prompt(batch, source_locale, target_locale))

        logger.info(f"Translating {len(texts)} texts from {source_locale} to {target_locale}")
        return await self.batch_process(texts, batch_size, _translate_batch)

    async def test_connection(self) -> bool:
        """Tell whether the extraction provider answers a trivial prompt."""
        try:
            await self.invoke_with_retry(CONNECTION_TEST_PROMPT, max_retries=0)
        except ProviderCallError as e:
            logger.error(f"Connection test failed: {e}")
            return False
        logger.info(f"Connection test succeeded for {getattr(self.provider, 'name', 'provider')}")
        return True


def _extraction_value(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a parsed extraction response into ExtractionRecord fields."""
    texts = data["extractedTexts"]
    code = data["transformedCode"]
    if not isinstance(texts, dict) or not isinstance(code, str):
        raise ParseError("extractedTexts must be an object and transformedCode a string")
    if not code.strip():
        raise ParseError("transformedCode is empty")
    if any(not isinstance(text, str) for text in texts.values()):
        raise ParseError("extractedTexts values must be strings")
    return ExtractionRecord(placeholder_text=dict(texts), transformed_content=code).to_dict()


def _translation_value(data: Dict[str, Any]) -> Dict[str, str]:
    """Convert a parsed translation response into a key -> text mapping."""
    translations = data["translations"]
    if not isinstance(translations, dict):
        raise ParseError("translations must be an object")
    return {str(key): value for key, value in translations.items() if isinstance(value, str)}
