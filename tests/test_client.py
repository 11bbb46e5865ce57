"""
Tests for the retrying, caching CallClient.
"""

import asyncio
import json

import pytest

from ai_i18n.core.errors import ProviderCallError
from ai_i18n.core.models import ExtractionRecord
from ai_i18n.core.result import PARSE_ERROR, PROVIDER_ERROR, Err, Ok
from ai_i18n.llm.client import CallClient

from conftest import FakeProvider


def _failing(prompt):
    return ConnectionError("connection reset")


class TestInvokeWithRetry:
    """Tests for retries and backoff."""

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise(self, make_client):
        """Test a provider failing every time is called 1 + max_retries times."""
        provider = FakeProvider(_failing)
        client = make_client(provider, max_retries=2)

        with pytest.raises(ProviderCallError) as excinfo:
            await client.invoke_with_retry("prompt")

        assert len(provider.calls) == 3
        assert excinfo.value.attempts == 3
        assert isinstance(excinfo.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_exponential_backoff(self, make_client):
        """Test the delay doubles and no delay follows the last attempt."""
        client = make_client(FakeProvider(_failing), max_retries=2)

        with pytest.raises(ProviderCallError):
            await client.invoke_with_retry("prompt")

        assert client.recorded_sleeps == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self, make_client):
        """Test a later successful attempt is returned."""
        responses = [ConnectionError("boom"), "OK"]
        provider = FakeProvider(lambda prompt: responses.pop(0))
        client = make_client(provider)

        assert await client.invoke_with_retry("prompt") == "OK"
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_timeout_is_retried(self, make_client):
        """Test a call exceeding the timeout counts as a failed attempt."""
        provider = FakeProvider(lambda prompt: "late", delay=0.2)
        client = make_client(provider, max_retries=1)
        client.timeout = 0.01

        with pytest.raises(ProviderCallError):
            await client.invoke_with_retry("prompt")

        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_connection_check(self, make_client):
        """Test the connection check reports instead of raising."""
        assert await make_client(FakeProvider(lambda prompt: "OK")).test_connection() is True

        provider = FakeProvider(_failing)
        assert await make_client(provider).test_connection() is False
        assert len(provider.calls) == 1


class TestParseStructuredResponse:
    """Tests for response parsing."""

    def test_fenced_json(self):
        """Test JSON inside a fenced block is parsed."""
        result = CallClient.parse_structured_response('```json\n{"translations": {}}\n```', ["translations"])
        assert result == Ok({"translations": {}})

    def test_bare_json(self):
        """Test bare JSON is parsed."""
        assert CallClient.parse_structured_response('{"a": 1}').value == {"a": 1}

    def test_missing_field(self):
        """Test a missing required field is a parse error."""
        result = CallClient.parse_structured_response('{"extractedTexts": {}}', ["extractedTexts", "transformedCode"])
        assert isinstance(result, Err)
        assert result.kind == PARSE_ERROR
        assert "transformedCode" in result.message

    def test_invalid_json(self):
        """Test text that is not JSON is a parse error."""
        result = CallClient.parse_structured_response("Sorry, I cannot do that.")
        assert not result.ok
        assert result.kind == PARSE_ERROR

    def test_non_object(self):
        """Test a JSON array is rejected."""
        assert not CallClient.parse_structured_response("[1, 2]").ok


class TestCachedCalls:
    """Tests for extraction and translation calls through the cache."""

    @pytest.mark.asyncio
    async def test_extract_returns_record(self, make_client):
        """Test an extraction response becomes an ExtractionRecord."""
        client = make_client(FakeProvider())
        prompt = 'Localize:\n```ts\nconst a = "提交";\n```'

        result = await client.extract(prompt)

        assert result.ok
        assert result.value == ExtractionRecord(
            {"__I18N_1__": "提交"}, 'const a = $t("__I18N_1__");'
        )

    @pytest.mark.asyncio
    async def test_repeated_prompt_served_from_cache(self, make_client, memory_cache):
        """Test the provider is called once for the same prompt."""
        provider = FakeProvider()
        client = make_client(provider)
        prompt = 'Localize:\n```ts\nconst a = "提交";\n```'

        first = await client.extract(prompt)
        second = await client.extract(prompt)

        assert first.value == second.value
        assert len(provider.calls) == 1
        assert memory_cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_parse_failure_not_cached(self, make_client, memory_cache):
        """Test an unusable response is an Err and is not cached."""
        provider = FakeProvider(lambda prompt: '{"extractedTexts": {}}')
        client = make_client(provider)

        result = await client.extract("prompt")

        assert result.kind == PARSE_ERROR
        assert len(memory_cache) == 0

    @pytest.mark.asyncio
    async def test_wrong_field_types(self, make_client):
        """Test fields of the wrong type are a parse error."""
        payload = json.dumps({"extractedTexts": ["a"], "transformedCode": "x"})
        client = make_client(FakeProvider(lambda prompt: payload))

        result = await client.extract("prompt")

        assert result.kind == PARSE_ERROR

    @pytest.mark.asyncio
    async def test_empty_rewrite_is_parse_error(self, make_client, memory_cache):
        """Test an empty transformedCode is rejected and not cached."""
        payload = json.dumps({"extractedTexts": {}, "transformedCode": "  \n"})
        client = make_client(FakeProvider(lambda prompt: payload))

        result = await client.extract("prompt")

        assert result.kind == PARSE_ERROR
        assert "empty" in result.message
        assert len(memory_cache) == 0

    @pytest.mark.asyncio
    async def test_provider_failure_is_err(self, make_client):
        """Test exhausted retries become a provider Err."""
        client = make_client(FakeProvider(_failing), max_retries=0)

        result = await client.translate("prompt")

        assert result.kind == PROVIDER_ERROR
        assert isinstance(result.error, ProviderCallError)

    @pytest.mark.asyncio
    async def test_works_without_cache(self, make_client):
        """Test a client without cache calls the provider every time."""
        provider = FakeProvider()
        client = make_client(provider, cache=None)
        prompt = 'Localize:\n```ts\nconst a = "提交";\n```'

        await client.extract(prompt)
        await client.extract(prompt)

        assert len(provider.calls) == 2


class TestBatchProcess:
    """Tests for batching and per-batch failure isolation."""

    @pytest.mark.asyncio
    async def test_failed_batch_keeps_original_values(self, make_client):
        """Test all twenty items of a failed batch keep their original text."""
        client = make_client(FakeProvider(_failing), max_retries=0)
        items = {f"key_{i}": f"文本{i}" for i in range(20)}

        result = await client.batch_translate(items, "zh-CN", "en-US", batch_size=20)

        assert result.values == items
        assert result.failed_batches == 1
        assert len(result.degraded_keys) == 20

    @pytest.mark.asyncio
    async def test_only_failing_batch_degrades(self, make_client):
        """Test one failed batch does not affect the others."""
        client = make_client(FakeProvider(), max_retries=0)
        items = {f"key_{i}": f"文本{i}" for i in range(5)}

        async def transform(batch):
            if "key_2" in batch:
                raise RuntimeError("batch exploded")
            return Ok({key: f"T:{value}" for key, value in batch.items()})

        result = await client.batch_process(items, 2, transform)

        assert list(result.values) == list(items)
        assert result.values["key_0"] == "T:文本0"
        assert result.values["key_2"] == "文本2"
        assert result.values["key_3"] == "文本3"
        assert result.values["key_4"] == "T:文本4"
        assert result.failed_batches == 1
        assert result.degraded_keys == ["key_2", "key_3"]

    @pytest.mark.asyncio
    async def test_missing_keys_degrade_individually(self, make_client):
        """Test keys absent from a successful response keep their original text."""
        client = make_client(FakeProvider())

        async def transform(batch):
            return Ok({"a": "A", "b": "  "})

        result = await client.batch_process({"a": "1", "b": "2", "c": "3"}, 10, transform)

        assert result.values == {"a": "A", "b": "2", "c": "3"}
        assert result.failed_batches == 0
        assert result.degraded_keys == ["b", "c"]

    @pytest.mark.asyncio
    async def test_translation_batches(self, make_client):
        """Test translation splits texts into batches of the given size."""
        provider = FakeProvider()
        client = make_client(provider)
        items = {f"key_{i}": f"文本{i}" for i in range(45)}

        result = await client.batch_translate(items, "zh-CN", "en-US", batch_size=20)

        assert len(provider.calls) == 3
        assert result.values["key_44"] == "EN:文本44"
        assert result.degraded_keys == []

    @pytest.mark.asyncio
    async def test_empty_input(self, make_client):
        """Test an empty mapping needs no call."""
        provider = FakeProvider()
        result = await make_client(provider).batch_translate({}, "zh-CN", "en-US")
        assert result.values == {}
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_batches_run_sequentially(self, make_client):
        """Test batches are not sent concurrently."""
        provider = FakeProvider(delay=0.01)
        client = make_client(provider)
        items = {f"key_{i}": f"文本{i}" for i in range(6)}

        await asyncio.wait_for(client.batch_translate(items, "zh-CN", "en-US", batch_size=2), timeout=5)

        assert provider.max_in_flight == 1
