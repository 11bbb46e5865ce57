"""
Shared fixtures for the ai-i18n test suite.

The provider is replaced by FakeProvider, whose default behaviour imitates
an LLM: extraction prompts get every double-quoted Chinese string replaced
by a $t() call on a placeholder, translation prompts get every value
prefixed with "EN:". No test touches the network.
"""

import asyncio
import json
import re
from typing import Callable, List, Optional, Union

import pytest

from ai_i18n.config.schema import CacheConfig, I18nConfig
from ai_i18n.llm.cache import ResponseCache
from ai_i18n.llm.client import CallClient

_CODE_BLOCK = re.compile(r"```[a-z]*\n([\s\S]*)\n```\s*$")
_CHINESE_STRING = re.compile(r'"([^"\n]*[\u4e00-\u9fff][^"\n]*)"')


def simulated_llm(prompt: str) -> str:
    """Answer extraction and translation prompts the way a well-behaved LLM would."""
    body = _CODE_BLOCK.search(prompt).group(1)

    if prompt.startswith("Translate"):
        texts = json.loads(body)
        translations = {key: f"EN:{value}" for key, value in texts.items()}
        return "```json\n" + json.dumps({"translations": translations}, ensure_ascii=False) + "\n```"

    extracted = {}

    def _replace(match):
        placeholder = f"__I18N_{len(extracted) + 1}__"
        extracted[placeholder] = match.group(1)
        return f'$t("{placeholder}")'

    code = _CHINESE_STRING.sub(_replace, body)
    return json.dumps({"extractedTexts": extracted, "transformedCode": code}, ensure_ascii=False)


class FakeProvider:
    """
    In-process stand-in for a provider variant.

    Args:
        handler: Callable producing the response text for a prompt, or an
            exception instance to raise. Defaults to simulated_llm.
        delay: Seconds to sleep inside each call.
    """

    name = "fake"
    model = "fake-model"

    def __init__(
        self,
        handler: Optional[Callable[[str], Union[str, Exception]]] = None,
        delay: float = 0.0,
    ) -> None:
        self.handler = handler or simulated_llm
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def invoke(self, prompt: str) -> str:
        self.calls.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.handler(prompt)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


class FakeClock:
    """Manually advanced clock returning milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    """A non-persistent cache driven by the fake clock."""
    return ResponseCache(persistent=False, clock=clock)


@pytest.fixture
def make_client(memory_cache):
    """Factory building a CallClient around a provider without real sleeps."""
    sleeps: List[float] = []

    async def _record_sleep(delay: float) -> None:
        sleeps.append(delay)

    def _make(provider, cache=memory_cache, max_retries: int = 2) -> CallClient:
        client = CallClient(
            provider,
            cache=cache,
            max_retries=max_retries,
            retry_base_delay=0.5,
            timeout=5,
            sleep=_record_sleep,
        )
        client.recorded_sleeps = sleeps
        return client

    return _make


@pytest.fixture
def project(tmp_path):
    """A project root with an empty src/ directory and a matching config."""
    (tmp_path / "src").mkdir()
    config = I18nConfig(
        root_dir=str(tmp_path),
        include=["src/**/*.{ts,tsx}"],
        exclude=["**/*.test.ts"],
        concurrency=2,
        cache=CacheConfig(persistent=False),
    )
    return tmp_path, config
