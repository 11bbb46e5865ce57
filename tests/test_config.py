"""
Tests for configuration loading, validation and provider creation.
"""

import json

import pytest

from ai_i18n.config.schema import (
    I18nConfig,
    LLMConfig,
    TaskConfig,
    config_from_dict,
    find_config_file,
    load_config,
    validate_config,
)
from ai_i18n.core.errors import ConfigurationError
from ai_i18n.llm.providers import (
    AnthropicProvider,
    OllamaProvider,
    OpenAIProvider,
    create_provider,
)


class TestLoadConfig:
    """Tests for reading configuration files."""

    def test_defaults_are_valid(self):
        """Test the built-in defaults pass validation."""
        validate_config(I18nConfig())

    def test_no_file_uses_defaults(self, tmp_path, monkeypatch):
        """Test defaults are used when no configuration file exists."""
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.locale == "zh-CN"
        assert config.key_generation.max_length == 10

    def test_file_overrides_nested_settings(self, tmp_path):
        """Test a partial file overrides only the given settings."""
        path = tmp_path / "i18n.config.json"
        path.write_text(json.dumps({
            "locale": "zh-TW",
            "concurrency": 5,
            "key_generation": {"key_prefix": "app", "pinyin": {"tone_type": "num"}},
            "llm": {"provider": "ollama", "translation": {"model": "qwen2.5:14b"}},
        }), encoding="utf-8")

        config = load_config(path)

        assert config.locale == "zh-TW"
        assert config.concurrency == 5
        assert config.key_generation.key_prefix == "app"
        assert config.key_generation.pinyin.tone_type == "num"
        assert config.key_generation.pinyin.join_mode == "array"
        assert config.llm.translation.model == "qwen2.5:14b"
        assert config.display_language == "en-US"

    def test_default_file_name_is_found(self, tmp_path):
        """Test the default file names are searched."""
        (tmp_path / ".i18nrc.json").write_text("{}", encoding="utf-8")
        assert find_config_file(tmp_path) == tmp_path / ".i18nrc.json"

    def test_missing_file(self, tmp_path):
        """Test an explicit missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Test a file that is not JSON is a configuration error."""
        path = tmp_path / "i18n.config.json"
        path.write_text("{locale: zh-CN", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_unknown_keys_are_reported(self):
        """Test every unknown setting is listed."""
        with pytest.raises(ConfigurationError) as excinfo:
            config_from_dict({"localee": "zh-CN", "cache": {"ttl": 5}})

        assert excinfo.value.errors == [
            "unknown setting 'localee'",
            "unknown setting 'cache.ttl'",
        ]


class TestValidateConfig:
    """Tests for value validation."""

    def test_all_problems_reported_together(self):
        """Test several invalid values produce one error listing all of them."""
        with pytest.raises(ConfigurationError) as excinfo:
            config_from_dict({
                "concurrency": 0,
                "key_generation": {"hash_length": 2},
                "llm": {"provider": "mystery", "translation_batch_size": 500},
            })

        errors = excinfo.value.errors
        assert "concurrency must be at least 1" in errors
        assert "key_generation.hash_length must be between 4 and 16" in errors
        assert "llm.provider must be openai, anthropic or ollama" in errors
        assert "llm.translation_batch_size must be between 1 and 100" in errors

    def test_locale_pattern_requires_placeholder(self):
        """Test the locale file pattern must contain {locale}."""
        with pytest.raises(ConfigurationError, match="locale_file_pattern"):
            config_from_dict({"output": {"locale_file_pattern": "messages.json"}})

    def test_invalid_pinyin_options(self):
        """Test pinyin options are checked."""
        with pytest.raises(ConfigurationError) as excinfo:
            config_from_dict({"key_generation": {"pinyin": {"tone_type": "high", "join_mode": "x"}}})
        assert len(excinfo.value.errors) == 2


class TestProviders:
    """Tests for provider creation from the configuration."""

    def test_task_overrides(self):
        """Test per-task model and temperature overrides."""
        llm = LLMConfig(
            model="base-model",
            translation=TaskConfig(model="translate-model", temperature=0.7),
        )

        assert llm.for_task("extraction").model == "base-model"
        translation = llm.for_task("translation")
        assert translation.model == "translate-model"
        assert translation.temperature == 0.7

    def test_ollama_needs_no_key(self):
        """Test the local provider is created without an API key."""
        provider = create_provider(LLMConfig(provider="ollama", model="qwen2.5", api_key=""))

        assert isinstance(provider, OllamaProvider)
        assert provider.endpoint() == "http://localhost:11434/api/chat"
        assert provider.build_payload("hi")["stream"] is False

    def test_hosted_provider_requires_key(self):
        """Test hosted providers without key are rejected."""
        with pytest.raises(ConfigurationError, match="Missing API key"):
            create_provider(LLMConfig(provider="openai", api_key=""))

    def test_openai_request_shape(self):
        """Test the OpenAI request and response handling."""
        provider = create_provider(LLMConfig(provider="openai", model="gpt-4o-mini", api_key="sk-test"))

        assert isinstance(provider, OpenAIProvider)
        assert provider.endpoint() == "https://api.openai.com/v1/chat/completions"
        assert provider.headers()["Authorization"] == "Bearer sk-test"
        assert provider.build_payload("hi")["messages"] == [{"role": "user", "content": "hi"}]
        assert provider.read_text({"choices": [{"message": {"content": "OK"}}]}) == "OK"

    def test_anthropic_joins_text_blocks(self):
        """Test only text blocks are read from Anthropic responses."""
        provider = create_provider(
            LLMConfig(provider="anthropic", model="claude-model", api_key="key", base_url="https://proxy/v1/")
        )

        assert isinstance(provider, AnthropicProvider)
        assert provider.endpoint() == "https://proxy/v1/messages"
        body = {"content": [{"type": "text", "text": "O"}, {"type": "tool_use"}, {"type": "text", "text": "K"}]}
        assert provider.read_text(body) == "OK"
