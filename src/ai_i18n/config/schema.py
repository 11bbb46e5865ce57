"""
Run configuration for the ai-i18n pipeline.

The configuration of one run is a tree of dataclasses whose defaults come
from ``ai_i18n.config.settings``. A JSON configuration file (snake_case keys,
same nesting as the dataclasses) overrides any subset of the defaults:

    {
        "locale": "zh-CN",
        "display_language": "en-US",
        "include": ["src/**/*.{ts,tsx}"],
        "key_generation": {"max_length": 12, "key_prefix": "app"},
        "llm": {"provider": "ollama", "model": "qwen2.5"}
    }

Unknown keys are rejected and every validation problem is reported at once
in a single ConfigurationError, before any work unit is processed.

Author: ai-i18n contributors
License: MIT
"""

import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from . import settings
from ..core.errors import ConfigurationError


@dataclass
class PinyinOptions:
    """
    Transliteration options of the key generator.

    Attributes:
        tone_type: "none" (ti jiao), "num" (ti2 jiao1) or "symbol" (tí jiāo).
        join_mode: "array" joins syllables with the key separator,
            "string" concatenates them.
    """
    tone_type: str = "none"
    join_mode: str = "array"


@dataclass
class KeyGenerationConfig:
    """Settings that shape generated keys."""
    max_length: int = settings.KEY_MAX_LENGTH
    hash_length: int = settings.KEY_HASH_LENGTH
    reuse_existing_key: bool = settings.KEY_REUSE_EXISTING
    key_prefix: str = settings.KEY_PREFIX
    separator: str = settings.KEY_SEPARATOR
    load_existing: bool = True
    pinyin: PinyinOptions = field(default_factory=PinyinOptions)


@dataclass
class TaskConfig:
    """Per-task (extraction or translation) overrides of the LLM settings."""
    model: Optional[str] = None
    temperature: float = settings.LLM_EXTRACTION_TEMPERATURE
    max_tokens: Optional[int] = None


@dataclass
class LLMConfig:
    """Provider selection, call limits and per-task overrides."""
    provider: str = settings.LLM_PROVIDER
    model: str = settings.LLM_MODEL
    api_key: str = settings.LLM_API_KEY
    base_url: str = settings.LLM_BASE_URL
    temperature: float = settings.LLM_EXTRACTION_TEMPERATURE
    max_tokens: int = settings.LLM_MAX_TOKENS
    timeout: float = settings.LLM_TIMEOUT_SECONDS
    retry_count: int = settings.LLM_RETRY_COUNT
    retry_base_delay: float = settings.LLM_RETRY_BASE_DELAY
    translation_batch_size: int = settings.TRANSLATION_BATCH_SIZE
    extraction: TaskConfig = field(default_factory=TaskConfig)
    translation: TaskConfig = field(
        default_factory=lambda: TaskConfig(temperature=settings.LLM_TRANSLATION_TEMPERATURE)
    )

    def for_task(self, task: str) -> "LLMConfig":
        """
        Return a copy of this configuration with a task's overrides applied.

        Args:
            task: "extraction" or "translation".

        Returns:
            LLMConfig: Flattened configuration for the task's provider.
        """
        overrides: TaskConfig = getattr(self, task)
        return dataclasses.replace(
            self,
            model=overrides.model or self.model,
            temperature=overrides.temperature,
            max_tokens=overrides.max_tokens or self.max_tokens,
        )


@dataclass
class CacheConfig:
    """Response cache settings."""
    enabled: bool = settings.CACHE_ENABLED
    cache_dir: str = settings.CACHE_DIR
    ttl_seconds: float = settings.CACHE_TTL_SECONDS
    max_entries: int = settings.CACHE_MAX_ENTRIES
    persistent: bool = settings.CACHE_PERSISTENT


@dataclass
class OutputConfig:
    """Locale file output settings."""
    output_dir: str = settings.OUTPUT_DIR
    pretty_json: bool = settings.PRETTY_JSON
    locale_file_pattern: str = settings.LOCALE_FILE_PATTERN


@dataclass
class I18nConfig:
    """
    Complete configuration of one pipeline run.

    Attributes:
        locale: Locale of the texts found in the sources.
        display_language: Locale the texts are translated into.
        root_dir: Directory the include/exclude patterns are relative to.
        include: Glob patterns of files to process.
        exclude: Glob patterns of files to skip.
        temp_dir: When set, rewritten files go here instead of overwriting
            the sources (relative paths are preserved).
        function_name: Translation function used in rewritten sources.
        concurrency: Number of work units processed at the same time.
        log_level: "minimal", "normal" or "verbose".
    """
    locale: str = settings.DEFAULT_LOCALE
    display_language: str = settings.DEFAULT_DISPLAY_LANGUAGE
    root_dir: str = "."
    include: List[str] = field(default_factory=lambda: list(settings.DEFAULT_INCLUDE_PATTERNS))
    exclude: List[str] = field(default_factory=lambda: list(settings.DEFAULT_EXCLUDE_PATTERNS))
    categories: List[str] = field(default_factory=lambda: list(settings.PROCESSABLE_CATEGORIES))
    temp_dir: Optional[str] = None
    function_name: str = settings.DEFAULT_FUNCTION_NAME
    concurrency: int = settings.PROCESSING_CONCURRENCY
    log_level: str = "normal"
    key_generation: KeyGenerationConfig = field(default_factory=KeyGenerationConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# =============================================================================
# LOADING
# =============================================================================

def _build(cls: type, data: Dict[str, Any], path: str, problems: List[str]) -> Any:
    """
    Recursively build a dataclass from a dictionary.

    Unknown keys are reported in ``problems`` and skipped. Nested dataclass
    fields are built from nested dictionaries.
    """
    if not isinstance(data, dict):
        problems.append(f"{path or 'config'} must be an object")
        return cls()

    defaults = cls()
    kwargs: Dict[str, Any] = {}
    known = {f.name: f for f in dataclasses.fields(cls)}

    for key, value in data.items():
        field_path = f"{path}.{key}" if path else key
        if key not in known:
            problems.append(f"unknown setting '{field_path}'")
            continue
        current = getattr(defaults, key)
        if dataclasses.is_dataclass(current):
            kwargs[key] = _build(type(current), value, field_path, problems)
        else:
            kwargs[key] = value

    return dataclasses.replace(defaults, **kwargs)


def find_config_file(directory: Union[str, Path] = ".") -> Optional[Path]:
    """
    Look for a configuration file under one of the default names.

    Args:
        directory: Directory to search.

    Returns:
        Optional[Path]: The first existing file, or None.
    """
    for name in settings.CONFIG_FILE_NAMES:
        candidate = Path(directory) / name
        if candidate.is_file():
            return candidate
    return None


def config_from_dict(data: Dict[str, Any]) -> I18nConfig:
    """
    Build and validate a configuration from a plain dictionary.

    Raises:
        ConfigurationError: If the dictionary has unknown keys or invalid values.
    """
    problems: List[str] = []
    config = _build(I18nConfig, data, "", problems)
    if problems:
        raise ConfigurationError("Invalid configuration", problems)
    validate_config(config)
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> I18nConfig:
    """
    Load the run configuration.

    When ``path`` is None the default file names are searched in the working
    directory; when none exists the built-in defaults are used.

    Args:
        path: Optional explicit path to a JSON configuration file.

    Returns:
        I18nConfig: The validated configuration.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not JSON or
            contains invalid settings.
    """
    config_path = Path(path) if path is not None else find_config_file()
    if config_path is None:
        config = I18nConfig()
        validate_config(config)
        return config

    if not config_path.is_file():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read configuration file {config_path}: {e}") from e

    return config_from_dict(data)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_config(config: I18nConfig) -> None:
    """
    Check every setting and report all problems at once.

    Raises:
        ConfigurationError: Listing each invalid setting.
    """
    problems: List[str] = []
    keys = config.key_generation
    llm = config.llm

    if not config.locale:
        problems.append("locale must not be empty")
    if not config.display_language:
        problems.append("display_language must not be empty")
    if not config.include:
        problems.append("include must list at least one pattern")
    if not config.function_name:
        problems.append("function_name must not be empty")
    if config.concurrency < 1:
        problems.append("concurrency must be at least 1")
    if config.log_level not in settings.LOG_LEVEL_NAMES:
        problems.append(f"log_level must be one of {settings.LOG_LEVEL_NAMES}")

    if keys.max_length < 1:
        problems.append("key_generation.max_length must be at least 1")
    if not 4 <= keys.hash_length <= 16:
        problems.append("key_generation.hash_length must be between 4 and 16")
    if not keys.separator:
        problems.append("key_generation.separator must not be empty")
    elif any(not (ch.isalnum() or ch in settings.KEY_EXTRA_CHARACTERS) for ch in keys.separator):
        problems.append(
            f"key_generation.separator may only use '{settings.KEY_EXTRA_CHARACTERS}'"
        )
    if any(not (ch.isascii() and ch.isalnum()) and ch not in settings.KEY_EXTRA_CHARACTERS
           for ch in keys.key_prefix):
        problems.append("key_generation.key_prefix contains invalid characters")
    if keys.pinyin.tone_type not in ("none", "num", "symbol"):
        problems.append("key_generation.pinyin.tone_type must be none, num or symbol")
    if keys.pinyin.join_mode not in ("array", "string"):
        problems.append("key_generation.pinyin.join_mode must be array or string")

    if llm.provider not in ("openai", "anthropic", "ollama"):
        problems.append("llm.provider must be openai, anthropic or ollama")
    if not llm.model:
        problems.append("llm.model must not be empty")
    if llm.timeout <= 0:
        problems.append("llm.timeout must be positive")
    if llm.retry_count < 0:
        problems.append("llm.retry_count must not be negative")
    if llm.retry_base_delay < 0:
        problems.append("llm.retry_base_delay must not be negative")
    if not 1 <= llm.translation_batch_size <= settings.TRANSLATION_MAX_BATCH_SIZE:
        problems.append(
            "llm.translation_batch_size must be between 1 and "
            f"{settings.TRANSLATION_MAX_BATCH_SIZE}"
        )
    for task in ("extraction", "translation"):
        temperature = getattr(llm, task).temperature
        if not 0 <= temperature <= 2:
            problems.append(f"llm.{task}.temperature must be between 0 and 2")

    if config.cache.ttl_seconds <= 0:
        problems.append("cache.ttl_seconds must be positive")
    if config.cache.max_entries < 1:
        problems.append("cache.max_entries must be at least 1")

    if "{locale}" not in config.output.locale_file_pattern:
        problems.append("output.locale_file_pattern must contain '{locale}'")

    if problems:
        raise ConfigurationError("Invalid configuration", problems)
