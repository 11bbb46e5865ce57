"""
Configuration settings for the ai-i18n pipeline.

This module centralizes all configuration constants and default values used
throughout the pipeline. Settings are grouped by their functional area for
easy maintenance, and every value can be overridden through an environment
variable of the same name.

Configuration includes:
    - Locale and source scanning defaults
    - Key generation defaults
    - LLM provider settings (timeouts, retries, batch sizes)
    - Response cache settings
    - Output file settings

These constants are the defaults of the dataclasses in
``ai_i18n.config.schema``; a JSON configuration file overrides them per run.

Author: ai-i18n contributors
License: MIT
"""

import os


def _env_flag(name: str, default: str) -> bool:
    """Read a boolean environment variable ("1", "true", "yes" are truthy)."""
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# =============================================================================
# LOCALE CONFIGURATION
# =============================================================================

# Locale of the texts embedded in the source files.
# This is also the locale of the primary output file.
DEFAULT_LOCALE = os.getenv("AI_I18N_LOCALE", "zh-CN")

# Locale the extracted texts are translated into during the translation phase.
DEFAULT_DISPLAY_LANGUAGE = os.getenv("AI_I18N_DISPLAY_LANGUAGE", "en-US")

# =============================================================================
# SOURCE SCANNING CONFIGURATION
# =============================================================================

# Glob patterns (relative to the project root) of the files to process.
# Brace alternatives like "{js,ts}" are expanded by the scanner.
DEFAULT_INCLUDE_PATTERNS = [
    "src/**/*.{js,jsx,ts,tsx,vue}",
]

# Glob patterns of files that are never processed.
DEFAULT_EXCLUDE_PATTERNS = [
    "node_modules/**",
    "dist/**",
    "build/**",
    ".next/**",
    "**/*.test.{js,jsx,ts,tsx}",
    "**/*.spec.{js,jsx,ts,tsx}",
]

# File categories (extensions) the pipeline knows how to process.
PROCESSABLE_CATEGORIES = [".js", ".jsx", ".ts", ".tsx", ".vue"]

# Name of the translation function inserted into rewritten sources.
DEFAULT_FUNCTION_NAME = os.getenv("AI_I18N_FUNCTION_NAME", "$t")

# =============================================================================
# KEY GENERATION CONFIGURATION
# =============================================================================

# Maximum length of the romanized part of a key before it is truncated
# and suffixed with a content hash.
KEY_MAX_LENGTH = int(os.getenv("AI_I18N_KEY_MAX_LENGTH", "10"))

# Number of hex characters of the content hash appended to long or
# colliding keys.
KEY_HASH_LENGTH = int(os.getenv("AI_I18N_KEY_HASH_LENGTH", "6"))

# Separator placed between romanized tokens, the prefix and hash suffixes.
KEY_SEPARATOR = os.getenv("AI_I18N_KEY_SEPARATOR", "_")

# Optional prefix prepended to every generated key.
KEY_PREFIX = os.getenv("AI_I18N_KEY_PREFIX", "")

# When enabled, identical texts always map to the same key.
KEY_REUSE_EXISTING = _env_flag("AI_I18N_KEY_REUSE_EXISTING", "true")

# Characters allowed in keys besides letters and digits.
KEY_EXTRA_CHARACTERS = "_-."

# =============================================================================
# LLM PROVIDER CONFIGURATION
# =============================================================================

# Provider variant used for both extraction and translation calls.
# One of: "openai", "anthropic", "ollama".
LLM_PROVIDER = os.getenv("AI_I18N_LLM_PROVIDER", "openai")

# Default model name, overridable per task.
LLM_MODEL = os.getenv("AI_I18N_LLM_MODEL", "gpt-4o-mini")

# API key for hosted providers. Not needed for a local Ollama server.
LLM_API_KEY = os.getenv("AI_I18N_LLM_API_KEY", os.getenv("OPENAI_API_KEY", ""))

# Base URL of the provider API. Empty means the provider's public default.
LLM_BASE_URL = os.getenv("AI_I18N_LLM_BASE_URL", "")

# Default public endpoints for each provider variant.
OPENAI_BASE_URL = "https://api.openai.com/v1"
ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1"
OLLAMA_BASE_URL = "http://localhost:11434"
ANTHROPIC_API_VERSION = "2023-06-01"

# Sampling temperature for extraction calls (deterministic by default).
LLM_EXTRACTION_TEMPERATURE = 0.0

# Sampling temperature for translation calls.
LLM_TRANSLATION_TEMPERATURE = 0.3

# Maximum number of tokens requested per call.
LLM_MAX_TOKENS = int(os.getenv("AI_I18N_LLM_MAX_TOKENS", "4096"))

# Timeout in seconds applied to every single provider call.
# Prevents indefinite hanging on a slow or unresponsive service.
LLM_TIMEOUT_SECONDS = float(os.getenv("AI_I18N_LLM_TIMEOUT_SECONDS", "30"))

# Number of additional attempts after a failed provider call.
LLM_RETRY_COUNT = int(os.getenv("AI_I18N_LLM_RETRY_COUNT", "3"))

# Base delay in seconds of the exponential backoff between attempts.
# The delay before retry n (0-based) is LLM_RETRY_BASE_DELAY * 2 ** n.
LLM_RETRY_BASE_DELAY = float(os.getenv("AI_I18N_LLM_RETRY_BASE_DELAY", "1.0"))

# Number of texts sent to the provider in one translation call.
# Each batch is one external call, and therefore one failure domain.
TRANSLATION_BATCH_SIZE = int(os.getenv("AI_I18N_TRANSLATION_BATCH_SIZE", "20"))

# Upper bound accepted for TRANSLATION_BATCH_SIZE by the config validator.
TRANSLATION_MAX_BATCH_SIZE = 100

# =============================================================================
# PROCESSING CONFIGURATION
# =============================================================================

# Number of work units processed concurrently.
PROCESSING_CONCURRENCY = int(os.getenv("AI_I18N_CONCURRENCY", "3"))

# =============================================================================
# RESPONSE CACHE CONFIGURATION
# =============================================================================

# Whether provider responses are cached at all.
CACHE_ENABLED = _env_flag("AI_I18N_CACHE_ENABLED", "true")

# Directory holding the persisted cache snapshot.
CACHE_DIR = os.getenv("AI_I18N_CACHE_DIR", ".ai-i18n-cache")

# File name of the cache snapshot inside CACHE_DIR.
CACHE_FILE_NAME = "llm-cache.json"

# Time to live of a cache entry in seconds (24 hours).
CACHE_TTL_SECONDS = float(os.getenv("AI_I18N_CACHE_TTL_SECONDS", str(24 * 60 * 60)))

# Maximum number of entries kept; the oldest entries are evicted first.
CACHE_MAX_ENTRIES = int(os.getenv("AI_I18N_CACHE_MAX_ENTRIES", "1000"))

# Whether the cache is loaded from and saved to disk.
CACHE_PERSISTENT = _env_flag("AI_I18N_CACHE_PERSISTENT", "true")

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================

# Directory where locale files are written.
OUTPUT_DIR = os.getenv("AI_I18N_OUTPUT_DIR", "src/locales")

# Locale file name pattern; "{locale}" is replaced by the locale code.
LOCALE_FILE_PATTERN = "{locale}.json"

# Whether locale files are written as indented JSON.
PRETTY_JSON = True

# =============================================================================
# CONFIGURATION FILES
# =============================================================================

# File names searched (in order) in the working directory when no explicit
# configuration path is given.
CONFIG_FILE_NAMES = [
    "i18n.config.json",
    ".i18nrc.json",
]

# Log level names accepted in the configuration file.
LOG_LEVEL_NAMES = ["minimal", "normal", "verbose"]
