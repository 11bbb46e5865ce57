"""
Configuration module for the ai-i18n pipeline.

This module provides centralized configuration settings, the per-run
configuration dataclasses and logging setup used throughout the pipeline.

Submodules:
    settings: All configuration constants and defaults.
    schema: Run configuration dataclasses, loading and validation.
    logging_config: Centralized logging configuration.
"""

from .settings import *
from .logging_config import setup_logging, get_logger, level_from_name
from .schema import (
    PinyinOptions,
    KeyGenerationConfig,
    TaskConfig,
    LLMConfig,
    CacheConfig,
    OutputConfig,
    I18nConfig,
    config_from_dict,
    find_config_file,
    load_config,
    validate_config,
)
