"""
Core utilities module for the ai-i18n pipeline.

This module provides the pieces shared by every pipeline stage: the error
hierarchy, tagged result values and text/hash helpers.

Submodules:
    errors: Exception hierarchy rooted at I18nError.
    result: Ok/Err tagged results for recoverable outcomes.
    models: Data containers passed between pipeline stages.
    string_utils: Hashing, base-36 encoding, fenced JSON and token replacement.
"""

from .errors import (
    I18nError,
    ConfigurationError,
    ProviderCallError,
    ParseError,
    CacheError,
    ValidationFailure,
    WriteError,
    is_recoverable,
)
from .result import Ok, Err, Result, PARSE_ERROR, PROVIDER_ERROR
from .string_utils import (
    md5_hex,
    sha256_hex,
    to_base36,
    extract_fenced_json,
    replace_whole_tokens,
)
from .models import (
    ScannedFile,
    WorkUnit,
    ExtractionRecord,
    TransformOutput,
    ValidationReport,
    UnitState,
    UnitResult,
    ProcessingStats,
)
