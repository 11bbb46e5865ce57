"""
Data model shared by the pipeline stages.

This module defines the plain data containers passed between the scanner,
the LLM client, the transform stage and the orchestrator:

    - ScannedFile: a file found by the scanner, content not read yet
    - WorkUnit: one source file with its content, owned by one task
    - ExtractionRecord: placeholder texts and rewritten content of one unit
    - TransformOutput: final content and FinalKey -> text pairs of one unit
    - ValidationReport: verdict of the syntax validator
    - UnitState / UnitResult: per-unit state machine and its outcome
    - ProcessingStats: run-level tallies

Author: ai-i18n contributors
License: MIT
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ScannedFile:
    """A file selected by the scanner."""
    path: str
    relative_path: str
    category: str
    size: int = 0


@dataclass(frozen=True)
class WorkUnit:
    """
    One source item processed independently by the pipeline.

    Attributes:
        path: Absolute path of the source file.
        relative_path: Path relative to the project root (used for output
            placement and reporting).
        category: Detected category, the lower-cased file extension.
        content: Raw file content.
    """
    path: str
    relative_path: str
    category: str
    content: str


@dataclass
class ExtractionRecord:
    """
    Output of the extraction call for one work unit.

    Attributes:
        placeholder_text: Mapping of placeholder key to the source text it
            stands for. Placeholder keys are only meaningful inside the unit.
        transformed_content: Source content with every extracted text
            replaced by a translation call on its placeholder key.
    """
    placeholder_text: Dict[str, str]
    transformed_content: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "placeholder_text": dict(self.placeholder_text),
            "transformed_content": self.transformed_content,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractionRecord":
        return cls(
            placeholder_text=dict(data.get("placeholder_text", {})),
            transformed_content=data.get("transformed_content", ""),
        )


@dataclass
class TransformOutput:
    """Rewritten content of a unit and the FinalKey -> text pairs it uses."""
    content: str
    pairs: Dict[str, str]


@dataclass
class ValidationReport:
    """Verdict of the syntax validator."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class UnitState(Enum):
    """States of the per-unit processing state machine."""
    SCANNED = "scanned"
    CONTENT_READ = "content_read"
    EXTRACTED = "extracted"
    KEYS_RESOLVED = "keys_resolved"
    TRANSFORMED = "transformed"
    VALIDATED = "validated"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class UnitResult:
    """
    Tagged outcome of processing one work unit.

    Attributes:
        path: Relative path of the unit.
        state: Terminal state, WRITTEN on success or FAILED.
        extracted_count: Number of texts extracted from the unit.
        error: Failure description when the unit failed.
        diagnostics: Validator errors and warnings attached to the unit.
        duration_ms: Wall time spent on the unit.
    """
    path: str
    state: UnitState
    extracted_count: int = 0
    error: Optional[str] = None
    diagnostics: List[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state is UnitState.WRITTEN


@dataclass
class ProcessingStats:
    """
    Run-level statistics accumulated by the orchestrator.

    Attributes:
        units_processed: Units that reached the WRITTEN state.
        texts_extracted: Texts extracted across all successful units.
        texts_translated: Texts that received a translation.
        texts_degraded: Texts that kept their source text because their
            translation batch failed.
        failed_units: Relative paths of units that ended in FAILED.
        warnings: Non-fatal problems (store conflicts, degraded batches).
        duration_ms: Wall time of the whole run.
    """
    units_processed: int = 0
    texts_extracted: int = 0
    texts_translated: int = 0
    texts_degraded: int = 0
    failed_units: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
