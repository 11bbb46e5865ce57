"""
Processing module for the ai-i18n pipeline.

This module provides the stages a source file goes through and the
orchestrator that drives them with bounded concurrency.

Submodules:
    key_generator: Deterministic, collision-resistant key derivation.
    validator: Syntax validation of rewritten content.
    transformer: Placeholder-to-key rewriting.
    store: Aggregate key -> text store with first-writer-wins merges.
    file_system: Asynchronous local file access.
    file_writer: Output placement for units and locale files.
    scanner: Glob-based source file discovery.
    orchestrator: Per-unit state machine, worker pool and translation phase.
"""

from .key_generator import KeyGenerator
from .validator import SyntaxValidator, scan_delimiters
from .transformer import TransformStage
from .store import AggregateTextStore, MergeReport
from .file_system import LocalFileSystem
from .file_writer import FileWriter
from .scanner import FileScanner, expand_braces
from .orchestrator import Orchestrator

__all__ = [
    "KeyGenerator",
    "SyntaxValidator",
    "scan_delimiters",
    "TransformStage",
    "AggregateTextStore",
    "MergeReport",
    "LocalFileSystem",
    "FileWriter",
    "FileScanner",
    "expand_braces",
    "Orchestrator",
]
