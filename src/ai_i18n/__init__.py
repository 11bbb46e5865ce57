"""
AI-assisted i18n extraction and translation pipeline.

This package batch-processes source files, asks an LLM to replace embedded
texts with translation calls, derives stable keys for every extracted text,
rewrites the sources and aggregates all key -> text pairs into locale files
that can be translated batch by batch into a display language.

Modules:
    config: Configuration settings, run configuration and logging setup.
    core: Errors, tagged results, data model and text/hash helpers.
    llm: Provider variants, prompts, response cache and the call client.
    processing: Key generation, transformation, validation, scanning and
        the orchestrator.
    utils: Progress tracking and display.

Author: ai-i18n contributors
License: MIT
"""

__version__ = "1.0.0"
__author__ = "ai-i18n contributors"
