"""
Syntax validation of rewritten source content.

The orchestrator refuses to write a work unit whose rewritten content is
rejected here. The checks are deliberately lightweight:

    - Python: parsed with the standard ast module
    - JSON: parsed with the json module
    - JavaScript/TypeScript/JSX/TSX: delimiter balance with string, template
      literal and comment awareness
    - Vue: delimiter balance of every <script> block, plus balanced
      mustache interpolations in the template
    - anything else: accepted with a warning

Author: ai-i18n contributors
License: MIT
"""

import ast
import json
import re
from typing import List, Tuple

from ..config.logging_config import get_logger
from ..core.models import ValidationReport

# Initialize module logger
logger = get_logger(__name__)

# Categories checked with the delimiter scanner.
SCRIPT_CATEGORIES = {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"}

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>([\s\S]*?)</script>", re.IGNORECASE)
_TEMPLATE_BLOCK = re.compile(r"<template\b[^>]*>([\s\S]*)</template>", re.IGNORECASE)

_CLOSERS = {")": "(", "]": "[", "}": "{"}


class SyntaxValidator:
    """Validates rewritten content by file category."""

    def validate(self, content: str, category: str) -> ValidationReport:
        """
        Check content of the given category.

        Args:
            content: Rewritten file content.
            category: Lower-cased file extension, e.g. ".tsx".

        Returns:
            ValidationReport: valid flag with errors and warnings.
        """
        category = category.lower()
        if category == ".py":
            return self._validate_python(content)
        if category == ".json":
            return self._validate_json(content)
        if category in SCRIPT_CATEGORIES:
            errors, warnings = scan_delimiters(content)
            return ValidationReport(valid=not errors, errors=errors, warnings=warnings)
        if category == ".vue":
            return self._validate_vue(content)

        return ValidationReport(
            valid=True,
            warnings=[f"No syntax check available for '{category}' files"],
        )

    @staticmethod
    def _validate_python(content: str) -> ValidationReport:
        try:
            ast.parse(content)
        except SyntaxError as e:
            return ValidationReport(valid=False, errors=[f"line {e.lineno}: {e.msg}"])
        return ValidationReport(valid=True)

    @staticmethod
    def _validate_json(content: str) -> ValidationReport:
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            return ValidationReport(valid=False, errors=[f"line {e.lineno}: {e.msg}"])
        return ValidationReport(valid=True)

    @staticmethod
    def _validate_vue(content: str) -> ValidationReport:
        errors: List[str] = []
        warnings: List[str] = []

        for index, match in enumerate(_SCRIPT_BLOCK.finditer(content), start=1):
            # Line numbers are reported relative to the whole file.
            offset = content.count("\n", 0, match.start(1))
            block_errors, block_warnings = scan_delimiters(match.group(1), line_offset=offset)
            errors.extend(f"<script> block {index}: {error}" for error in block_errors)
            warnings.extend(block_warnings)

        template = _TEMPLATE_BLOCK.search(content)
        if template:
            body = template.group(1)
            if body.count("{{") != body.count("}}"):
                errors.append("<template>: unbalanced '{{' / '}}' interpolations")
        elif not _SCRIPT_BLOCK.search(content):
            warnings.append("Vue file has neither <template> nor <script> block")

        return ValidationReport(valid=not errors, errors=errors, warnings=warnings)


def scan_delimiters(source: str, line_offset: int = 0) -> Tuple[List[str], List[str]]:
    """
    Check that (), [] and {} are balanced in script source.

    Delimiters inside string literals and comments are ignored. Template
    literals are followed through their ``${...}`` expressions. A quoted
    string running into a line end is reported as a warning and scanning
    resumes on the next line, since JSX text may contain bare apostrophes.

    Args:
        source: Script source.
        line_offset: Added to reported line numbers.

    Returns:
        Tuple of (errors, warnings).
    """
    errors: List[str] = []
    warnings: List[str] = []
    # Each stack item is (opening delimiter, line). "${" marks a template
    # expression whose closing brace returns to the template literal.
    stack: List[Tuple[str, int]] = []
    line = 1 + line_offset
    i = 0
    length = len(source)
    mode = "code"
    quote = ""

    while i < length:
        char = source[i]
        nxt = source[i + 1] if i + 1 < length else ""

        if char == "\n":
            line += 1
            if mode == "line_comment":
                mode = "code"
            elif mode == "string":
                warnings.append(f"line {line - 1}: unterminated string literal")
                mode = "code"
            i += 1
            continue

        if mode == "line_comment":
            i += 1
            continue

        if mode == "block_comment":
            if char == "*" and nxt == "/":
                mode = "code"
                i += 2
            else:
                i += 1
            continue

        if mode == "string":
            if char == "\\":
                i += 2
                continue
            if char == quote:
                mode = "code"
            i += 1
            continue

        if mode == "template":
            if char == "\\":
                i += 2
                continue
            if char == "`":
                mode = "code"
            elif char == "$" and nxt == "{":
                stack.append(("${", line))
                mode = "code"
                i += 2
                continue
            i += 1
            continue

        # Code mode.
        if char == "/" and nxt == "/":
            mode = "line_comment"
            i += 2
            continue
        if char == "/" and nxt == "*":
            mode = "block_comment"
            i += 2
            continue
        if char in ("'", '"'):
            mode = "string"
            quote = char
        elif char == "`":
            mode = "template"
        elif char in "([{":
            stack.append((char, line))
        elif char in ")]}":
            if not stack:
                errors.append(f"line {line}: unexpected '{char}'")
            else:
                opener, opened_at = stack.pop()
                if char == "}" and opener == "${":
                    mode = "template"
                elif opener != _CLOSERS[char]:
                    errors.append(
                        f"line {line}: '{char}' does not match '{opener}' opened on line {opened_at}"
                    )
        i += 1

    if mode == "template":
        errors.append("unterminated template literal")
    elif mode == "block_comment":
        errors.append("unterminated block comment")

    for opener, opened_at in stack:
        errors.append(f"line {opened_at}: '{opener}' is never closed")

    if errors:
        logger.debug(f"Delimiter scan found {len(errors)} problems")
    return errors, warnings
