"""
String and hashing utilities for the ai-i18n pipeline.

This module provides the small text helpers shared by the key generator,
the response cache and the LLM client: content hashes, base-36 encoding of
code points, fenced-JSON extraction and whole-token substitution.

Author: ai-i18n contributors
License: MIT
"""

import hashlib
import re
from typing import Dict, Optional

# Matches a fenced code block, optionally tagged "json", and captures its body.
_FENCED_BLOCK = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")

# Characters that make up an identifier token for whole-token matching.
_TOKEN_CHARS = "A-Za-z0-9_"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def md5_hex(text: str, length: Optional[int] = None) -> str:
    """
    Return the hex MD5 digest of a text, optionally truncated.

    Args:
        text: The text to hash (encoded as UTF-8).
        length: Number of leading hex characters to keep. None keeps all 32.

    Returns:
        str: The hex digest.

    Example:
        >>> len(md5_hex("提交", 6))
        6
    """
    digest = hashlib.md5(text.encode("utf-8")).hexdigest()
    return digest if length is None else digest[:length]


def sha256_hex(text: str) -> str:
    """Return the hex SHA-256 digest of a text encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def to_base36(number: int) -> str:
    """
    Encode a non-negative integer in base 36 (digits then lowercase letters).

    Used to turn character code points into ASCII key fragments.
    """
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def extract_fenced_json(text: str) -> str:
    """
    Return the JSON payload of a provider response.

    LLMs often wrap JSON in a fenced code block (```json ... ```). If such a
    block is present its body is returned, otherwise the stripped text.

    Args:
        text: Raw response text.

    Returns:
        str: The text that should be handed to json.loads.
    """
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1)
    return text.strip()


def replace_whole_tokens(content: str, replacements: Dict[str, str]) -> str:
    """
    Replace whole-token occurrences of each key of ``replacements``.

    A token only matches when it is not directly preceded or followed by an
    identifier character, so "KEY_1" does not match inside "KEY_10". All
    replacements happen in a single pass: text produced by one replacement is
    never matched again by another.

    Args:
        content: Text to rewrite.
        replacements: Mapping of token to replacement text.

    Returns:
        str: The rewritten text.

    Example:
        >>> replace_whole_tokens('t("K1") + t("K10")', {"K1": "a", "K10": "b"})
        't("a") + t("b")'
    """
    tokens = [token for token in replacements if token]
    if not tokens:
        return content

    # Longest first so that the alternation prefers the most specific token.
    tokens.sort(key=len, reverse=True)
    alternation = "|".join(re.escape(token) for token in tokens)
    pattern = re.compile(
        rf"(?<![{_TOKEN_CHARS}])(?:{alternation})(?![{_TOKEN_CHARS}])"
    )
    return pattern.sub(lambda match: replacements[match.group(0)], content)
