"""
Deterministic, collision-resistant locale key generation.

This module turns arbitrary source texts into short, human-legible keys.
Chinese characters are transliterated to pinyin with pypinyin, other words
are kept as lower-cased ASCII, long results are truncated and suffixed with
a hash of the original text, and collisions are resolved with further hash
suffixes.

The generator is shared by every concurrently processed work unit. All of
its state is guarded by a lock and no method suspends, so the
look-up/decide/record sequence of ``generate_key`` is atomic.

Example:
    >>> generator = KeyGenerator(max_length=10)
    >>> generator.generate_key("提交")
    'ti_jiao'
    >>> generator.generate_key("提交")
    'ti_jiao'

Author: ai-i18n contributors
License: MIT
"""

import re
import threading
import unicodedata
import uuid
from typing import Dict, Iterable, List, Optional

from pypinyin import Style, lazy_pinyin

from ..config.logging_config import get_logger
from ..config.schema import KeyGenerationConfig
from ..config.settings import (
    KEY_EXTRA_CHARACTERS,
    KEY_HASH_LENGTH,
    KEY_MAX_LENGTH,
    KEY_PREFIX,
    KEY_REUSE_EXISTING,
    KEY_SEPARATOR,
)
from ..core.string_utils import md5_hex, to_base36

# Module-level logger for consistent logging.
logger = get_logger(__name__)

# CJK unified ideographs (with extension A and compatibility ideographs).
_HANZI_RUN = re.compile(r"([\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff]+)")

# Words of a non-Chinese run: letters and digits, underscores excluded.
_WORD = re.compile(r"[^\W_]+")

# pypinyin styles by configured tone type.
TONE_STYLES = {
    "none": Style.NORMAL,
    "num": Style.TONE3,
    "symbol": Style.TONE,
}

# Length of the md5 prefix used when a text yields no usable characters.
FALLBACK_HASH_LENGTH = 8


def _is_latin_letter(char: str) -> bool:
    """Tell whether a character is a Latin letter, accented or not."""
    return char.isalpha() and unicodedata.name(char, "").startswith("LATIN")


def is_key_character(char: str) -> bool:
    """Tell whether a character may appear in a generated key."""
    return (
        (char.isascii() and char.isalnum())
        or _is_latin_letter(char)
        or char in KEY_EXTRA_CHARACTERS
    )


class KeyGenerator:
    """
    Generates locale keys from texts and keeps track of the keys in use.

    Args:
        max_length: Length of the romanized part above which it is
            truncated and suffixed with a hash of the text.
        hash_length: Number of hex characters of hash suffixes.
        separator: Joins tokens, the prefix and hash suffixes.
        key_prefix: Optional prefix of every key.
        reuse_existing_key: When True identical texts share one key; when
            False every call returns a key that is not in use yet.
        tone_type: "none", "num" or "symbol".
        join_mode: "array" joins tokens with the separator, "string"
            concatenates them.
        run_nonce: Run-local value mixed into no-reuse collision hashes.
            A random value is used when omitted.
    """

    def __init__(
        self,
        max_length: int = KEY_MAX_LENGTH,
        hash_length: int = KEY_HASH_LENGTH,
        separator: str = KEY_SEPARATOR,
        key_prefix: str = KEY_PREFIX,
        reuse_existing_key: bool = KEY_REUSE_EXISTING,
        tone_type: str = "none",
        join_mode: str = "array",
        run_nonce: Optional[str] = None,
    ) -> None:
        self.max_length = max_length
        self.hash_length = hash_length
        self.separator = separator
        self.key_prefix = key_prefix
        self.reuse_existing_key = reuse_existing_key
        self.tone_type = tone_type
        self.join_mode = join_mode
        self._style = TONE_STYLES.get(tone_type, Style.NORMAL)
        self._run_nonce = run_nonce if run_nonce is not None else uuid.uuid4().hex

        self._lock = threading.Lock()
        self._used_keys: set = set()
        self._text_to_key: Dict[str, str] = {}
        self._nonce_counter = 0
        self._counters = {"generated": 0, "reused": 0, "collisions": 0, "fallbacks": 0}

    @classmethod
    def from_config(cls, config: KeyGenerationConfig, run_nonce: Optional[str] = None) -> "KeyGenerator":
        """Create a generator from the key_generation section of the config."""
        return cls(
            max_length=config.max_length,
            hash_length=config.hash_length,
            separator=config.separator,
            key_prefix=config.key_prefix,
            reuse_existing_key=config.reuse_existing_key,
            tone_type=config.pinyin.tone_type,
            join_mode=config.pinyin.join_mode,
            run_nonce=run_nonce,
        )

    # =========================================================================
    # KEY GENERATION
    # =========================================================================

    def generate_key(self, text: str) -> str:
        """
        Return the key for a text, minting a new one when needed.

        Never raises: transliteration problems fall back to a deterministic
        character-code encoding.

        Args:
            text: Source text.

        Returns:
            str: A key accepted by validate_key().
        """
        with self._lock:
            if self.reuse_existing_key and text in self._text_to_key:
                self._counters["reused"] += 1
                return self._text_to_key[text]

            key = self._base_key(text)
            if key in self._used_keys:
                key = self._resolve_collision(text, key)

            self._used_keys.add(key)
            self._text_to_key.setdefault(text, key)
            self._counters["generated"] += 1
            return key

    def generate_keys(self, texts: Iterable[str]) -> Dict[str, str]:
        """Generate keys for several texts. Returns a text -> key mapping."""
        return {text: self.generate_key(text) for text in texts}

    def _base_key(self, text: str) -> str:
        """Romanize, truncate and prefix a text."""
        romanized = self._romanize(text)

        if len(romanized) > self.max_length:
            # The hash covers the original text, so distinct long texts
            # sharing a prefix still get distinct keys.
            romanized = (
                romanized[:self.max_length]
                + self.separator
                + md5_hex(text, self.hash_length)
            )

        if self.key_prefix:
            return f"{self.key_prefix}{self.separator}{romanized}"
        return romanized

    def _resolve_collision(self, text: str, key: str) -> str:
        """
        Find a free variant of a key that is already in use.

        Without reuse a run-local nonce and counter are hashed with the text,
        so repeated calls for one text produce distinct keys. With reuse the
        colliding text differs from the key's owner, so the text's own hash
        disambiguates it deterministically.
        """
        self._counters["collisions"] += 1

        if self.reuse_existing_key:
            candidate = f"{key}{self.separator}{md5_hex(text, self.hash_length)}"
            suffix = 2
            while candidate in self._used_keys:
                candidate = f"{key}{self.separator}{md5_hex(f'{text}{suffix}', self.hash_length)}"
                suffix += 1
            return candidate

        while True:
            self._nonce_counter += 1
            seed = f"{text}{self._run_nonce}{self._nonce_counter}"
            candidate = f"{key}{self.separator}{md5_hex(seed, self.hash_length)}"
            if candidate not in self._used_keys:
                return candidate

    # =========================================================================
    # TRANSLITERATION
    # =========================================================================

    def _romanize(self, text: str) -> str:
        """Transliterate a text into key characters, falling back when empty."""
        try:
            tokens = self._tokens(text)
        except Exception as e:
            logger.debug(f"Transliteration failed for {text!r}: {e}")
            tokens = []

        joiner = self.separator if self.join_mode == "array" else ""
        romanized = joiner.join(token for token in tokens if token)
        if romanized:
            return romanized

        self._counters["fallbacks"] += 1
        return self._fallback_encoding(text)

    def _tokens(self, text: str) -> List[str]:
        """Split a text into sanitized tokens: pinyin syllables and words."""
        tokens: List[str] = []
        for index, run in enumerate(_HANZI_RUN.split(text)):
            if not run:
                continue
            # re.split with a capturing group puts the matches at odd indexes.
            if index % 2 == 1:
                syllables = lazy_pinyin(run, style=self._style)
                tokens.extend(self._sanitize(syllable) for syllable in syllables)
            else:
                tokens.extend(self._sanitize(word) for word in _WORD.findall(run))
        return tokens

    @staticmethod
    def _sanitize(token: str) -> str:
        """Lower-case a token and encode characters not allowed in keys."""
        parts = []
        for char in token.lower():
            if char.isascii() and char.isalnum():
                parts.append(char)
            elif _is_latin_letter(char):
                parts.append(char)
            elif not char.isspace():
                parts.append(to_base36(ord(char)))
        return "".join(parts)

    @staticmethod
    def _fallback_encoding(text: str) -> str:
        """
        Encode a text that produced no tokens.

        ASCII letters and digits are kept, any other visible character is
        written as its base-36 code point. Texts without visible characters
        use a prefix of their md5 hash.
        """
        parts = []
        for char in text:
            if char.isascii() and char.isalnum():
                parts.append(char.lower())
            elif not char.isspace():
                parts.append(to_base36(ord(char)))
        return "".join(parts) or md5_hex(text, FALLBACK_HASH_LENGTH)

    # =========================================================================
    # STATE MANAGEMENT
    # =========================================================================

    def validate_key(self, key: str) -> bool:
        """
        Tell whether a key has the configured prefix and only key characters.

        Example:
            >>> KeyGenerator(key_prefix="app").validate_key("app_ti_jiao")
            True
            >>> KeyGenerator().validate_key("提交")
            False
        """
        if not key:
            return False
        if self.key_prefix and not key.startswith(f"{self.key_prefix}{self.separator}"):
            return False
        return all(is_key_character(char) or char in self.separator for char in key)

    def load_existing_keys(self, keys: Iterable[str]) -> int:
        """
        Mark keys as used, e.g. keys of an existing locale file.

        Returns:
            int: Number of keys that were not known yet.
        """
        with self._lock:
            before = len(self._used_keys)
            self._used_keys.update(keys)
            return len(self._used_keys) - before

    def load_existing_mapping(self, mapping: Dict[str, str]) -> int:
        """
        Load a key -> text mapping from a previous run.

        The keys become used and, with reuse enabled, the same texts get the
        same keys again. When two keys hold the same text the first wins.

        Returns:
            int: Number of entries loaded.
        """
        with self._lock:
            for key, text in mapping.items():
                self._used_keys.add(key)
                self._text_to_key.setdefault(text, key)
        logger.info(f"Loaded {len(mapping)} existing keys")
        return len(mapping)

    def text_to_key_map(self) -> Dict[str, str]:
        """Return a copy of the text -> key memo."""
        with self._lock:
            return dict(self._text_to_key)

    def all_keys(self) -> List[str]:
        """Return every used key, sorted."""
        with self._lock:
            return sorted(self._used_keys)

    def stats(self) -> Dict[str, int]:
        """Return key counts and generation counters."""
        with self._lock:
            return {
                "total_keys": len(self._used_keys),
                "mapped_texts": len(self._text_to_key),
                **self._counters,
            }

    def clear(self) -> None:
        """Forget every key, memo entry and counter."""
        with self._lock:
            self._used_keys.clear()
            self._text_to_key.clear()
            self._nonce_counter = 0
            for name in self._counters:
                self._counters[name] = 0
