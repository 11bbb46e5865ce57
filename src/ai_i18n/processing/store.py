"""
Aggregate key -> text store of a run.

Every successful work unit merges its final key -> text pairs into one
shared store, which becomes the primary locale file. Merging is idempotent
and commutative: inserting a known pair again changes nothing, and a key
that already holds a different text keeps its first text while the
conflicting pair is dropped and reported as a warning.

Author: ai-i18n contributors
License: MIT
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from ..config.logging_config import get_logger

# Module-level logger for consistent logging.
logger = get_logger(__name__)


@dataclass
class MergeReport:
    """What a merge did with each incoming pair."""
    added: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)


class AggregateTextStore:
    """
    Thread-safe, first-writer-wins mapping of final key to source text.

    Example:
        >>> store = AggregateTextStore({"k1": "A"})
        >>> store.merge({"k1": "B"}).conflicts
        ["Key 'k1' already holds 'A'; dropped 'B'"]
        >>> store.get("k1")
        'A'
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._texts: Dict[str, str] = dict(initial or {})
        self._warnings: List[str] = []

    def merge(self, pairs: Dict[str, str], source: str = "") -> MergeReport:
        """
        Merge key -> text pairs into the store.

        Args:
            pairs: Pairs produced by one work unit.
            source: Origin of the pairs, used in warnings.

        Returns:
            MergeReport: Added, unchanged and conflicting keys. Conflicts
            are also kept in ``warnings``.
        """
        report = MergeReport()
        origin = f" (from {source})" if source else ""

        with self._lock:
            for key, text in pairs.items():
                existing = self._texts.get(key)
                if existing is None:
                    self._texts[key] = text
                    report.added.append(key)
                elif existing == text:
                    report.unchanged.append(key)
                else:
                    warning = f"Key '{key}' already holds '{existing}'; dropped '{text}'{origin}"
                    report.conflicts.append(warning)
                    self._warnings.append(warning)

        for warning in report.conflicts:
            logger.warning(warning)
        return report

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._texts.get(key)

    def snapshot(self) -> Dict[str, str]:
        """Return a copy of the store's contents."""
        with self._lock:
            return dict(self._texts)

    @property
    def warnings(self) -> List[str]:
        with self._lock:
            return list(self._warnings)

    def clear(self) -> None:
        with self._lock:
            self._texts.clear()
            self._warnings.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._texts)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._texts

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())
