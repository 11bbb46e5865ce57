"""
Source file discovery.

The FileScanner expands the configured include patterns below a root
directory, drops files matching an exclude pattern and reports each
remaining file with its category (lower-cased extension). Patterns follow
the usual glob conventions, including "**" and brace alternatives such as
"src/**/*.{ts,tsx}".

Author: ai-i18n contributors
License: MIT
"""

import asyncio
import re
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..config.logging_config import get_logger
from ..config.settings import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    PROCESSABLE_CATEGORIES,
)
from ..core.models import ScannedFile

# Initialize module logger
logger = get_logger(__name__)

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> List[str]:
    """
    Expand brace alternatives of a glob pattern.

    Example:
        >>> expand_braces("src/*.{js,ts}")
        ['src/*.js', 'src/*.ts']
    """
    match = _BRACES.search(pattern)
    if not match:
        return [pattern]

    expanded: List[str] = []
    for option in match.group(1).split(","):
        replaced = pattern[:match.start()] + option + pattern[match.end():]
        expanded.extend(expand_braces(replaced))
    return expanded


class FileScanner:
    """
    Finds the files a run processes.

    Args:
        root_dir: Directory patterns are relative to.
        include: Glob patterns of candidate files.
        exclude: Glob patterns of files to skip.
        categories: Extensions considered processable. Files with another
            extension are skipped.
    """

    def __init__(
        self,
        root_dir: Union[str, Path] = ".",
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        categories: Optional[Iterable[str]] = None,
    ) -> None:
        self.root_dir = Path(root_dir).resolve()
        self.include = list(include if include is not None else DEFAULT_INCLUDE_PATTERNS)
        self.exclude = [
            expanded
            for pattern in (exclude if exclude is not None else DEFAULT_EXCLUDE_PATTERNS)
            for expanded in expand_braces(pattern)
        ]
        self.categories = {c.lower() for c in (categories or PROCESSABLE_CATEGORIES)}

    def is_excluded(self, relative_path: str) -> bool:
        """Tell whether a root-relative POSIX path matches an exclude pattern."""
        for pattern in self.exclude:
            if fnmatch(relative_path, pattern):
                return True
            # "**/x" also matches "x" at the root.
            if pattern.startswith("**/") and fnmatch(relative_path, pattern[3:]):
                return True
        return False

    def scan(self) -> List[ScannedFile]:
        """
        Return the processable files, sorted by relative path.

        Returns:
            List[ScannedFile]: One entry per matching file.
        """
        found = {}
        for pattern in self.include:
            for expanded in expand_braces(pattern):
                for path in self.root_dir.glob(expanded):
                    if not path.is_file():
                        continue
                    relative = path.relative_to(self.root_dir).as_posix()
                    if relative in found or self.is_excluded(relative):
                        continue
                    category = path.suffix.lower()
                    if category not in self.categories:
                        continue
                    found[relative] = ScannedFile(
                        path=str(path),
                        relative_path=relative,
                        category=category,
                        size=path.stat().st_size,
                    )

        files = [found[relative] for relative in sorted(found)]
        logger.info(f"Found {len(files)} files to process in {self.root_dir}")
        return files

    async def scan_async(self) -> List[ScannedFile]:
        """Run scan() in a worker thread."""
        return await asyncio.to_thread(self.scan)
