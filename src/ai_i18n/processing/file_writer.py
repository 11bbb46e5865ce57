"""
Output placement for rewritten sources and locale files.

This module provides the FileWriter, which decides where a rewritten work
unit goes (back over the source, or under a separate output directory when
``temp_dir`` is configured) and reads and writes locale JSON files named
after a pattern such as "{locale}.json".

Author: ai-i18n contributors
License: MIT
"""

import json
from pathlib import Path
from typing import Dict, Optional, Union

from ..config.logging_config import get_logger
from ..config.settings import LOCALE_FILE_PATTERN, OUTPUT_DIR, PRETTY_JSON
from ..core.models import WorkUnit
from .file_system import LocalFileSystem

# Module-level logger for consistent logging.
logger = get_logger(__name__)


class FileWriter:
    """
    Writes rewritten units and locale files through a file system.

    Args:
        file_system: Asynchronous file-system implementation.
        output_dir: Directory of the locale files.
        locale_file_pattern: File name pattern containing "{locale}".
        pretty_json: Indent locale files.
        temp_dir: When set, rewritten units are written below this directory
            at their relative path instead of overwriting the sources.
    """

    def __init__(
        self,
        file_system: Optional[LocalFileSystem] = None,
        output_dir: Union[str, Path] = OUTPUT_DIR,
        locale_file_pattern: str = LOCALE_FILE_PATTERN,
        pretty_json: bool = PRETTY_JSON,
        temp_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.file_system = file_system or LocalFileSystem()
        self.output_dir = Path(output_dir)
        self.locale_file_pattern = locale_file_pattern
        self.pretty_json = pretty_json
        self.temp_dir = Path(temp_dir) if temp_dir else None

    def target_path(self, unit: WorkUnit) -> Path:
        """Return where a rewritten unit is written."""
        if self.temp_dir is not None:
            return self.temp_dir / unit.relative_path
        return Path(unit.path)

    def locale_file_path(self, locale: str) -> Path:
        """Return the path of a locale's JSON file."""
        return self.output_dir / self.locale_file_pattern.format(locale=locale)

    def to_json(self, data: Dict[str, str]) -> str:
        if self.pretty_json:
            return json.dumps(data, ensure_ascii=False, indent=2) + "\n"
        return json.dumps(data, ensure_ascii=False)

    async def write_unit(self, unit: WorkUnit, content: str) -> Path:
        """
        Write the rewritten content of a unit.

        Raises:
            WriteError: If the file cannot be written.
        """
        path = self.target_path(unit)
        await self.file_system.write(path, content)
        logger.debug(f"Wrote {path}")
        return path

    async def write_locale_file(
        self,
        locale: str,
        data: Dict[str, str],
        path: Optional[Union[str, Path]] = None,
    ) -> Path:
        """
        Write a key -> text mapping as a locale file.

        Args:
            locale: Locale code substituted into the file name pattern.
            data: Entries to write.
            path: Explicit output path overriding the pattern.

        Returns:
            Path: The written file.

        Raises:
            WriteError: If the file cannot be written.
        """
        target = Path(path) if path is not None else self.locale_file_path(locale)
        await self.file_system.ensure_dir(target.parent)
        await self.file_system.write(target, self.to_json(data))
        logger.info(f"Wrote {len(data)} entries to {target}")
        return target

    async def read_locale_file(
        self,
        locale: str = "",
        path: Optional[Union[str, Path]] = None,
    ) -> Dict[str, str]:
        """
        Read a locale file written by a previous run.

        A missing file yields an empty mapping. An unreadable or malformed
        file is logged and also yields an empty mapping.
        """
        source = Path(path) if path is not None else self.locale_file_path(locale)
        if not await self.file_system.exists(source):
            return {}

        try:
            data = json.loads(await self.file_system.read(source))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable locale file {source}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring locale file {source}: not a JSON object")
            return {}

        return {str(key): value for key, value in data.items() if isinstance(value, str)}
