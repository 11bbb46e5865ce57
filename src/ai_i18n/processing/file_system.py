"""
Asynchronous file-system access.

The orchestrator only touches files through this small interface
(``read``, ``write``, ``ensure_dir``, ``exists``) so that tests can swap in
an in-memory implementation. LocalFileSystem runs the blocking calls in a
worker thread with ``asyncio.to_thread`` to keep the event loop free.

Author: ai-i18n contributors
License: MIT
"""

import asyncio
import os
from pathlib import Path
from typing import Union

from ..core.errors import WriteError

PathLike = Union[str, Path]


class LocalFileSystem:
    """File-system access backed by the local disk (UTF-8 text)."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    async def read(self, path: PathLike) -> str:
        """Read a text file. OSError propagates to the caller."""
        return await asyncio.to_thread(Path(path).read_text, encoding=self.encoding)

    async def write(self, path: PathLike, content: str) -> None:
        """
        Write a text file atomically, creating parent directories.

        Raises:
            WriteError: If the file cannot be written.
        """
        try:
            await asyncio.to_thread(self._write_sync, Path(path), content)
        except OSError as e:
            raise WriteError(str(path), str(e)) from e

    async def ensure_dir(self, path: PathLike) -> None:
        """
        Create a directory and its parents if missing.

        Raises:
            WriteError: If the directory cannot be created.
        """
        try:
            await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(str(path), str(e)) from e

    async def exists(self, path: PathLike) -> bool:
        return await asyncio.to_thread(Path(path).exists)

    def _write_sync(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f".{path.name}.tmp")
        temp_path.write_text(content, encoding=self.encoding)
        os.replace(temp_path, path)
