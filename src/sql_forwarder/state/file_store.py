from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from sql_forwarder.errors import PersistenceError
from sql_forwarder.state.base import ensure_parent_dir
from sql_forwarder.utils.logging import get_logger


def cursor_file_path(directory: str, source_data: str, sequence_field: str, override: Optional[str] = None) -> str:
    """Resolve where the cursor file lives: the override name, or ``<source>-<field>.txt``."""
    name = override or f"{source_data}-{sequence_field}.txt"
    if os.path.isabs(name):
        return name
    return str(Path(directory) / name)


class FileCursorStore:
    """Keeps the cursor as the whole content of one text file."""

    def __init__(self, path: str, default_value: str = ""):
        self.path = path
        self.default_value = default_value
        self.log = get_logger("sql_forwarder.state.file")

    def read(self) -> str:
        """Return the stored value; unreadable or undecodable files count as no value."""
        if not os.path.exists(self.path):
            return self.default_value
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return f.read().strip()
        except (OSError, UnicodeDecodeError) as e:
            self.log.error(
                "Cursor read failed for %s (%s); falling back to default %r",
                self.path,
                e,
                self.default_value,
            )
            return self.default_value

    def write(self, value: str) -> None:
        """Replace the file content atomically (temp file + rename)."""
        directory = str(Path(self.path).parent)
        try:
            ensure_parent_dir(self.path)
            fd, tmp_path = tempfile.mkstemp(prefix=".cursor-", suffix=".tmp", dir=directory)
        except OSError as e:
            raise PersistenceError(f"Cursor write failed for {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Cursor write failed for {self.path}: {e}") from e
        self.log.debug("Cursor written: %s -> %s", self.path, value)

    def clear(self) -> None:
        try:
            os.remove(self.path)
            self.log.info("Deleted cursor file %s", self.path)
        except FileNotFoundError:
            self.log.info("No cursor file at %s", self.path)
        except OSError as e:
            raise PersistenceError(f"Cursor delete failed for {self.path}: {e}") from e
