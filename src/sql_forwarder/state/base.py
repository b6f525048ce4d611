from __future__ import annotations

from pathlib import Path
from typing import Protocol


class CursorStore(Protocol):
    """Protocol for cursor persistence backends."""

    def read(self) -> str: ...

    def write(self, value: str) -> None: ...

    def clear(self) -> None: ...


def ensure_parent_dir(path: str) -> None:
    parent = Path(path).parent
    if str(parent) not in {"", "."}:
        parent.mkdir(parents=True, exist_ok=True)
