"""Default enumeration of candidate source files under a root."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

# Directories never descended into
SKIP_DIRS = frozenset(
    {
        ".git", ".hg", ".svn", ".venv", "venv", "__pycache__", ".pytest_cache",
        ".mypy_cache", ".ruff_cache", "node_modules", ".idea", "build", "dist",
        ".build", "DerivedData", "Pods", "target",
    }
)
MAX_FILE_SIZE = 512 * 1024  # 512 KB


def should_skip(path: Path, extensions: Iterable[str]) -> bool:
    """Return True if *path* is not a candidate for indexing."""
    if path.name.startswith("."):
        return True
    if path.suffix.lower() not in extensions:
        return True
    try:
        return path.stat().st_size > MAX_FILE_SIZE
    except OSError:
        return True


def iter_source_files(root: str | Path, extensions: Iterable[str]) -> list[str]:
    """Return absolute paths of allow-listed files under *root*, sorted.

    Hidden directories and common dependency/build directories are pruned.
    """
    allowed = frozenset(extensions)
    base = Path(root).expanduser().resolve()
    files: list[str] = []
    for current_root, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(
            d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")
        )
        for filename in filenames:
            path = Path(current_root) / filename
            if not should_skip(path, allowed):
                files.append(str(path))
    files.sort()
    return files
