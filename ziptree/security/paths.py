"""Entry-name guards for extraction.

Rejects names that would land outside the destination directory:
- absolute paths (``/etc/x``, ``C:/x``)
- ``..`` traversal segments (Zip Slip)
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath, PureWindowsPath

from ziptree.errors import ArchiveError


def _is_within(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False


def safe_target(dest: Path, entry_name: str) -> Path:
    """Return ``dest / entry_name`` or raise if the name escapes *dest*."""
    posix = PurePosixPath(entry_name)
    if posix.is_absolute() or PureWindowsPath(entry_name).is_absolute():
        raise ArchiveError(f"Unsafe entry name: {entry_name}")
    if ".." in posix.parts or ".." in PureWindowsPath(entry_name).parts:
        raise ArchiveError(f"Unsafe entry name: {entry_name}")
    target = dest / posix
    if not _is_within(dest.resolve(), target.resolve()):
        raise ArchiveError(f"Entry escapes destination: {entry_name}")
    return target
