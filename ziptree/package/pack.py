"""Tree-to-archive packer.

Maps (source, prefix) pairs onto ZIP entries:
- a directory source becomes the entry named *prefix* itself (its own
  basename is not appended) and its children are nested below it
- a file source becomes ``prefix/<basename>`` (or ``<basename>`` at the root)
- empty directories produce no entry at all

Entry names always use forward slashes, whatever the host separator.
"""

from __future__ import annotations

import os
from pathlib import Path

from ziptree.archive.handle import ArchiveHandle
from ziptree.errors import ArchiveError
from ziptree.logging import get_logger
from ziptree.types import ArchiveTask

log = get_logger(__name__)


def normalize_prefix(prefix: str) -> str:
    """Return *prefix* with forward slashes and no leading/trailing slash."""
    return prefix.replace("\\", "/").strip("/")


def join_entry_name(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def _is_empty_dir(path: Path) -> bool:
    with os.scandir(path) as it:
        return next(it, None) is None


def _is_own_archive(handle: ArchiveHandle, path: Path) -> bool:
    try:
        return os.path.samefile(path, handle.path)
    except OSError:
        return False


def _add_file(handle: ArchiveHandle, path: Path, parent: str) -> None:
    # The destination may sit inside a source tree; never pack it into itself.
    if _is_own_archive(handle, path):
        log.debug("skipping %s: it is the archive being written", path)
        return
    entry = join_entry_name(parent, path.name)
    handle.add_file(path, entry)
    log.debug("queued file %s as %s", path, entry)


def _add_dir(
    handle: ArchiveHandle,
    path: Path,
    parent: str,
    root: bool = False,
    ancestors: frozenset[tuple[int, int]] = frozenset(),
) -> None:
    entry = parent if root else join_entry_name(parent, path.name)
    if not path.is_dir():
        raise ArchiveError(f"Invalid folder path: {path}")
    try:
        st = path.stat()
        key = (st.st_dev, st.st_ino)
        if key in ancestors:
            raise ArchiveError(f"Directory cycle through symlink: {path}")
        ancestors = ancestors | {key}
        empty = _is_empty_dir(path)
        # An empty root prefix has no name of its own; children go to the archive root.
        if not empty and entry:
            handle.add_dir(entry)
            log.debug("queued directory %s as %s/", path, entry)
        with os.scandir(path) as it:
            children = list(it)
    except OSError as exc:
        raise ArchiveError(f"Failed to read directory: {path}") from exc

    for child in children:
        child_path = Path(child.path)
        if child.is_dir():
            _add_dir(handle, child_path, entry, ancestors=ancestors)
        else:
            _add_file(handle, child_path, entry)


def add_to_archive(handle: ArchiveHandle, source: Path | str, prefix: str) -> None:
    """Add *source* to an archive the caller already holds open.

    The caller owns *handle* and is responsible for closing it.
    """
    if handle is None or handle.closed:
        raise ArchiveError("Invalid zip archive")
    source = Path(source)
    prefix = normalize_prefix(prefix)
    try:
        if source.is_dir():
            _add_dir(handle, source, prefix, root=True)
        else:
            _add_file(handle, source, prefix)
    except OSError as exc:
        raise ArchiveError(f"Failed to add {source} to ZIP archive: {exc}") from exc


def pack(task: ArchiveTask) -> None:
    """Create ``task.destination`` fresh and add every source in order.

    The first failure aborts the whole operation. The archive is closed on
    every path, so entries queued before the failure are still written and
    the partial archive is left on disk.
    """
    destination = Path(task.destination)
    log.info("packing %d source(s) into %s", len(task.sources), destination)
    with ArchiveHandle.create(destination) as handle:
        for item in task.sources:
            add_to_archive(handle, item.source, item.prefix)
        count = handle.num_entries()
    log.info("packed %d entries into %s", count, destination)


def pack_path(source: Path | str, prefix: str, archive_path: Path | str) -> None:
    """Create *archive_path* fresh holding just *source* under *prefix*."""
    source = Path(source)
    if not source.exists():
        raise ArchiveError(f"Invalid file path: {source}")
    with ArchiveHandle.create(archive_path) as handle:
        add_to_archive(handle, source, prefix)
    log.info("packed %s into %s", source, archive_path)
