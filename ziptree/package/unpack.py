"""Archive unpacker: recreate directories and stream file entries to disk.

Entries are processed strictly in archive order. Names ending in ``/`` are
directory markers; everything else is file content. Entries smaller than
``CHUNK_SIZE`` are read in a single call into a buffer of exactly their
size; larger ones are streamed through a ``CHUNK_SIZE`` buffer.

The first failing entry aborts the run. Files already written stay on disk.
"""

from __future__ import annotations

from pathlib import Path

from ziptree.archive.handle import ArchiveHandle, EntryStream
from ziptree.errors import ArchiveError
from ziptree.logging import get_logger
from ziptree.security.paths import safe_target
from ziptree.types import EntryInfo

CHUNK_SIZE = 1024 * 1024  # 1 MiB: small/large threshold and streaming buffer

log = get_logger(__name__)


def _ensure_dir(path: Path) -> None:
    if path.is_dir():
        return
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArchiveError(f"Failed to create directory on disk: {path}") from exc


def _open_output(target: Path, name: str):
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        return open(target, "wb")
    except OSError as exc:
        raise ArchiveError(f"Failed to create file on disk: {name}") from exc


def _write_small(stream: EntryStream, info: EntryInfo, target: Path) -> None:
    data = stream.read_chunk(info.size)
    if len(data) != info.size:
        raise ArchiveError(
            f"Failed to read file in ZIP archive: {info.name} "
            f"(got {len(data)} of {info.size} bytes)"
        )
    with _open_output(target, info.name) as out:
        out.write(data)


def _write_chunked(stream: EntryStream, info: EntryInfo, target: Path) -> None:
    total = 0
    with _open_output(target, info.name) as out:
        while total < info.size:
            chunk = stream.read_chunk(min(CHUNK_SIZE, info.size - total))
            if not chunk:
                raise ArchiveError(
                    f"Failed to read file in ZIP archive: {info.name} "
                    f"(stopped after {total} of {info.size} bytes)"
                )
            out.write(chunk)
            total += len(chunk)


def _extract_entry(handle: ArchiveHandle, info: EntryInfo, dest: Path) -> None:
    target = safe_target(dest, info.name)
    if info.is_dir:
        _ensure_dir(target)
        log.debug("created directory %s", target)
        return
    with handle.open_entry(info.index) as stream:
        if info.size < CHUNK_SIZE:
            _write_small(stream, info, target)
        else:
            _write_chunked(stream, info, target)
    log.debug("extracted %s (%d bytes)", info.name, info.size)


def unpack(archive_path: Path | str, destination_dir: Path | str) -> None:
    """Extract every entry of *archive_path* below *destination_dir*.

    An archive without entries is a no-op; the destination is only created
    once there is something to extract.
    """
    archive_path = Path(archive_path)
    dest = Path(destination_dir)
    if not archive_path.exists():
        raise ArchiveError(f"ZIP file not found: {archive_path}")

    with ArchiveHandle.open(archive_path) as handle:
        count = handle.num_entries()
        if count == 0:
            log.info("%s has no entries; nothing to extract", archive_path)
            return
        _ensure_dir(dest)
        log.info("extracting %d entries from %s into %s", count, archive_path, dest)
        for index in range(count):
            info = handle.stat(index)
            if not info.valid:
                raise ArchiveError(
                    f"Failed to get information about entry in ZIP archive: {index}"
                )
            _extract_entry(handle, info, dest)
    log.info("extracted %s", archive_path)


def list_entries(archive_path: Path | str) -> list[EntryInfo]:
    """Return the stat of every entry, in archive order, without extracting."""
    archive_path = Path(archive_path)
    if not archive_path.exists():
        raise ArchiveError(f"ZIP file not found: {archive_path}")
    with ArchiveHandle.open(archive_path) as handle:
        return [handle.stat(i) for i in range(handle.num_entries())]
