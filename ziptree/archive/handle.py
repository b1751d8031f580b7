"""ZIP container primitives behind a single owned handle.

``ArchiveHandle`` wraps :class:`zipfile.ZipFile` and exposes the small set of
operations the packer and unpacker need:

- create (truncate) / open read-only
- queue a file entry or a directory marker
- count, stat and open entries by index
- close (flush queued entries, finalize the central directory)

File entries are lazy: ``add_file`` only records the source path and the
bytes are read from disk when the handle is closed. Sources must therefore
stay in place, unmodified, until ``close()`` returns.
"""

from __future__ import annotations

import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path

from ziptree.errors import ArchiveError
from ziptree.logging import get_logger
from ziptree.types import EntryInfo

COMPRESSION = zipfile.ZIP_DEFLATED

# Methods zipfile can decompress; anything else stats as invalid.
_DECODABLE = {zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED, zipfile.ZIP_BZIP2, zipfile.ZIP_LZMA}

log = get_logger(__name__)


@dataclass(frozen=True)
class _Pending:
    name: str
    source: Path | None = None  # None for directory markers


class EntryStream:
    """Read stream over one archive entry."""

    def __init__(self, name: str, raw) -> None:
        self.name = name
        self._raw = raw

    def read_chunk(self, max_len: int) -> bytes:
        """Return up to *max_len* bytes; ``b""`` means the entry is exhausted."""
        if self._raw is None:
            raise ArchiveError(f"Entry stream already closed: {self.name}")
        try:
            return self._raw.read(max_len)
        except (OSError, EOFError, zipfile.BadZipFile, zlib.error) as exc:
            raise ArchiveError(f"Failed to read file in ZIP archive: {self.name}") from exc

    def close(self) -> None:
        if self._raw is not None:
            raw, self._raw = self._raw, None
            raw.close()

    def __enter__(self) -> EntryStream:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ArchiveHandle:
    def __init__(self, path: Path, zf: zipfile.ZipFile, writable: bool) -> None:
        self.path = path
        self.writable = writable
        self._zf: zipfile.ZipFile | None = zf
        self._pending: list[_Pending] = []
        self._infos: list[zipfile.ZipInfo] = [] if writable else zf.infolist()

    # --- Construction -------------------------------------------------------

    @classmethod
    def create(cls, path: Path | str) -> ArchiveHandle:
        """Create *path* for writing, truncating any existing file.

        Source mtimes before 1980 are clamped to 1980-01-01 rather than rejected.
        """
        path = Path(path)
        try:
            zf = zipfile.ZipFile(path, "w", compression=COMPRESSION, strict_timestamps=False)
        except OSError as exc:
            raise ArchiveError(f"Failed to create ZIP archive: {path}") from exc
        return cls(path, zf, writable=True)

    @classmethod
    def open(cls, path: Path | str) -> ArchiveHandle:
        """Open an existing archive read-only."""
        path = Path(path)
        try:
            zf = zipfile.ZipFile(path, "r")
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveError(f"Failed to open ZIP archive: {path}") from exc
        return cls(path, zf, writable=False)

    # --- Writing ------------------------------------------------------------

    def _require(self, writable: bool) -> zipfile.ZipFile:
        if self._zf is None:
            raise ArchiveError("Invalid zip archive")
        if self.writable != writable:
            mode = "write" if writable else "read"
            raise ArchiveError(f"ZIP archive not open for {mode}: {self.path}")
        return self._zf

    def add_file(self, source: Path | str, name: str) -> None:
        """Queue *source* as entry *name*; its bytes are read at close time."""
        self._require(writable=True)
        source = Path(source)
        if not name:
            raise ArchiveError(f"Empty entry name for file: {source}")
        if not source.is_file():
            raise ArchiveError(f"Failed to create zip source for file: {source}")
        self._pending.append(_Pending(name=name, source=source))

    def add_dir(self, name: str) -> None:
        """Queue a directory marker; the trailing slash is added here."""
        self._require(writable=True)
        name = name.rstrip("/")
        if not name:
            raise ArchiveError("Failed to add directory to ZIP archive: empty name")
        self._pending.append(_Pending(name=name + "/"))

    def _flush(self, zf: zipfile.ZipFile) -> None:
        pending, self._pending = self._pending, []
        for item in pending:
            try:
                if item.source is None:
                    zf.mkdir(item.name)
                else:
                    zf.write(item.source, arcname=item.name)
            except (OSError, ValueError, zipfile.LargeZipFile) as exc:
                raise ArchiveError(
                    f"Failed to add file to ZIP archive: {item.source or item.name} as {item.name}"
                ) from exc
            log.debug("wrote entry %s", item.name)

    # --- Reading ------------------------------------------------------------

    def num_entries(self) -> int:
        if self.writable:
            return len(self._require(writable=True).infolist()) + len(self._pending)
        self._require(writable=False)
        return len(self._infos)

    def stat(self, index: int) -> EntryInfo:
        self._require(writable=False)
        try:
            info = self._infos[index]
        except IndexError as exc:
            raise ArchiveError(f"No entry at index {index} in ZIP archive: {self.path}") from exc
        valid = bool(info.filename) and info.file_size >= 0 and info.compress_type in _DECODABLE
        return EntryInfo(index=index, name=info.filename, size=info.file_size, valid=valid)

    def open_entry(self, index: int) -> EntryStream:
        zf = self._require(writable=False)
        try:
            info = self._infos[index]
        except IndexError as exc:
            raise ArchiveError(f"No entry at index {index} in ZIP archive: {self.path}") from exc
        try:
            raw = zf.open(info, "r")
        except (OSError, zipfile.BadZipFile, NotImplementedError, RuntimeError) as exc:
            raise ArchiveError(f"Failed to open file in ZIP archive: {info.filename}") from exc
        return EntryStream(info.filename, raw)

    # --- Release ------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._zf is None

    def close(self) -> None:
        """Flush queued entries (write mode) and release the container.

        Safe to call more than once. The underlying file is closed even when
        flushing fails.
        """
        if self._zf is None:
            return
        zf, self._zf = self._zf, None
        try:
            if self.writable:
                self._flush(zf)
        finally:
            try:
                zf.close()
            except OSError as exc:
                raise ArchiveError(f"Failed to close ZIP archive: {self.path}") from exc

    def __enter__(self) -> ArchiveHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.close()
            return False
        try:
            self.close()
        except ArchiveError as close_exc:
            # Keep the original failure; the finalize error is only reported.
            log.warning("closing %s after failure also failed: %s", self.path, close_exc)
        return False

