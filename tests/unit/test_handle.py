from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from ziptree.archive.handle import ArchiveHandle
from ziptree.errors import ArchiveError


def test_create_truncates_existing_file(tmp_path: Path) -> None:
    out = tmp_path / "out.zip"
    out.write_bytes(b"not a zip at all")

    with ArchiveHandle.create(out) as h:
        h.add_dir("top")

    with zipfile.ZipFile(out) as z:
        assert z.namelist() == ["top/"]


def test_create_in_missing_directory_fails(tmp_path: Path) -> None:
    with pytest.raises(ArchiveError, match="Failed to create ZIP archive"):
        ArchiveHandle.create(tmp_path / "nope" / "out.zip")


def test_file_sources_are_read_at_close(tmp_path: Path) -> None:
    src = tmp_path / "data.txt"
    src.write_text("before", encoding="utf-8")
    out = tmp_path / "out.zip"

    h = ArchiveHandle.create(out)
    h.add_file(src, "data.txt")
    src.write_text("after", encoding="utf-8")
    h.close()

    with zipfile.ZipFile(out) as z:
        assert z.read("data.txt") == b"after"


def test_entries_keep_insertion_order(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_text("a", encoding="utf-8")
    out = tmp_path / "out.zip"

    with ArchiveHandle.create(out) as h:
        h.add_dir("x")
        h.add_file(a, "x/a.txt")
        h.add_dir("x/y/")
        assert h.num_entries() == 3

    with zipfile.ZipFile(out) as z:
        assert z.namelist() == ["x/", "x/a.txt", "x/y/"]


def test_add_missing_file_is_rejected(tmp_path: Path) -> None:
    with ArchiveHandle.create(tmp_path / "out.zip") as h:
        with pytest.raises(ArchiveError, match="zip source"):
            h.add_file(tmp_path / "ghost.txt", "ghost.txt")


def test_closed_handle_is_invalid(tmp_path: Path) -> None:
    h = ArchiveHandle.create(tmp_path / "out.zip")
    h.close()
    h.close()  # idempotent
    assert h.closed
    with pytest.raises(ArchiveError, match="Invalid zip archive"):
        h.add_dir("late")


def test_stat_and_read_entries(tmp_path: Path) -> None:
    out = tmp_path / "in.zip"
    with zipfile.ZipFile(out, "w") as z:
        z.writestr("d/", b"")
        z.writestr("d/f.bin", b"0123456789")

    with ArchiveHandle.open(out) as h:
        assert h.num_entries() == 2
        d = h.stat(0)
        f = h.stat(1)
        assert d.valid and d.is_dir
        assert (f.name, f.size, f.valid, f.is_dir) == ("d/f.bin", 10, True, False)
        with h.open_entry(1) as s:
            assert s.read_chunk(4) == b"0123"
            assert s.read_chunk(100) == b"456789"
            assert s.read_chunk(100) == b""
        with pytest.raises(ArchiveError, match="No entry at index"):
            h.stat(2)


def test_open_rejects_garbage(tmp_path: Path) -> None:
    bad = tmp_path / "bad.zip"
    bad.write_bytes(b"garbage" * 10)
    with pytest.raises(ArchiveError, match="Failed to open ZIP archive"):
        ArchiveHandle.open(bad)


def test_read_handle_refuses_writes(tmp_path: Path) -> None:
    out = tmp_path / "in.zip"
    with zipfile.ZipFile(out, "w"):
        pass
    with ArchiveHandle.open(out) as h:
        with pytest.raises(ArchiveError, match="not open for write"):
            h.add_dir("x")


def test_open_entry_out_of_range(tmp_path: Path) -> None:
    out = tmp_path / "in.zip"
    with zipfile.ZipFile(out, "w") as z:
        z.writestr("only.txt", b"1")
    with ArchiveHandle.open(out) as h:
        with pytest.raises(ArchiveError, match="No entry at index 5"):
            h.open_entry(5)
