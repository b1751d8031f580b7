from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """dirA/file1.txt = "hello", dirA/sub/file2.txt = "world"."""
    root = tmp_path / "dirA"
    (root / "sub").mkdir(parents=True)
    (root / "file1.txt").write_text("hello", encoding="utf-8")
    (root / "sub" / "file2.txt").write_text("world", encoding="utf-8")
    return root
