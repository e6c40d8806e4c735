from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture
def data_tree(tmp_path: Path) -> Path:
    """
    data/
        a.txt      (5 bytes)
        b.txt      (0 bytes)
        sub/
            c.txt
    """
    root = tmp_path / "data"
    root.mkdir()
    (root / "a.txt").write_bytes(b"hello")
    (root / "b.txt").write_bytes(b"")
    (root / "sub").mkdir()
    (root / "sub" / "c.txt").write_text("nested file\n", encoding="utf-8")
    return root


@pytest.fixture
def deny_listing(monkeypatch: pytest.MonkeyPatch):
    """Make os.scandir raise PermissionError for the given directories."""
    real_scandir = os.scandir

    def install(*denied: Path) -> None:
        denied_paths = {str(p) for p in denied}

        def fake_scandir(path=".", *args, **kwargs):
            if str(path) in denied_paths:
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path, *args, **kwargs)

        monkeypatch.setattr(os, "scandir", fake_scandir)

    return install


@pytest.fixture
def symlink():
    def make(target: Path, link: Path, target_is_directory: bool = False) -> None:
        try:
            os.symlink(target, link, target_is_directory=target_is_directory)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks are not supported here")

    return make
