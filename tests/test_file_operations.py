from __future__ import annotations

import errno
import os
import threading
from pathlib import Path

import pytest
from treeinventory.errors import ErrorSink
from treeinventory.file_operations import (
    build_exclude_spec,
    is_excluded,
    list_directory,
    split_name,
    walk_tree,
)
from treeinventory.models import ErrorCategory


@pytest.mark.parametrize(
    "name, is_directory, expected",
    [
        ("a.txt", False, (".txt", "a")),
        ("archive.tar.gz", False, (".gz", "archive.tar")),
        ("Makefile", False, ("", "Makefile")),
        (".bashrc", False, ("", ".bashrc")),
        ("photos.2024", True, ("", "photos.2024")),
    ],
)
def test_split_name(name, is_directory, expected):
    assert split_name(name, is_directory) == expected


def test_walk_visits_root_first_then_breadth_first(data_tree: Path):
    sink = ErrorSink()
    records, cancelled = walk_tree(str(data_tree), sink)

    assert not cancelled
    assert len(sink) == 0
    assert [r.path for r in records] == [
        str(data_tree),
        str(data_tree / "a.txt"),
        str(data_tree / "b.txt"),
        str(data_tree / "sub"),
        str(data_tree / "sub" / "c.txt"),
    ]
    root, a, b, sub, c = records
    assert root.is_directory and root.size_bytes is None
    assert a.size_bytes == 5
    assert b.size_bytes == 0
    assert sub.is_directory and sub.size_bytes is None
    assert c.parent_path == str(data_tree / "sub")
    assert a.parent_path == str(data_tree)


def test_walk_directories_only(data_tree: Path):
    records, _ = walk_tree(str(data_tree), ErrorSink(), include_files=False)
    assert [r.path for r in records] == [str(data_tree), str(data_tree / "sub")]


def test_walk_single_worker_matches_pool(data_tree: Path):
    (data_tree / "sub" / "deeper").mkdir()
    (data_tree / "other").mkdir()
    (data_tree / "other" / "x.bin").write_bytes(b"\x00" * 10)

    serial, _ = walk_tree(str(data_tree), ErrorSink(), max_workers=1)
    parallel, _ = walk_tree(str(data_tree), ErrorSink(), max_workers=8)
    assert [r.path for r in serial] == [r.path for r in parallel]


def test_listing_failure_keeps_directory_but_drops_descendants(data_tree: Path, deny_listing):
    sub2 = data_tree / "sub2"
    (sub2 / "inner").mkdir(parents=True)
    (sub2 / "inner" / "secret.txt").write_text("x")
    deny_listing(sub2)

    sink = ErrorSink()
    records, _ = walk_tree(str(data_tree), sink)
    paths = [r.path for r in records]

    assert str(sub2) in paths
    assert not any(p.startswith(str(sub2) + os.sep) for p in paths)
    assert [(e.path, e.category) for e in sink] == [(str(sub2), ErrorCategory.ENUMERATION)]


def test_partial_listing_keeps_children_already_read(data_tree: Path, monkeypatch):
    real_scandir = os.scandir

    class FailingIterator:
        def __init__(self, real):
            self.real = real
            self.count = 0

        def __enter__(self):
            return self

        def __exit__(self, *args):
            self.real.close()

        def __iter__(self):
            return self

        def __next__(self):
            if self.count >= 1:
                raise OSError(errno.EIO, "Input/output error")
            self.count += 1
            return next(self.real)

    def fake_scandir(path=".", *args, **kwargs):
        if str(path) == str(data_tree):
            return FailingIterator(real_scandir(path))
        return real_scandir(path, *args, **kwargs)

    monkeypatch.setattr(os, "scandir", fake_scandir)
    sink = ErrorSink()
    children = list_directory(str(data_tree), str(data_tree), sink)

    assert len(children) == 1
    assert len(sink) == 1
    assert sink.records[0].category == ErrorCategory.ENUMERATION
    assert sink.records[0].message == "Input/output error"


def test_broken_symlink_is_an_enumeration_error_when_following(data_tree: Path, symlink):
    symlink(data_tree / "missing.txt", data_tree / "dangling")

    sink = ErrorSink()
    records, _ = walk_tree(str(data_tree), sink, follow_symlinks=True)

    assert str(data_tree / "dangling") not in [r.path for r in records]
    assert [(e.path, e.category) for e in sink] == [
        (str(data_tree / "dangling"), ErrorCategory.ENUMERATION)
    ]


def test_symlinks_recorded_but_not_traversed_by_default(data_tree: Path, symlink):
    symlink(data_tree / "sub", data_tree / "sub_link", target_is_directory=True)

    sink = ErrorSink()
    records, _ = walk_tree(str(data_tree), sink)
    by_path = {r.path: r for r in records}

    link = by_path[str(data_tree / "sub_link")]
    assert not link.is_directory
    assert str(data_tree / "sub_link" / "c.txt") not in by_path
    assert len(sink) == 0


def test_symlink_cycle_is_reported_and_walk_terminates(data_tree: Path, symlink):
    symlink(data_tree, data_tree / "sub" / "loop", target_is_directory=True)

    sink = ErrorSink()
    records, _ = walk_tree(str(data_tree), sink, follow_symlinks=True)
    paths = [r.path for r in records]

    loop = str(data_tree / "sub" / "loop")
    assert loop in paths
    assert not any(p.startswith(loop + os.sep) for p in paths)
    assert len(sink) == 1
    assert sink.records[0].path == loop
    assert sink.records[0].category == ErrorCategory.ENUMERATION
    assert "cycle" in sink.records[0].message


def test_exclude_patterns(data_tree: Path):
    (data_tree / "build").mkdir()
    (data_tree / "build" / "out.o").write_bytes(b"obj")
    (data_tree / "debug.log").write_text("log")
    (data_tree / "sub" / "trace.log").write_text("log")

    spec = build_exclude_spec(["*.log", "build/"])
    records, _ = walk_tree(str(data_tree), ErrorSink(), exclude_spec=spec)
    names = {r.name for r in records}

    assert "build" not in names
    assert "out.o" not in names
    assert "debug.log" not in names
    assert "trace.log" not in names
    assert {"a.txt", "b.txt", "sub", "c.txt"} <= names


def test_is_excluded_directory_pattern_does_not_match_file(tmp_path: Path):
    spec = build_exclude_spec(["build/"])
    assert is_excluded(spec, str(tmp_path), str(tmp_path / "build"), True)
    assert not is_excluded(spec, str(tmp_path), str(tmp_path / "build"), False)
    assert not is_excluded(None, str(tmp_path), str(tmp_path / "build"), True)


def test_build_exclude_spec_empty():
    assert build_exclude_spec([]) is None
    assert build_exclude_spec(None) is None


def test_cancelled_walk_returns_root_only(data_tree: Path):
    event = threading.Event()
    event.set()
    records, cancelled = walk_tree(str(data_tree), ErrorSink(), cancel_event=event)

    assert cancelled
    assert [r.path for r in records] == [str(data_tree)]


def test_progress_reports_each_listed_directory(data_tree: Path):
    calls = []
    walk_tree(str(data_tree), ErrorSink(), progress=lambda *args: calls.append(args))
    assert calls == [("scan", 1, None), ("scan", 2, None)]


def test_missing_root_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        walk_tree(str(tmp_path / "nope"), ErrorSink())


def test_only_regular_files_are_marked_regular(data_tree: Path, symlink):
    if not hasattr(os, "mkfifo"):
        pytest.skip("named pipes are not supported here")
    os.mkfifo(data_tree / "pipe")
    symlink(data_tree / "sub", data_tree / "sub_link", target_is_directory=True)

    records, _ = walk_tree(str(data_tree), ErrorSink())
    by_name = {r.name: r for r in records}

    assert by_name["a.txt"].is_regular
    assert not by_name["pipe"].is_regular
    assert not by_name["pipe"].is_directory
    assert not by_name["sub_link"].is_regular
    assert not by_name["sub"].is_regular
