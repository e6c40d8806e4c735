"""File system traversal and raw entry collection."""

import os
import stat
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pathspec

from treeinventory.constants import DEFAULT_MAX_WORKERS
from treeinventory.errors import ErrorSink
from treeinventory.models import ErrorCategory, RawEntry

ProgressCallback = Callable[[str, int, int | None], None]


def split_name(name: str, is_directory: bool) -> tuple[str, str]:
    """Split a file name into extension and base name.

    Args:
        name: Final path component
        is_directory: Directories never have an extension

    Returns:
        Tuple of (extension including the dot, base name)

    Examples:
        >>> split_name("report.tar.gz", False)
        ('.gz', 'report.tar')
        >>> split_name(".bashrc", False)
        ('', '.bashrc')
    """
    if is_directory:
        return "", name
    base, ext = os.path.splitext(name)
    return ext, base


def creation_time(st: os.stat_result) -> datetime:
    """Birth time where the platform records it, otherwise st_ctime."""
    birth = getattr(st, "st_birthtime", None)
    return datetime.fromtimestamp(birth if birth is not None else st.st_ctime)


def make_raw_entry(path: str, parent_path: str, st: os.stat_result) -> RawEntry:
    """Build a RawEntry from a stat result.

    Raises:
        OverflowError, ValueError, OSError: timestamps outside the platform range
    """
    is_directory = stat.S_ISDIR(st.st_mode)
    return RawEntry(
        path=path,
        parent_path=parent_path,
        name=os.path.basename(path) or path,
        is_directory=is_directory,
        size_bytes=None if is_directory else st.st_size,
        created_at=creation_time(st),
        last_modified_at=datetime.fromtimestamp(st.st_mtime),
        last_accessed_at=datetime.fromtimestamp(st.st_atime),
        file_key=(st.st_dev, st.st_ino),
        is_regular=stat.S_ISREG(st.st_mode),
    )


def stat_root(root: str) -> RawEntry:
    """Stat the scan root. Errors propagate to the caller."""
    path = os.path.abspath(root)
    return make_raw_entry(path, os.path.dirname(path), os.stat(path))


def build_exclude_spec(patterns: list[str] | None) -> pathspec.PathSpec | None:
    """Compile gitignore-style exclusion patterns, or None when there are none."""
    if not patterns:
        return None
    return pathspec.PathSpec.from_lines(pathspec.patterns.GitWildMatchPattern, patterns)


def is_excluded(
    exclude_spec: pathspec.PathSpec | None, root: str, path: str, is_directory: bool
) -> bool:
    """Check a path against the exclusion spec.

    Paths are matched relative to the scan root with forward slashes;
    directories get a trailing slash so patterns like ``build/`` apply.
    """
    if exclude_spec is None:
        return False
    relative = os.path.relpath(path, root).replace(os.sep, "/")
    if is_directory:
        relative += "/"
    return exclude_spec.match_file(relative)


def directory_key(entry: RawEntry) -> tuple[int, int]:
    """Identity of a directory for cycle detection.

    DirEntry.stat() reports st_ino as zero on Windows, so fall back to os.stat.
    """
    if entry.file_key[1]:
        return entry.file_key
    st = os.stat(entry.path)
    return (st.st_dev, st.st_ino)


def list_directory(
    dir_path: str,
    root: str,
    sink: ErrorSink,
    include_files: bool = True,
    follow_symlinks: bool = False,
    exclude_spec: pathspec.PathSpec | None = None,
) -> list[RawEntry]:
    """List the immediate children of one directory.

    A failure opening or reading the directory is recorded as an Enumeration
    error; children read before the failure are kept. A failure to stat a
    single child drops that child and records an Enumeration error too.

    Returns:
        RawEntry objects for the children, sorted by name
    """
    children: list[RawEntry] = []
    try:
        with os.scandir(dir_path) as it:
            for dir_entry in it:
                if not include_files:
                    try:
                        if not dir_entry.is_dir(follow_symlinks=follow_symlinks):
                            continue
                    except OSError:
                        pass

                path = os.path.join(dir_path, dir_entry.name)
                try:
                    st = dir_entry.stat(follow_symlinks=follow_symlinks)
                except OSError as e:
                    sink.add_exception(path, e, ErrorCategory.ENUMERATION)
                    continue

                is_directory = stat.S_ISDIR(st.st_mode)
                if not is_directory and not include_files:
                    continue
                if is_excluded(exclude_spec, root, path, is_directory):
                    continue

                try:
                    children.append(make_raw_entry(path, dir_path, st))
                except (OverflowError, ValueError, OSError) as e:
                    sink.add(path, f"Unreadable timestamps: {e}", ErrorCategory.ENUMERATION)
    except OSError as e:
        sink.add_exception(dir_path, e, ErrorCategory.ENUMERATION)

    children.sort(key=lambda c: c.name)
    return children


def walk_tree(
    root: str,
    sink: ErrorSink,
    include_files: bool = True,
    follow_symlinks: bool = False,
    exclude_spec: pathspec.PathSpec | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[list[RawEntry], bool]:
    """Walk a directory tree breadth-first.

    Directories on the same level are listed concurrently, but results are
    consumed in submission order, so the returned sequence is deterministic:
    the root first, then each directory's children (sorted by name) in
    level order.

    Args:
        root: Directory to walk; must exist (errors stat-ing it propagate)
        sink: Collector for per-object failures
        include_files: False to record directories only
        follow_symlinks: Traverse symlinked directories
        exclude_spec: Compiled exclusion patterns
        max_workers: Number of directory listing threads
        progress: Called as progress("scan", directories_listed, None)
        cancel_event: When set, the walk stops at the next directory boundary

    Returns:
        Tuple of (records in visitation order, whether the walk was cancelled)
    """
    root_entry = stat_root(root)
    records = [root_entry]
    visited = {directory_key(root_entry)}
    level = [root_entry]
    listed = 0
    cancelled = False

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        while level and not cancelled:
            futures = [
                pool.submit(
                    list_directory,
                    directory.path,
                    root_entry.path,
                    sink,
                    include_files,
                    follow_symlinks,
                    exclude_spec,
                )
                for directory in level
            ]
            next_level: list[RawEntry] = []
            for future in futures:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    for pending in futures:
                        pending.cancel()
                    break

                children = future.result()
                records.extend(children)
                for child in children:
                    if not child.is_directory:
                        continue
                    if follow_symlinks:
                        try:
                            key = directory_key(child)
                        except OSError as e:
                            sink.add_exception(child.path, e, ErrorCategory.ENUMERATION)
                            continue
                        if key in visited:
                            sink.add(
                                child.path,
                                "Directory cycle detected; not descending",
                                ErrorCategory.ENUMERATION,
                            )
                            continue
                        visited.add(key)
                    next_level.append(child)

                listed += 1
                if progress:
                    progress("scan", listed, None)
            level = next_level

    return records, cancelled
