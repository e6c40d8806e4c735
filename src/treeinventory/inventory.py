"""Inventory assembly: walk, resolve, hash, and finalize."""

import os
import threading
from collections.abc import Mapping, Sequence
from datetime import datetime

from treeinventory.config import ScanConfig
from treeinventory.constants import ROOT_PARENT_ID
from treeinventory.errors import ErrorSink, FatalScanError
from treeinventory.file_operations import (
    ProgressCallback,
    build_exclude_spec,
    split_name,
    walk_tree,
)
from treeinventory.hashing import hash_files, normalize_algorithm
from treeinventory.hierarchy import assign_ids, resolve_parent_ids
from treeinventory.models import Entry, InventoryResult, RawEntry


def assemble_entries(
    records: Sequence[RawEntry],
    ids: Sequence[int],
    parent_ids: Sequence[int],
    hashes: Mapping[str, str] | None = None,
) -> list[Entry]:
    """Join walker records, hierarchy links, and hash results.

    Order is preserved. Only regular files carry a hash; FIFOs, devices and
    unfollowed symlinks are never opened.
    """
    hashes = hashes or {}
    entries = []
    for record, entry_id, parent_id in zip(records, ids, parent_ids, strict=True):
        extension, base_name = split_name(record.name, record.is_directory)
        entries.append(
            Entry(
                id=entry_id,
                parent_id=parent_id or ROOT_PARENT_ID,
                path=record.path,
                parent_path=record.parent_path,
                name=record.name,
                is_directory=record.is_directory,
                size_bytes=record.size_bytes,
                created_at=record.created_at,
                last_modified_at=record.last_modified_at,
                last_accessed_at=record.last_accessed_at,
                extension=extension,
                base_name=base_name,
                hash=hashes.get(record.path) if record.is_regular else None,
            )
        )
    return entries


def validate_root(root: str) -> str:
    """Check that the scan root is an accessible directory.

    Returns:
        Absolute root path

    Raises:
        FatalScanError: if the root is missing, not a directory, or unreadable
    """
    path = os.path.abspath(root)
    if not os.path.exists(path):
        raise FatalScanError(path, "Directory not found")
    if not os.path.isdir(path):
        raise FatalScanError(path, "Not a directory")
    if not os.access(path, os.R_OK | os.X_OK):
        raise FatalScanError(path, "Directory is not readable")
    return path


def build_inventory(
    config: ScanConfig,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> InventoryResult:
    """Run one inventory of ``config.root``.

    Per-object failures end up in ``result.errors``; the run only raises for
    problems with the root itself.

    Args:
        config: Scan options
        progress: Optional callback, called as progress(stage, done, total)
        cancel_event: When set, the run stops early and returns the entries
            gathered so far with ``cancelled`` set

    Raises:
        FatalScanError: if the root cannot be scanned
        ValueError: if the hash algorithm is not supported
    """
    started_at = datetime.now()
    algorithm = normalize_algorithm(config.hash_algorithm) if config.hash_algorithm else None
    root = validate_root(config.root)
    sink = ErrorSink()

    try:
        records, cancelled = walk_tree(
            root,
            sink,
            include_files=config.include_files,
            follow_symlinks=config.follow_symlinks,
            exclude_spec=build_exclude_spec(config.exclude_patterns),
            max_workers=config.max_workers,
            progress=progress,
            cancel_event=cancel_event,
        )
    except (OSError, ValueError, OverflowError) as e:
        raise FatalScanError(root, f"Cannot read scan root ({e})") from e

    ids = assign_ids(records)
    parent_ids = resolve_parent_ids(records, ids)

    hashes: dict[str, str] = {}
    if algorithm and config.include_files and not cancelled:
        hashes = hash_files(
            (r.path for r in records if r.is_regular),
            algorithm,
            sink,
            max_workers=config.max_workers,
            retries=config.hash_retries,
            chunk_size=config.chunk_size,
            progress=progress,
            cancel_event=cancel_event,
        )
        if cancel_event is not None and cancel_event.is_set():
            cancelled = True

    entries = assemble_entries(records, ids, parent_ids, hashes)
    return InventoryResult(
        root=root,
        entries=tuple(entries),
        errors=sink.records,
        hash_algorithm=algorithm,
        cancelled=cancelled,
        started_at=started_at,
        completed_at=datetime.now(),
    )
