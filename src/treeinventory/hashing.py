"""File content hashing."""

import errno
import hashlib
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed

from treeinventory.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_WORKERS,
    HASH_ACCESS_DENIED,
    HASH_ALGORITHMS,
    HASH_ERROR,
)
from treeinventory.errors import ErrorSink
from treeinventory.file_operations import ProgressCallback
from treeinventory.models import ErrorCategory

# Errors worth another attempt when hash_retries > 0
TRANSIENT_ERRNOS = {errno.EIO, errno.EAGAIN, errno.EBUSY, errno.EINTR, errno.ETIMEDOUT}


def normalize_algorithm(name: str) -> str:
    """Canonicalize an algorithm name.

    Examples:
        >>> normalize_algorithm("sha-256")
        'SHA256'

    Raises:
        ValueError: if the algorithm is not supported
    """
    canonical = name.strip().upper().replace("-", "").replace("_", "")
    if canonical not in HASH_ALGORITHMS:
        supported = ", ".join(HASH_ALGORITHMS)
        raise ValueError(f"Unsupported hash algorithm {name!r} (expected one of {supported})")
    return canonical


def compute_hash(file_path: str, algorithm: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Stream a file through a digest.

    Args:
        file_path: File to read
        algorithm: Canonical algorithm name (see normalize_algorithm)
        chunk_size: Bytes read per iteration

    Returns:
        Lowercase hex digest

    Raises:
        OSError: if the file cannot be opened or read
    """
    digest = hashlib.new(HASH_ALGORITHMS[algorithm])
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def is_transient(exc: OSError) -> bool:
    return exc.errno in TRANSIENT_ERRNOS


def hash_file(
    file_path: str,
    algorithm: str,
    sink: ErrorSink,
    retries: int = 0,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """Hash one file, converting failures into a sentinel and an error record."""
    attempt = 0
    while True:
        try:
            return compute_hash(file_path, algorithm, chunk_size)
        except PermissionError as e:
            sink.add_exception(file_path, e, ErrorCategory.HASH)
            return HASH_ACCESS_DENIED
        except OSError as e:
            if attempt < retries and is_transient(e):
                attempt += 1
                continue
            sink.add_exception(file_path, e, ErrorCategory.HASH)
            return HASH_ERROR


def hash_files(
    paths: Iterable[str],
    algorithm: str,
    sink: ErrorSink,
    max_workers: int = DEFAULT_MAX_WORKERS,
    retries: int = 0,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> dict[str, str]:
    """Hash many files on a bounded thread pool.

    Args:
        paths: Files to hash
        algorithm: Canonical algorithm name
        sink: Collector for Hash failures
        max_workers: Number of hashing threads
        retries: Extra attempts for transient I/O errors
        chunk_size: Bytes read per iteration
        progress: Called as progress("hash", done, total)
        cancel_event: When set, files not yet started are skipped

    Returns:
        Mapping of path to digest or sentinel; skipped files are absent
    """
    paths = list(paths)
    total = len(paths)
    results: dict[str, str] = {}
    if not paths:
        return results

    def run(path: str) -> str | None:
        if cancel_event is not None and cancel_event.is_set():
            return None
        return hash_file(path, algorithm, sink, retries, chunk_size)

    done = 0
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(run, path): path for path in paths}
        for future in as_completed(futures):
            value = future.result()
            if value is not None:
                results[futures[future]] = value
            done += 1
            if progress:
                progress("hash", done, total)
    return results
