"""Exceptions and the per-run error sink."""

import threading
from collections import Counter
from collections.abc import Iterator

from treeinventory.models import ErrorCategory, ErrorRecord


class InventoryError(Exception):
    """Base class for treeinventory exceptions."""


class FatalScanError(InventoryError):
    """The run cannot start or cannot be saved (bad root, unwritable output)."""

    category = ErrorCategory.FATAL

    def __init__(self, path: str, message: str):
        super().__init__(f"{message}: {path}")
        self.path = path
        self.message = message


class ErrorSink:
    """Append-only, thread-safe collection of ErrorRecords for one run."""

    def __init__(self):
        self._records: list[ErrorRecord] = []
        self._lock = threading.Lock()

    def add(self, path: str, message: str, category: ErrorCategory) -> ErrorRecord:
        record = ErrorRecord(path=str(path), message=message, category=category)
        with self._lock:
            self._records.append(record)
        return record

    def add_exception(self, path: str, exc: BaseException, category: ErrorCategory) -> ErrorRecord:
        """Record an exception, using its strerror when the OS supplied one."""
        message = getattr(exc, "strerror", None) or str(exc) or type(exc).__name__
        return self.add(path, message, category)

    @property
    def records(self) -> tuple[ErrorRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def counts(self) -> Counter:
        return Counter(r.category for r in self.records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(self.records)
