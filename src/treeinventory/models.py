"""Data models for treeinventory."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ErrorCategory(str, Enum):
    """Pipeline stage that produced a failure."""

    ENUMERATION = "Enumeration"
    STAT = "Stat"
    HASH = "Hash"
    ACCESS_CONTROL = "AccessControl"
    FATAL = "Fatal"


@dataclass(frozen=True)
class ErrorRecord:
    """One recoverable failure.

    Attributes:
        path: Path of the object that failed (or the input path)
        message: Human-readable cause
        category: Stage that failed
    """

    path: str
    message: str
    category: ErrorCategory


@dataclass(frozen=True)
class RawEntry:
    """A filesystem object as seen by the walker, before ids are assigned.

    Attributes:
        path: Absolute, OS-native path
        parent_path: Path of the containing directory
        name: Final path component
        is_directory: Whether the object is a directory
        size_bytes: Size in bytes, None for directories
        created_at: Creation time (birth time where the OS records it, else ctime)
        last_modified_at: Last modification time
        last_accessed_at: Last access time
        file_key: (st_dev, st_ino) pair used for cycle detection
        is_regular: Whether the object is a regular file (the only kind hashed)
    """

    path: str
    parent_path: str
    name: str
    is_directory: bool
    size_bytes: int | None
    created_at: datetime
    last_modified_at: datetime
    last_accessed_at: datetime
    file_key: tuple[int, int] = (0, 0)
    is_regular: bool = False


@dataclass(frozen=True)
class Entry:
    """A finalized inventory record.

    Attributes:
        id: Dense id assigned in visitation order, starting at 1
        parent_id: Id of the containing directory entry, 0 when not in the run
        path: Absolute, OS-native path
        parent_path: Path of the containing directory
        name: Final path component
        is_directory: Whether the entry is a directory
        size_bytes: Size in bytes, None for directories
        created_at: Creation time
        last_modified_at: Last modification time
        last_accessed_at: Last access time
        extension: Extension including the leading dot, or ""
        base_name: Name without extension
        hash: Hex digest, a failure sentinel, or None when not hashed
    """

    id: int
    parent_id: int
    path: str
    parent_path: str
    name: str
    is_directory: bool
    size_bytes: int | None
    created_at: datetime
    last_modified_at: datetime
    last_accessed_at: datetime
    extension: str
    base_name: str
    hash: str | None = None

    def to_row(self, hash_column: str | None = None) -> dict[str, str]:
        """Render the entry as a flat row of strings.

        The hash column is only present when ``hash_column`` is given.
        """
        row = {
            "Path": self.path,
            "Name": self.name,
            "ISDIR": str(self.is_directory),
            "ID": str(self.id),
            "PARENTID": str(self.parent_id),
            "PARENTPATH": self.parent_path,
            "CreationTime": self.created_at.isoformat(),
            "LastAccessTime": self.last_accessed_at.isoformat(),
            "LastWriteTime": self.last_modified_at.isoformat(),
            "Extension": self.extension,
            "BaseName": self.base_name,
            "Bytes": "" if self.size_bytes is None else str(self.size_bytes),
        }
        if hash_column:
            row[hash_column] = self.hash or ""
        return row


@dataclass
class InventoryResult:
    """Everything produced by one inventory run."""

    root: str
    entries: tuple[Entry, ...]
    errors: tuple[ErrorRecord, ...]
    hash_algorithm: str | None = None
    cancelled: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def files(self) -> list[Entry]:
        return [e for e in self.entries if not e.is_directory]

    @property
    def directories(self) -> list[Entry]:
        return [e for e in self.entries if e.is_directory]

    def by_id(self) -> dict[int, Entry]:
        return {e.id: e for e in self.entries}

    def by_path(self) -> dict[str, Entry]:
        return {e.path: e for e in self.entries}
