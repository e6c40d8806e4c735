"""Scan configuration."""

from dataclasses import dataclass, field

from treeinventory.constants import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_WORKERS


@dataclass
class ScanConfig:
    """Options for a single inventory run.

    Attributes:
        root: Directory to inventory
        include_files: False for a directories-only inventory
        hash_algorithm: One of MD5, SHA1, SHA256, SHA512, or None to skip hashing
        max_workers: Thread pool size for directory listing and hashing
        exclude_patterns: gitignore-style patterns, relative to the root
        follow_symlinks: Traverse symlinked directories (cycles are detected)
        hash_retries: Extra attempts for transient I/O errors while hashing
        chunk_size: Read size used when hashing
    """

    root: str
    include_files: bool = True
    hash_algorithm: str | None = None
    max_workers: int = DEFAULT_MAX_WORKERS
    exclude_patterns: list[str] = field(default_factory=list)
    follow_symlinks: bool = False
    hash_retries: int = 0
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.hash_retries < 0:
            raise ValueError(f"hash_retries must not be negative, got {self.hash_retries}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
