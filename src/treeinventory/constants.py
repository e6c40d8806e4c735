"""Shared constants for treeinventory."""

# Canonical algorithm name -> hashlib constructor name
HASH_ALGORITHMS: dict[str, str] = {
    "MD5": "md5",
    "SHA1": "sha1",
    "SHA256": "sha256",
    "SHA512": "sha512",
}

HASH_ACCESS_DENIED = "ACCESS_DENIED"
HASH_ERROR = "ERROR"

# Parent id for entries whose containing directory is not part of the run
ROOT_PARENT_ID = 0

DEFAULT_CHUNK_SIZE = 1 << 20
DEFAULT_MAX_WORKERS = 4
DEFAULT_OUTPUT = "inventory.csv"
ERRORS_SUFFIX = "_errors"

INVENTORY_COLUMNS: tuple[str, ...] = (
    "Path",
    "Name",
    "ISDIR",
    "ID",
    "PARENTID",
    "PARENTPATH",
    "CreationTime",
    "LastAccessTime",
    "LastWriteTime",
    "Extension",
    "BaseName",
    "Bytes",
)

ERROR_COLUMNS: tuple[str, ...] = ("Path", "Category", "Message")
