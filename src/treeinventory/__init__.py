"""treeinventory: A tool for producing a structured inventory of a directory tree.

This package walks a directory tree, assigns every file and folder an id,
links each entry to its parent, optionally hashes file contents, and writes
the result (plus an itemized error report) as CSV.
"""

from treeinventory.cli import main
from treeinventory.config import ScanConfig
from treeinventory.errors import ErrorSink, FatalScanError, InventoryError
from treeinventory.inventory import build_inventory
from treeinventory.models import Entry, ErrorCategory, ErrorRecord, InventoryResult

__version__ = "0.1.0"
__all__ = [
    "main",
    "build_inventory",
    "ScanConfig",
    "Entry",
    "ErrorCategory",
    "ErrorRecord",
    "ErrorSink",
    "FatalScanError",
    "InventoryError",
    "InventoryResult",
]
