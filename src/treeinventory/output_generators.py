"""CSV output and console summary utilities."""

import csv
import os
import pathlib
import tempfile
from collections import Counter
from collections.abc import Iterable

from treeinventory.constants import ERROR_COLUMNS, ERRORS_SUFFIX, INVENTORY_COLUMNS
from treeinventory.errors import FatalScanError
from treeinventory.models import ErrorRecord, InventoryResult


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string like "1.5 MB"
    """
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"


def errors_path_for(output_path: pathlib.Path) -> pathlib.Path:
    """Error report path paired with an inventory file.

    Examples:
        >>> errors_path_for(pathlib.Path("out/scan.csv"))
        PosixPath('out/scan_errors.csv')
    """
    return output_path.with_name(f"{output_path.stem}{ERRORS_SUFFIX}{output_path.suffix}")


def inventory_columns(hash_algorithm: str | None) -> list[str]:
    columns = list(INVENTORY_COLUMNS)
    if hash_algorithm:
        columns.append(hash_algorithm)
    return columns


def _discard(tmp_names: Iterable[str]) -> None:
    for tmp_name in tmp_names:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


def _stage_csv(path: pathlib.Path, columns: list[str], rows: Iterable[dict[str, str]]) -> str:
    """Write rows to a temporary sibling of ``path`` and return its name.

    Raises:
        FatalScanError: if the temporary file cannot be written
    """
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        with open(fd, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            writer.writerows(rows)
        return tmp_name
    except OSError as e:
        if tmp_name:
            _discard([tmp_name])
        raise FatalScanError(str(path), f"Could not write output ({e})") from e


def _publish(staged: list[tuple[str, pathlib.Path]]) -> None:
    """Move staged files over their destinations."""
    try:
        for tmp_name, path in staged:
            os.replace(tmp_name, path)
    except OSError as e:
        _discard(tmp_name for tmp_name, _ in staged)
        raise FatalScanError(str(path), f"Could not write output ({e})") from e


def _inventory_rows(result: InventoryResult) -> Iterable[dict[str, str]]:
    return (entry.to_row(result.hash_algorithm) for entry in result.entries)


def _error_rows(errors: Iterable[ErrorRecord]) -> Iterable[dict[str, str]]:
    return (
        {"Path": err.path, "Category": err.category.value, "Message": err.message}
        for err in errors
    )


def write_inventory_csv(result: InventoryResult, output_path: pathlib.Path) -> None:
    """Write one row per entry, in walker order.

    The hash column, named after the algorithm, is present only when the
    run hashed files.
    """
    tmp_name = _stage_csv(
        output_path, inventory_columns(result.hash_algorithm), _inventory_rows(result)
    )
    _publish([(tmp_name, output_path)])


def write_errors_csv(errors: Iterable[ErrorRecord], output_path: pathlib.Path) -> None:
    tmp_name = _stage_csv(output_path, list(ERROR_COLUMNS), _error_rows(errors))
    _publish([(tmp_name, output_path)])


def write_report(result: InventoryResult, output_path: pathlib.Path) -> pathlib.Path:
    """Write the inventory and its paired error report together.

    The error report is always written, header-only for a clean run, so a
    report left by an earlier run never sits next to a fresh inventory.
    Both files are staged before either replaces its destination.

    Returns:
        Path of the error report

    Raises:
        FatalScanError: if either file cannot be written
    """
    errors_path = errors_path_for(output_path)
    inventory_tmp = _stage_csv(
        output_path, inventory_columns(result.hash_algorithm), _inventory_rows(result)
    )
    try:
        errors_tmp = _stage_csv(errors_path, list(ERROR_COLUMNS), _error_rows(result.errors))
    except FatalScanError:
        _discard([inventory_tmp])
        raise
    # report first, so an inventory never lands without its report
    _publish([(errors_tmp, errors_path), (inventory_tmp, output_path)])
    return errors_path


def generate_statistics(result: InventoryResult) -> str:
    """Generate a plain-text run summary.

    Args:
        result: Finished inventory run

    Returns:
        Multi-line summary string
    """
    files = result.files
    total_size = sum(e.size_bytes or 0 for e in files)

    stats = f"Root: {result.root}\n"
    stats += f"Directories: {len(result.directories):,}\n"
    stats += f"Files: {len(files):,}\n"
    stats += f"Total size: {format_size(total_size)}\n"
    if result.hash_algorithm:
        hashed = sum(1 for e in files if e.hash)
        stats += f"Hashed ({result.hash_algorithm}): {hashed:,}\n"
    if result.completed_at:
        elapsed = (result.completed_at - result.started_at).total_seconds()
        stats += f"Elapsed: {elapsed:.1f}s\n"

    by_category = Counter(err.category.value for err in result.errors)
    stats += f"Errors: {len(result.errors):,}\n"
    for category, count in sorted(by_category.items(), key=lambda x: x[1], reverse=True):
        stats += f"  - {category}: {count:,}\n"
    return stats
