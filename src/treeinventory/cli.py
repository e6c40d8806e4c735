"""Command-line interface for treeinventory."""

import argparse
import pathlib
import signal
import sys
import threading

from tqdm import tqdm

from treeinventory.config import ScanConfig
from treeinventory.constants import DEFAULT_MAX_WORKERS, DEFAULT_OUTPUT, HASH_ALGORITHMS
from treeinventory.errors import FatalScanError
from treeinventory.inventory import build_inventory
from treeinventory.models import InventoryResult
from treeinventory.output_generators import generate_statistics, write_report

STAGE_LABELS = {"scan": ("Scanning", "dir"), "hash": ("Hashing", "file")}


class ProgressBars:
    """Progress callback that keeps one tqdm bar per stage."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._bars: dict[str, tqdm] = {}

    def __call__(self, stage: str, done: int, total: int | None) -> None:
        bar = self._bars.get(stage)
        if bar is None:
            desc, unit = STAGE_LABELS.get(stage, (stage, "item"))
            bar = tqdm(total=total, desc=desc, unit=unit, disable=not self.enabled)
            self._bars[stage] = bar
        bar.update(done - bar.n)

    def close(self) -> None:
        for bar in self._bars.values():
            bar.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treeinventory",
        description=(
            "Inventory a directory tree into a CSV file: ids, parent links, "
            "timestamps, sizes and optional content hashes."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("directory", help="The directory to inventory.")
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT,
        help="The path for the output CSV file. Errors go to <name>_errors.csv.",
    )
    parser.add_argument(
        "--directories-only",
        action="store_true",
        help="Record directories only, skipping files.",
    )
    parser.add_argument(
        "--hash",
        dest="hash_algorithm",
        metavar="ALGORITHM",
        type=str.upper,
        choices=list(HASH_ALGORITHMS),
        help="Hash file contents with MD5, SHA1, SHA256 or SHA512 (slower).",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Number of parallel workers for listing and hashing.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="gitignore-style pattern to leave out (repeatable).",
    )
    parser.add_argument(
        "--follow-symlinks",
        action="store_true",
        help="Traverse symlinked directories (cycles are detected and reported).",
    )
    parser.add_argument(
        "--hash-retries",
        type=int,
        default=0,
        help="Retries for transient I/O errors while hashing.",
    )
    parser.add_argument(
        "--keep-partial",
        action="store_true",
        help="On Ctrl-C, write the entries gathered so far instead of nothing.",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide progress bars.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print every error record.",
    )
    return parser


def validate_output(output: str) -> pathlib.Path:
    """Resolve the output path and make sure its directory exists."""
    output_path = pathlib.Path(output).resolve()
    if not output_path.parent.is_dir():
        raise FatalScanError(str(output_path.parent), "Output directory not found")
    if output_path.is_dir():
        raise FatalScanError(str(output_path), "Output path is a directory")
    return output_path


def write_results(result: InventoryResult, output_path: pathlib.Path, verbose: bool) -> None:
    errors_path = write_report(result, output_path)
    print(f"Inventory: {output_path}")

    if result.errors:
        print(
            f"Warning: scan is incomplete for {len(result.errors)} object(s), see {errors_path}",
            file=sys.stderr,
        )
        if verbose:
            for err in result.errors:
                print(f"  [{err.category.value}] {err.path}: {err.message}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the treeinventory CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ScanConfig(
            root=args.directory,
            include_files=not args.directories_only,
            hash_algorithm=args.hash_algorithm,
            max_workers=args.jobs,
            exclude_patterns=args.exclude,
            follow_symlinks=args.follow_symlinks,
            hash_retries=args.hash_retries,
        )
    except ValueError as e:
        parser.error(str(e))

    cancel_event = threading.Event()

    def on_interrupt(signum, frame):
        print("\nInterrupted, stopping scan (press Ctrl-C again to abort)...", file=sys.stderr)
        cancel_event.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    progress = ProgressBars(enabled=not args.no_progress)
    try:
        output_path = validate_output(args.output)
        print(f"Scanning directory: {pathlib.Path(args.directory).resolve()}")
        result = build_inventory(config, progress=progress, cancel_event=cancel_event)
        progress.close()

        if result.cancelled and not args.keep_partial:
            print("Scan cancelled; no output written.", file=sys.stderr)
            return 130

        write_results(result, output_path, args.verbose)
        print(generate_statistics(result), end="")
        return 130 if result.cancelled else 0
    except FatalScanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nAborted; no output written.", file=sys.stderr)
        return 130
    finally:
        progress.close()
        signal.signal(signal.SIGINT, previous_handler)


if __name__ == "__main__":
    sys.exit(main())
