"""Id assignment and parent resolution."""

from collections.abc import Sequence

from treeinventory.constants import ROOT_PARENT_ID
from treeinventory.models import RawEntry


def assign_ids(records: Sequence[RawEntry]) -> list[int]:
    """Number records 1..N in visitation order."""
    return list(range(1, len(records) + 1))


def build_directory_index(records: Sequence[RawEntry], ids: Sequence[int]) -> dict[str, int]:
    """Map every directory path to its id."""
    return {
        record.path: entry_id
        for record, entry_id in zip(records, ids)
        if record.is_directory
    }


def resolve_parent_ids(records: Sequence[RawEntry], ids: Sequence[int]) -> list[int]:
    """Find the parent id of every record.

    Needs the complete record set: a parent may appear anywhere in the
    sequence. Records whose parent directory was not visited (the scan root,
    or children of a directory that was dropped) get ROOT_PARENT_ID.

    Args:
        records: All records of the run
        ids: Ids aligned with records

    Returns:
        Parent ids aligned with records
    """
    if len(records) != len(ids):
        raise ValueError(f"Got {len(ids)} ids for {len(records)} records")

    index = build_directory_index(records, ids)
    parent_ids = []
    for record in records:
        # dirname("/") == "/", so a filesystem root would otherwise parent itself
        if record.parent_path == record.path:
            parent_ids.append(ROOT_PARENT_ID)
        else:
            parent_ids.append(index.get(record.parent_path, ROOT_PARENT_ID))
    return parent_ids
