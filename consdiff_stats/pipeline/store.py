"""
Snapshot store: every ingested consensus plus the dataset-wide means.

The store is filled archive by archive in any order and then finalized
once. Finalizing sorts by time and derives the means every later figure
depends on; nothing is reported from an unfinalized store.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from ..dto import AuxDescriptorBatch, GlobalSummary, Snapshot
from ..errors import NoDataError

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Ordered collection of Snapshot records owned by one run.

    Usage:
        store = SnapshotStore()
        store.extend(snapshots)
        store.aux.add(size)
        summary = store.finalize()
    """

    def __init__(self) -> None:
        self._snapshots: List[Snapshot] = []
        self.aux = AuxDescriptorBatch()
        self._summary: Optional[GlobalSummary] = None

    # --- accumulation ---

    def add(self, snapshot: Snapshot) -> None:
        self._snapshots.append(snapshot)
        self._summary = None

    def extend(self, snapshots: Iterable[Snapshot]) -> int:
        """Add every snapshot from `snapshots`; return how many were added."""
        n = 0
        for snap in snapshots:
            self.add(snap)
            n += 1
        return n

    # --- finalize ---

    def finalize(self) -> GlobalSummary:
        """
        Sort by time (stable, ties keep insertion order) and compute the means.

        Raises NoDataError when there is no snapshot or no entry at all.
        Calling it again on an unchanged store returns the same summary.
        """
        if not self._snapshots:
            raise NoDataError("no consensus documents were ingested")

        self._snapshots.sort(key=lambda s: s.time)

        total_bytes = 0
        total_entries = 0
        for snap in self._snapshots:
            total_bytes += snap.byte_size
            total_entries += snap.entry_count

        if total_entries == 0:
            raise NoDataError("the ingested consensus documents list no relays")

        if self.aux.count == 0:
            logger.warning("No auxiliary descriptors found; their mean size is reported as 0")
            mean_aux = 0.0
        else:
            mean_aux = self.aux.mean_size

        self._summary = GlobalSummary(
            snapshot_count=len(self._snapshots),
            total_bytes=total_bytes,
            total_entries=total_entries,
            mean_entry_size=total_bytes / total_entries,
            aux_count=self.aux.count,
            mean_aux_size=mean_aux,
        )
        return self._summary

    @property
    def is_finalized(self) -> bool:
        return self._summary is not None

    @property
    def summary(self) -> GlobalSummary:
        if self._summary is None:
            raise RuntimeError("SnapshotStore.finalize() must run before reading statistics")
        return self._summary

    # --- read access ---

    @property
    def snapshots(self) -> List[Snapshot]:
        return list(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(self._snapshots)

    def __getitem__(self, index: int) -> Snapshot:
        return self._snapshots[index]
