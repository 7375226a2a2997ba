"""
Retention windows.

A client that keeps relays it has seen in the last K consensuses treats
the effective consensus at index i as the union of snapshots [i-K, i]
(clamped at 0). This module builds those unions for every index of a
time-sorted snapshot sequence, one index at a time.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Iterator, List, Sequence

from ..dto import Snapshot, WindowSets


def iter_effective_sets(snapshots: Sequence[Snapshot], retention: int) -> Iterator[WindowSets]:
    """
    Yield the effective identity and hash sets for every index, in order.

    Parameters
    ----------
    snapshots : Sequence[Snapshot]
        Time-sorted snapshots (a finalized store).
    retention : int
        Retention depth K >= 0; K = 0 means each snapshot stands alone.

    Notes
    -----
    Uses a rolling multiset: snapshot i is added and snapshot i-K-1 evicted,
    so each snapshot is touched twice per depth. Only the current window is
    held; callers keep as many past windows as they need. The result is
    identical to window_union() at every index.
    """
    if retention < 0:
        raise ValueError(f"retention must be >= 0, got {retention}")

    id_counts: Counter[str] = Counter()
    hash_counts: Counter[str] = Counter()

    for i, snap in enumerate(snapshots):
        id_counts.update(snap.ids)
        hash_counts.update(snap.hashes)

        evict = i - retention - 1
        if evict >= 0:
            old = snapshots[evict]
            _evict(id_counts, old.ids)
            _evict(hash_counts, old.hashes)

        yield WindowSets(ids=frozenset(id_counts), hashes=frozenset(hash_counts))


def effective_sets(snapshots: Sequence[Snapshot], retention: int) -> List[WindowSets]:
    """All windows for depth K at once. See iter_effective_sets()."""
    return list(iter_effective_sets(snapshots, retention))


def window_union(snapshots: Sequence[Snapshot], index: int, retention: int) -> WindowSets:
    """Union of snapshots[index-retention .. index], computed directly."""
    ids: set[str] = set()
    hashes: set[str] = set()
    for k in range(retention + 1):
        if k > index:
            break
        snap = snapshots[index - k]
        ids.update(snap.ids)
        hashes.update(snap.hashes)
    return WindowSets(ids=frozenset(ids), hashes=frozenset(hashes))


def mean_effective_size(windows: Iterable[WindowSets], mean_entry_size: float) -> float:
    """
    Mean size in bytes of an effective consensus: sum(|ids|) * mean_entry_size / N.

    Consumes `windows` in one pass, so a generator works.
    """
    total_entries = count = 0
    for window in windows:
        total_entries += len(window.ids)
        count += 1
    if not count:
        return 0.0
    return total_entries * (mean_entry_size / count)


# === helpers ===


def _evict(counts: Counter[str], keys: Iterable[str]) -> None:
    for key in keys:
        remaining = counts[key] - 1
        if remaining > 0:
            counts[key] = remaining
        else:
            del counts[key]
