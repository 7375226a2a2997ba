"""
Diff-size estimation over retention windows.

For a retention depth K and interval I, every index i with i - I >= 0 is
compared against i - I:

- relays added to the effective set cost mean_entry_size + added_entry_overhead
- relays removed from it cost removed_entry_cost
- hashes new to the effective set cost one mean auxiliary descriptor, the
  download a client makes only when a descriptor actually changed

Sums are divided by the number of comparable pairs. Each (K, I) cell is
independent of every other, so the sweep may fan out one worker per K.
"""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Deque, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..config import StatsConfig
from ..dto import (
    DiffCounts,
    GlobalSummary,
    IntervalEstimate,
    RetentionSummary,
    Snapshot,
    WindowSets,
)
from .store import SnapshotStore
from .windowing import iter_effective_sets, mean_effective_size

logger = logging.getLogger(__name__)

# Set once per pool process by _init_worker().
_WORKER_STATE: Optional[Tuple[Tuple[Snapshot, ...], GlobalSummary, StatsConfig]] = None


def diff_counts(old: WindowSets, new: WindowSets) -> DiffCounts:
    """Count relays added, relays removed, and hashes not known before."""
    return DiffCounts(
        added=len(new.ids - old.ids),
        removed=len(old.ids - new.ids),
        new_hashes=len(new.hashes - old.hashes),
    )


@dataclass
class _IntervalTally:
    """Running counts for one (K, I) cell."""
    interval: int
    pairs: int = 0
    added: int = 0
    removed: int = 0
    new_hashes: int = 0

    def add(self, counts: DiffCounts) -> None:
        self.pairs += 1
        self.added += counts.added
        self.removed += counts.removed
        self.new_hashes += counts.new_hashes

    def estimate(self, retention: int, summary: GlobalSummary, cfg: StatsConfig) -> IntervalEstimate:
        diff_total = (
            self.added * (summary.mean_entry_size + cfg.added_entry_overhead)
            + self.removed * cfg.removed_entry_cost
        )
        aux_total = self.new_hashes * summary.mean_aux_size
        pairs = self.pairs
        return IntervalEstimate(
            retention=retention,
            interval=self.interval,
            pairs=pairs,
            added=self.added,
            removed=self.removed,
            new_hashes=self.new_hashes,
            mean_diff_size=diff_total / pairs if pairs else 0.0,
            mean_aux_refetch_size=aux_total / pairs if pairs else 0.0,
        )


def estimate_interval(
    windows: Sequence[WindowSets],
    *,
    retention: int,
    interval: int,
    summary: GlobalSummary,
    cfg: StatsConfig,
) -> IntervalEstimate:
    """
    Mean diff and auxiliary re-fetch sizes for one (K, I) cell.

    With fewer than interval + 1 windows there is no comparable pair; both
    means are then 0.0 and `pairs` is 0.
    """
    if interval < 1:
        raise ValueError(f"interval must be >= 1, got {interval}")

    tally = _IntervalTally(interval)
    for i in range(interval, len(windows)):
        tally.add(diff_counts(windows[i - interval], windows[i]))
    return tally.estimate(retention, summary, cfg)


def estimate_retention(
    snapshots: Sequence[Snapshot],
    *,
    retention: int,
    summary: GlobalSummary,
    cfg: StatsConfig,
) -> RetentionSummary:
    """
    Evaluate I = 1..max_interval for depth K in a single pass over the windows.

    Only the last max_interval + 1 windows are held at any time.
    """
    tallies = [_IntervalTally(interval) for interval in range(1, cfg.max_interval + 1)]
    windows = _tally_diffs(iter_effective_sets(snapshots, retention), tallies)
    mean_size = mean_effective_size(windows, summary.mean_entry_size)
    return RetentionSummary(
        retention=retention,
        mean_effective_size=mean_size,
        intervals=tuple(tally.estimate(retention, summary, cfg) for tally in tallies),
    )


def sweep(store: SnapshotStore, cfg: StatsConfig) -> Tuple[RetentionSummary, ...]:
    """
    Run the full K x I sweep, K = 0..max_retention.

    The store must be finalized. With cfg.workers > 1 every depth runs in a
    separate process that rebuilds its own windows. The snapshots reach each
    worker once, through the pool initializer; a job is only its depth.
    Results come back immutable and are returned in K order.
    """
    summary = store.summary
    snapshots = tuple(store)
    depths = range(cfg.max_retention + 1)

    if cfg.workers == 1:
        results: List[RetentionSummary] = []
        for retention in depths:
            logger.debug("Sweeping retention depth %d", retention)
            results.append(
                estimate_retention(snapshots, retention=retention, summary=summary, cfg=cfg)
            )
        return tuple(results)

    logger.debug("Sweeping %d retention depths on %d workers", len(depths), cfg.workers)
    with ProcessPoolExecutor(
        max_workers=cfg.workers,
        initializer=_init_worker,
        initargs=(snapshots, summary, cfg),
    ) as pool:
        return tuple(pool.map(_retention_job, depths))


# === helpers ===


def _tally_diffs(windows: Iterable[WindowSets], tallies: Sequence[_IntervalTally]) -> Iterator[WindowSets]:
    """Pass windows through, diffing each against the ones `interval` steps back."""
    recent: Deque[WindowSets] = deque(maxlen=len(tallies) + 1)
    for window in windows:
        recent.append(window)
        for tally in tallies:
            if tally.interval < len(recent):
                tally.add(diff_counts(recent[-1 - tally.interval], window))
        yield window


def _init_worker(snapshots: Tuple[Snapshot, ...], summary: GlobalSummary, cfg: StatsConfig) -> None:
    global _WORKER_STATE
    _WORKER_STATE = (snapshots, summary, cfg)


def _retention_job(retention: int) -> RetentionSummary:
    if _WORKER_STATE is None:
        raise RuntimeError("sweep worker used before _init_worker()")
    snapshots, summary, cfg = _WORKER_STATE
    return estimate_retention(snapshots, retention=retention, summary=summary, cfg=cfg)
