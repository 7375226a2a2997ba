"""
Data Transfer Objects (DTOs) used across the statistics pipeline.

These are intentionally small, immutable (where sensible), and independent
of any I/O or decompression libraries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Optional, Tuple

from .errors import NoDataError


# === Intake ===
@dataclass(frozen=True)
class ArchiveHandle:
    """One compressed consensus archive to ingest."""
    path: str                # filesystem path as given or globbed
    suffix: str              # compression suffix, e.g. ".xz"
    command: Optional[str]   # external decompressor, None for in-process codecs


# === Parsed consensus ===
@dataclass(frozen=True)
class Snapshot:
    """
    One full consensus document.

    `entries` keeps (identity, hash) pairs in document order. The hash is
    empty when the document flavour carries no microdescriptor hashes.
    """
    time: datetime
    entries: Tuple[Tuple[str, str], ...]
    byte_size: int           # uncompressed member size
    source: str = ""         # archive member name, for diagnostics

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(ident for ident, _ in self.entries)

    @property
    def hashes(self) -> Tuple[str, ...]:
        return tuple(h for _, h in self.entries if h)

    @property
    def entry_count(self) -> int:
        return len(self.entries)


@dataclass
class AuxDescriptorBatch:
    """Running count and byte total of auxiliary descriptors seen in the archives."""
    count: int = 0
    total_bytes: int = 0

    def add(self, size: int) -> None:
        self.count += 1
        self.total_bytes += int(size)

    @property
    def mean_size(self) -> float:
        if self.count == 0:
            raise NoDataError("no auxiliary descriptors were ingested")
        return self.total_bytes / self.count


# === Windowing ===
@dataclass(frozen=True)
class WindowSets:
    """Effective identity and hash sets for one (index, retention) pair."""
    ids: FrozenSet[str]
    hashes: FrozenSet[str]


@dataclass(frozen=True)
class DiffCounts:
    """Raw set-difference counts between two effective windows."""
    added: int
    removed: int
    new_hashes: int


# === Estimates ===
@dataclass(frozen=True)
class IntervalEstimate:
    retention: int
    interval: int
    pairs: int                       # comparable (i - interval, i) pairs
    added: int
    removed: int
    new_hashes: int
    mean_diff_size: float            # bytes per comparable pair
    mean_aux_refetch_size: float     # bytes per comparable pair


@dataclass(frozen=True)
class RetentionSummary:
    retention: int
    mean_effective_size: float
    intervals: Tuple[IntervalEstimate, ...]


@dataclass(frozen=True)
class GlobalSummary:
    snapshot_count: int
    total_bytes: int
    total_entries: int
    mean_entry_size: float
    aux_count: int
    mean_aux_size: float


@dataclass(frozen=True)
class StatsReport:
    summary: GlobalSummary
    retentions: Tuple[RetentionSummary, ...]
