"""
consdiff_stats: bandwidth model for consensus diffs and microdescriptor fetches.

Public API (stable):
- StatsConfig               (configuration)
- run, ingest               (orchestrate one run)
- ArchiveSourcePort         (input adapter interface)
- DecompressorPort          (decompression adapter interface)
- ReportSinkPort            (output adapter interface)
- FilesystemArchiveSource   (filesystem-backed archive source)
- SnapshotStore             (ordered snapshots + global means)
- DTOs: Snapshot, AuxDescriptorBatch, GlobalSummary, IntervalEstimate,
        RetentionSummary, StatsReport

This package intentionally exposes a small surface area so callers can
wire sources and sinks without depending on internals.
"""

from __future__ import annotations

# Configuration
from .config import StatsConfig

# Orchestration
from .orchestration.runner import ingest, run

# Ports
from .ports import ArchiveSourcePort, DecompressorPort, ReportSinkPort

# Adapters
from .intake.archive_source_fs import FilesystemArchiveSource

# Core
from .pipeline.store import SnapshotStore

# DTOs
from .dto import (
    AuxDescriptorBatch,
    GlobalSummary,
    IntervalEstimate,
    RetentionSummary,
    Snapshot,
    StatsReport,
)

__all__ = [
    "StatsConfig",
    "run",
    "ingest",
    "ArchiveSourcePort",
    "DecompressorPort",
    "ReportSinkPort",
    "FilesystemArchiveSource",
    "SnapshotStore",
    "AuxDescriptorBatch",
    "GlobalSummary",
    "IntervalEstimate",
    "RetentionSummary",
    "Snapshot",
    "StatsReport",
]
