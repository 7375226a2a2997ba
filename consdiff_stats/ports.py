"""
Hexagonal interfaces (Ports) for the statistics pipeline.

These define the boundary between the core model and I/O adapters.
Keep them small and implementation-agnostic so they're easy to fake in tests.
"""

from __future__ import annotations

from typing import ContextManager, IO, Iterable, Protocol

from .dto import ArchiveHandle, GlobalSummary, RetentionSummary


class DecompressorPort(Protocol):
    """Turns one compressed archive path into a readable byte stream."""

    def open(self, path: str) -> ContextManager[IO[bytes]]:
        """
        Return a context manager yielding the decompressed bytes of `path`.
        The stream is read incrementally; implementations MUST raise
        DecompressionError on exit if the data was truncated or the
        decompressor failed.
        """
        ...


class ArchiveSourcePort(Protocol):
    """Supplies the archives for one run, in processing order."""

    def archives(self) -> Iterable[ArchiveHandle]:
        ...


class ReportSinkPort(Protocol):
    """
    Receives the results of a run. Implementations might print, collect
    in memory, or write a table.
    """

    def on_summary(self, summary: GlobalSummary) -> None:
        """Receive the dataset-wide figures once the store is finalized."""
        ...

    def on_retention(self, result: RetentionSummary) -> None:
        """Receive the interval sweep for one retention depth."""
        ...

    def on_no_data(self) -> None:
        """Called instead of everything above when nothing was ingested."""
        ...
