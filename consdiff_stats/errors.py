"""
Error taxonomy for a statistics run.

Format and decompression errors are fatal for the whole run: every figure
is a dataset-wide mean, so a skipped snapshot would bias all of them.
"""

from __future__ import annotations

from typing import Optional


class StatsError(Exception):
    """Base class for every error raised by consdiff_stats."""


class FormatError(StatsError):
    """A consensus entry violates the archive or document format."""

    def __init__(self, message: str, *, entry: str, line: Optional[str] = None) -> None:
        self.entry = entry
        self.line = line
        detail = f"{entry}: {message}"
        if line is not None:
            detail += f" (line: {line!r})"
        super().__init__(detail)


class DecompressionError(StatsError):
    """The decompressor could not be started or ended abnormally."""

    def __init__(self, message: str, *, path: str, returncode: Optional[int] = None) -> None:
        self.path = path
        self.returncode = returncode
        super().__init__(f"{path}: {message}")


class UnsupportedArchiveError(StatsError):
    """No decompressor is configured for the archive's suffix."""

    def __init__(self, path: str, suffix: str) -> None:
        self.path = path
        self.suffix = suffix
        super().__init__(f"Unsupported format .tar{suffix} in {path}")


class NoDataError(StatsError):
    """Nothing was ingested that a mean could be computed from."""
