"""
Report sinks for a statistics run.

- TextReportSink prints the human-readable report (all sizes uncompressed).
- CollectingSink keeps everything in memory.
- report_frame / write_table turn the sweep into a table (one row per
  retention depth and interval) for CSV or JSON output.
"""

from __future__ import annotations

import sys
from dataclasses import asdict
from pathlib import Path
from typing import IO, List, Optional

import pandas as pd

from .dto import GlobalSummary, RetentionSummary, StatsReport
from .ports import ReportSinkPort

__all__ = [
    "format_size",
    "TextReportSink",
    "CollectingSink",
    "report_frame",
    "write_table",
]

_KB = float(1 << 10)
_MB = float(1 << 20)
_GB = float(1 << 30)


def format_size(n: float) -> str:
    """Humanize a byte count with binary multiples: 1536 -> '1.50KB'."""
    if n >= _GB:
        return f"{n / _GB:.2f}GB"
    if n >= _MB:
        return f"{n / _MB:.2f}MB"
    if n >= _KB:
        return f"{n / _KB:.2f}KB"
    return f"{n:.2f}B"


class TextReportSink(ReportSinkPort):
    """Write the legacy plain-text report to a stream (stdout by default)."""

    def __init__(self, stream: Optional[IO[str]] = None) -> None:
        self._out = stream if stream is not None else sys.stdout

    def _print(self, text: str) -> None:
        self._out.write(text + "\n")

    def on_summary(self, summary: GlobalSummary) -> None:
        self._print("== Global data ==")
        self._print("Note that ALL of the sizes shown are in uncompressed bytes")
        self._print(f"Number of consensuses: {summary.snapshot_count}")
        self._print(f"Mean consensus entry size: {format_size(summary.mean_entry_size)}")
        self._print(f"Mean microdescriptor size: {format_size(summary.mean_aux_size)}")

    def on_retention(self, result: RetentionSummary) -> None:
        self._print(f"When keeping non-running relays for {result.retention} hours...")
        self._print(f"Mean consensus size: {format_size(result.mean_effective_size)}")
        for est in result.intervals:
            self._print(
                f"Mean consensus diff size when interval is {est.interval}h: "
                f"{format_size(est.mean_diff_size)}"
            )
            self._print(
                f"Mean microdescriptor download size when interval is {est.interval}h: "
                f"{format_size(est.mean_aux_refetch_size)}"
            )

    def on_no_data(self) -> None:
        self._print("No data to show.")


class CollectingSink(ReportSinkPort):
    def __init__(self) -> None:
        self.summary: Optional[GlobalSummary] = None
        self.retentions: List[RetentionSummary] = []
        self.no_data = False

    def on_summary(self, summary: GlobalSummary) -> None:
        self.summary = summary

    def on_retention(self, result: RetentionSummary) -> None:
        self.retentions.append(result)

    def on_no_data(self) -> None:
        self.no_data = True


def report_frame(report: StatsReport) -> pd.DataFrame:
    """One row per (retention, interval) cell, with the global means repeated."""
    rows = []
    for ret in report.retentions:
        for est in ret.intervals:
            row = asdict(est)
            row["mean_effective_size"] = ret.mean_effective_size
            row["mean_entry_size"] = report.summary.mean_entry_size
            row["mean_aux_size"] = report.summary.mean_aux_size
            rows.append(row)
    columns = [
        "retention",
        "interval",
        "pairs",
        "added",
        "removed",
        "new_hashes",
        "mean_diff_size",
        "mean_aux_refetch_size",
        "mean_effective_size",
        "mean_entry_size",
        "mean_aux_size",
    ]
    return pd.DataFrame(rows, columns=columns)


def write_table(report: StatsReport, path: str | Path) -> Path:
    """Write the sweep table as JSON records when `path` ends in .json, else CSV."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    df = report_frame(report)
    if out.suffix.lower() == ".json":
        df.to_json(out, orient="records", indent=2)
    else:
        df.to_csv(out, index=False)
    return out
