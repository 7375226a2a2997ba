"""
Command-line entry point.

    consdiff-stats consensuses-2014-0*.tar.xz
    consdiff-stats --glob 'archives/consensuses-*.tar.*' --max-retention 6 --table sweep.csv
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import StatsConfig
from .errors import StatsError
from .intake.archive_source_fs import DEFAULT_PATTERN, FilesystemArchiveSource
from .orchestration.runner import run
from .report import TextReportSink, write_table
from .utils import init_logging, progress_enabled


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="consdiff-stats",
        description="Estimate consensus-diff and microdescriptor bandwidth savings "
        "from archived consensuses.",
    )
    ap.add_argument("archives", nargs="*", help="Consensus tarballs (.tar.xz, .tar.bz2, .tar.gz, .tar.zst).")
    ap.add_argument(
        "--glob",
        default=None,
        help=f"Pattern searched in the current directory when no archive is given (default: {DEFAULT_PATTERN}).",
    )
    ap.add_argument("--max-retention", type=int, default=12, help="Largest retention depth K in hours.")
    ap.add_argument("--max-interval", type=int, default=12, help="Largest diff interval I in hours.")
    ap.add_argument("--workers", type=int, default=1, help="Worker processes for the retention sweep.")
    ap.add_argument(
        "--lenient",
        action="store_true",
        help="Skip short 'r'/'m' records with a warning instead of aborting.",
    )
    ap.add_argument("--table", default=None, help="Also write the sweep as CSV (or JSON for *.json).")
    ap.add_argument("--log-level", default=None, help="Logging level (default: $CONSDIFF_STATS_LOG_LEVEL or INFO).")
    ap.add_argument("--no-progress", action="store_true", help="Disable the archive progress bar.")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = init_logging(args.log_level)

    try:
        cfg = StatsConfig(
            max_retention=args.max_retention,
            max_interval=args.max_interval,
            workers=args.workers,
            strict_records=not args.lenient,
        )
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    source = FilesystemArchiveSource(paths=args.archives, cfg=cfg, pattern=args.glob)
    try:
        report = run(
            source,
            TextReportSink(),
            cfg,
            progress=progress_enabled(not args.no_progress),
        )
    except StatsError as exc:
        logger.error("%s", exc)
        return 1

    if report is not None and args.table:
        out = write_table(report, args.table)
        logger.info("Wrote %s", out)
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
