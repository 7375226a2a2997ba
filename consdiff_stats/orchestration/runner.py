"""
Run orchestration: ingest every archive, finalize, sweep, report.

Ingestion is strictly sequential, one archive decompressed and parsed to
completion before the next. Format and decompression errors propagate
to the caller untouched; there is no partial report.
"""

from __future__ import annotations

import logging
from typing import Optional

from tqdm import tqdm

from ..config import StatsConfig
from ..dto import StatsReport
from ..errors import NoDataError
from ..intake.decompress import decompressor_for
from ..intake.snapshot_reader import iter_archive
from ..pipeline.estimator import sweep
from ..pipeline.store import SnapshotStore
from ..ports import ArchiveSourcePort, ReportSinkPort

logger = logging.getLogger(__name__)


def ingest(
    source: ArchiveSourcePort,
    cfg: StatsConfig,
    store: Optional[SnapshotStore] = None,
    *,
    progress: bool = False,
) -> SnapshotStore:
    """Stream every archive from `source` into `store` (a new one when None)."""
    store = store if store is not None else SnapshotStore()
    handles = list(source.archives())

    pbar = tqdm(total=len(handles), disable=not progress, unit="archive")
    try:
        for handle in handles:
            pbar.set_description(f"Parsing {handle.path}")
            logger.info("Parsing %s", handle.path)
            decompressor = decompressor_for(handle)
            with decompressor.open(handle.path) as stream:
                added = store.extend(
                    iter_archive(stream, cfg=cfg, aux=store.aux, source=handle.path)
                )
            logger.info("%s: %d consensuses", handle.path, added)
            pbar.update()
    finally:
        pbar.close()

    return store


def run(
    source: ArchiveSourcePort,
    sink: ReportSinkPort,
    cfg: StatsConfig,
    *,
    progress: bool = False,
) -> Optional[StatsReport]:
    """
    Execute one full statistics run.

    Returns the StatsReport, or None when nothing usable was ingested (the
    sink then receives on_no_data() and no statistic is computed).
    """
    store = ingest(source, cfg, progress=progress)

    try:
        summary = store.finalize()
    except NoDataError as exc:
        logger.info("%s", exc)
        sink.on_no_data()
        return None

    sink.on_summary(summary)
    retentions = sweep(store, cfg)
    for result in retentions:
        sink.on_retention(result)

    return StatsReport(summary=summary, retentions=retentions)
