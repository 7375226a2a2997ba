"""
Filesystem-backed ArchiveSource adapter.

Archives come either from explicit paths (command-line order) or from a
fixed glob pattern such as the monthly CollecTor bundles:
  <root>/consensuses-YYYY-MM.tar.(xz|bz2|gz|zst)

The compression suffix decides the decompressor. Archives with a suffix
nothing is configured for are logged and skipped; they never abort the run.
Files are not opened here, so a missing or unreadable archive surfaces
later as a DecompressionError.
"""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from ..config import StatsConfig
from ..dto import ArchiveHandle
from ..errors import UnsupportedArchiveError
from ..ports import ArchiveSourcePort

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "consensuses-*.tar.*"

# Decompressed in-process, no external command needed
ZSTD_SUFFIX = ".zst"


def resolve_archive(path: str | os.PathLike, cfg: StatsConfig) -> ArchiveHandle:
    """Map an archive path to its decompressor, or raise UnsupportedArchiveError."""
    p = str(path)
    suffix = Path(p).suffix.lower()
    command = cfg.decompressors.get(suffix)
    if command is not None:
        return ArchiveHandle(path=p, suffix=suffix, command=command)
    if suffix == ZSTD_SUFFIX:
        return ArchiveHandle(path=p, suffix=suffix, command=None)
    raise UnsupportedArchiveError(p, suffix)


@dataclass(frozen=True)
class FilesystemArchiveSource(ArchiveSourcePort):
    """
    Enumerate consensus archives from the filesystem.

    Parameters
    ----------
    paths : Sequence[str | os.PathLike]
        Explicit archive paths. When empty, `pattern` is globbed under `root`.
    cfg : StatsConfig
        Supplies the suffix -> decompressor mapping.
    root : str | os.PathLike
        Directory searched when no explicit path is given.
    pattern : Optional[str]
        Glob pattern; DEFAULT_PATTERN when None.
    """

    paths: Sequence[str | os.PathLike]
    cfg: StatsConfig
    root: str | os.PathLike = "."
    pattern: Optional[str] = None

    def archives(self) -> Iterable[ArchiveHandle]:
        def _iter() -> Iterator[ArchiveHandle]:
            for p in self._candidates():
                try:
                    yield resolve_archive(p, self.cfg)
                except UnsupportedArchiveError as exc:
                    logger.warning("%s", exc)

        return _iter()

    def _candidates(self) -> list[str]:
        if self.paths:
            return [str(p) for p in self.paths]
        pattern = self.pattern or DEFAULT_PATTERN
        found = sorted(
            p for p in glob.glob(os.path.join(os.fspath(self.root), pattern)) if os.path.isfile(p)
        )
        if not found:
            logger.warning("No archives match %s under %s", pattern, self.root)
        return found
