"""
Snapshot reader: yields Snapshot records from a decompressed tar stream.

- Streams the archive member by member (tarfile "r|" mode); nothing
  beyond the current member is held in memory.
- Members whose path contains the auxiliary marker (e.g. "/micro/") are
  only counted and sized, never read.
- Every other regular member is a consensus document whose base name
  starts with a fixed-width UTC timestamp.

Document lines consumed:
  r <nickname> <identity> ...   one relay; field 2 is its identity
  m <hash> ...                  microdescriptor hash of the preceding relay
Everything else is ignored.
"""

from __future__ import annotations

import logging
import posixpath
import tarfile
from datetime import datetime, timezone
from typing import IO, Iterable, Iterator, List, Set

from ..config import TIMESTAMP_WIDTH, StatsConfig
from ..dto import AuxDescriptorBatch, Snapshot
from ..errors import FormatError

logger = logging.getLogger(__name__)


def iter_archive(
    bytestream: IO[bytes],
    *,
    cfg: StatsConfig,
    aux: AuxDescriptorBatch,
    source: str = "",
) -> Iterator[Snapshot]:
    """
    Iterate Snapshot objects from an open, decompressed tar stream.

    Parameters
    ----------
    bytestream : file-like
        Forward-only binary stream of tar bytes.
    cfg : StatsConfig
        Supplies the aux marker, timestamp format, and strictness.
    aux : AuxDescriptorBatch
        Accumulator updated in place for every auxiliary member.
    source : str
        Archive path, used only in diagnostics.

    Yields
    ------
    Snapshot
        One per consensus member, in archive order.
    """
    try:
        with tarfile.open(fileobj=bytestream, mode="r|") as tar:
            for member in tar:
                if not member.isreg():
                    continue

                if cfg.aux_path_marker in member.name:
                    aux.add(member.size)
                    continue

                fobj = tar.extractfile(member)
                if fobj is None:
                    continue
                lines = (raw.decode("utf-8", "surrogateescape") for raw in fobj)
                snap = parse_snapshot(member.name, lines, byte_size=member.size, cfg=cfg)
                logger.debug("%s: %s with %d entries", source, member.name, snap.entry_count)
                yield snap
    except tarfile.ReadError as exc:
        raise FormatError(f"unreadable tar stream: {exc}", entry=source or "<archive>") from exc


def parse_entry_time(name: str, fmt: str) -> datetime:
    """Parse the fixed-width timestamp prefix of a member's base name (UTC)."""
    base = posixpath.basename(name)
    prefix = base[:TIMESTAMP_WIDTH]
    if len(prefix) < TIMESTAMP_WIDTH:
        raise FormatError("name too short for a timestamp prefix", entry=name)
    try:
        parsed = datetime.strptime(prefix, fmt)
    except ValueError as exc:
        raise FormatError(f"bad timestamp {prefix!r}: {exc}", entry=name) from exc
    return parsed.replace(tzinfo=timezone.utc)


def parse_snapshot(
    name: str,
    lines: Iterable[str],
    *,
    byte_size: int,
    cfg: StatsConfig,
) -> Snapshot:
    """
    Build one Snapshot from the lines of a consensus document.

    Raises FormatError on a bad timestamp, a duplicate identity, an 'm' line
    out of lockstep with the 'r' lines, or (in strict mode) a short record.
    In lenient mode a short 'r' line drops that relay together with its 'm'
    line, and a short 'm' line drops the relay it belongs to.
    """
    time = parse_entry_time(name, cfg.timestamp_format)

    ids: List[str] = []
    hashes: List[str] = []
    seen: Set[str] = set()
    skip_next_hash = False

    for raw in lines:
        line = raw.rstrip("\r\n")

        if line.startswith("r "):
            skip_next_hash = False
            fields = line.split(" ")
            if len(fields) < 3 or not fields[2]:
                _short_record("missing identity", name, line, cfg)
                skip_next_hash = True
                continue
            ident = fields[2]
            if ident in seen:
                raise FormatError(f"duplicate identity {ident}", entry=name, line=line)
            seen.add(ident)
            ids.append(ident)

        elif line.startswith("m "):
            if skip_next_hash:
                skip_next_hash = False
                continue
            fields = line.split(" ")
            if len(fields) < 2 or not fields[1]:
                _short_record("missing hash", name, line, cfg)
                if len(ids) > len(hashes):
                    seen.discard(ids.pop())
                continue
            hashes.append(fields[1])
            if len(ids) != len(hashes):
                raise FormatError("the number of identities and hashes differ", entry=name, line=line)

    if hashes and len(ids) != len(hashes):
        raise FormatError("the last identity has no hash", entry=name)

    if hashes:
        entries = tuple(zip(ids, hashes))
    else:
        entries = tuple((ident, "") for ident in ids)

    return Snapshot(time=time, entries=entries, byte_size=int(byte_size), source=name)


# === helpers ===


def _short_record(message: str, name: str, line: str, cfg: StatsConfig) -> None:
    if cfg.strict_records:
        raise FormatError(message, entry=name, line=line)
    logger.warning("%s: %s, skipping record: %r", name, message, line)
