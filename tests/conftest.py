"""
Pytest configuration and shared fixtures for consdiff_stats tests
"""

import io
import logging
import tarfile
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from consdiff_stats.config import StatsConfig
from consdiff_stats.dto import Snapshot

EPOCH = datetime(2014, 1, 1, tzinfo=timezone.utc)


def consensus_text(relays: Iterable[Tuple[str, Optional[str]]]) -> str:
    """Render a minimal microdesc-flavoured consensus for (identity, hash) pairs."""
    lines = [
        "network-status-version 3 microdesc",
        "vote-status consensus",
        "valid-after 2014-01-01 00:00:00",
        "known-flags Exit Fast Guard Running Stable Valid",
    ]
    for n, (ident, digest) in enumerate(relays):
        lines.append(f"r relay{n} {ident} 2014-01-01 00:00:00 10.0.0.{n % 250} 9001 0")
        if digest is not None:
            lines.append(f"m {digest}")
        lines.append("s Fast Running Valid")
    lines.append("directory-footer")
    return "\n".join(lines) + "\n"


def consensus_name(hour: int) -> str:
    stamp = (EPOCH + timedelta(hours=hour)).strftime("%Y-%m-%d-%H-%M-%S")
    return f"microdescs-2014-01/consensus-microdesc/01/{stamp}-consensus-microdesc"


def build_tar(members: Dict[str, bytes], directories: Sequence[str] = ()) -> bytes:
    """Pack members into an uncompressed tar held in memory."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name in directories:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            tar.addfile(info)
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_snapshot(
    hour: int,
    ids: Sequence[str],
    hashes: Optional[Sequence[str]] = None,
    *,
    entry_size: int = 100,
) -> Snapshot:
    hashes = list(hashes) if hashes is not None else [f"h-{i}" for i in ids]
    return Snapshot(
        time=EPOCH + timedelta(hours=hour),
        entries=tuple(zip(ids, hashes)),
        byte_size=entry_size * len(ids),
        source=f"hour-{hour}",
    )


@pytest.fixture
def cfg() -> StatsConfig:
    return StatsConfig()


@pytest.fixture
def small_cfg() -> StatsConfig:
    return StatsConfig(max_retention=2, max_interval=2)


@pytest.fixture
def archive_bytes() -> bytes:
    """Three hourly consensuses plus two microdescriptors, in scrambled order."""
    members = {
        consensus_name(2): consensus_text([("A", "ha"), ("C", "hc")]).encode(),
        "microdescs-2014-01/micro/2014/01/a/aaaa": b"x" * 300,
        consensus_name(0): consensus_text([("A", "ha"), ("B", "hb")]).encode(),
        "microdescs-2014-01/micro/2014/01/b/bbbb": b"y" * 500,
        consensus_name(1): consensus_text([("A", "ha")]).encode(),
    }
    return build_tar(members, directories=["microdescs-2014-01", "microdescs-2014-01/micro"])


@pytest.fixture
def three_snapshots() -> List[Snapshot]:
    return [
        make_snapshot(0, ["A", "B"], ["ha", "hb"]),
        make_snapshot(1, ["A"], ["ha"]),
        make_snapshot(2, ["A", "C"], ["ha", "hc"]),
    ]


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo init_logging() so caplog keeps seeing records after CLI tests."""
    yield
    logger = logging.getLogger("consdiff_stats")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
