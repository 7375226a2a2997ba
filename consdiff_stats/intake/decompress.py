"""
Compressed archive openers.

Each adapter implements DecompressorPort: `open(path)` is a context manager
yielding a binary, forward-only stream of the decompressed tar bytes.

- CommandDecompressor pipes the output of an external tool
  (xzcat, bzcat, zcat) and checks its exit status on close.
- ZstdDecompressor decompresses .zst archives in-process with zstandard
  and refuses to end inside an unfinished frame.

Both drain whatever the consumer left unread, so a truncated archive is
reported even when the tar end-of-archive marker was reached early.

This module does not parse tar members; it only handles decompression.
"""

from __future__ import annotations

import logging
import subprocess
from contextlib import contextmanager
from typing import BinaryIO, Generator, IO, Optional, cast

import zstandard  # type: ignore

from ..dto import ArchiveHandle
from ..errors import DecompressionError
from ..ports import DecompressorPort

logger = logging.getLogger(__name__)

_DRAIN_CHUNK = 1 << 16
_EXIT_GRACE_SECONDS = 0.5


class CommandDecompressor(DecompressorPort):
    """
    Run `<command> <path>` and stream its stdout.

    stderr is inherited so the tool's own diagnostics reach the terminal.
    Unread output is drained before waiting, so a consumer that stops at the
    tar end-of-archive marker does not kill the tool with SIGPIPE.
    """

    def __init__(self, command: str) -> None:
        self.command = command

    @contextmanager
    def open(self, path: str) -> Generator[IO[bytes], None, None]:
        logger.debug("Spawning %s %s", self.command, path)
        try:
            proc = subprocess.Popen([self.command, path], stdout=subprocess.PIPE)
        except OSError as exc:
            raise DecompressionError(f"cannot start {self.command}: {exc}", path=path) from exc

        stdout = cast(IO[bytes], proc.stdout)
        try:
            yield stdout
            _drain(stdout)
        except BaseException as exc:
            # A truncated stream usually means the tool died first; report that instead.
            returncode = _abort(proc)
            if returncode:
                raise DecompressionError(
                    f"{self.command} exited with status {returncode}",
                    path=path,
                    returncode=returncode,
                ) from exc
            raise

        stdout.close()
        returncode = proc.wait()
        if returncode != 0:
            raise DecompressionError(
                f"{self.command} exited with status {returncode}",
                path=path,
                returncode=returncode,
            )


class ZstdDecompressor(DecompressorPort):
    """In-process zstd decompression of the raw archive file."""

    @contextmanager
    def open(self, path: str) -> Generator[IO[bytes], None, None]:
        try:
            raw = open(path, "rb")
        except OSError as exc:
            raise DecompressionError(f"cannot open archive: {exc}", path=path) from exc

        stream = ZstdFrameReader(raw, path=path)
        try:
            yield cast(IO[bytes], stream)
            _drain(cast(IO[bytes], stream))
        except zstandard.ZstdError as exc:
            raise DecompressionError(f"corrupt zstd stream: {exc}", path=path) from exc
        finally:
            raw.close()


class ZstdFrameReader:
    """
    Forward-only reader over one or more concatenated zstd frames.

    Raises DecompressionError when the compressed input ends inside a frame
    (or holds no frame at all), before the short output reaches the tar
    reader.
    """

    def __init__(self, raw: BinaryIO, *, path: str) -> None:
        self._raw = raw
        self._path = path
        self._dobj = zstandard.ZstdDecompressor().decompressobj()
        self._buf = bytearray()
        self._in_frame = False
        self._frames = 0
        self._exhausted = False

    @property
    def frames(self) -> int:
        """Number of complete frames decoded so far."""
        return self._frames

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        while not self._exhausted and (size < 0 or len(self._buf) < size):
            self._fill()
        if size < 0 or size > len(self._buf):
            size = len(self._buf)
        out = bytes(self._buf[:size])
        del self._buf[:size]
        return out

    def _fill(self) -> None:
        chunk = self._raw.read(_DRAIN_CHUNK)
        if not chunk:
            self._exhausted = True
            if self._in_frame:
                raise DecompressionError("truncated zstd stream", path=self._path)
            if self._frames == 0:
                raise DecompressionError("empty zstd stream", path=self._path)
            return

        self._in_frame = True
        self._buf += self._dobj.decompress(chunk)
        while self._dobj.eof:
            self._frames += 1
            leftover = self._dobj.unused_data
            self._dobj = zstandard.ZstdDecompressor().decompressobj()
            self._in_frame = bool(leftover)
            if not leftover:
                break
            self._buf += self._dobj.decompress(leftover)


def decompressor_for(handle: ArchiveHandle) -> DecompressorPort:
    """Pick the adapter for an archive resolved by the archive source."""
    if handle.command is not None:
        return CommandDecompressor(handle.command)
    return ZstdDecompressor()


def _drain(stream: IO[bytes]) -> None:
    while stream.read(_DRAIN_CHUNK):
        pass


def _abort(proc: subprocess.Popen) -> Optional[int]:
    """
    Stop a decompressor after the consumer failed.

    Returns the tool's own exit status if it had already finished, or None
    if it was still running and had to be killed.
    """
    returncode = proc.poll()
    if returncode is None:
        try:
            returncode = proc.wait(timeout=_EXIT_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            proc.kill()
            returncode = None
    if proc.stdout is not None:
        proc.stdout.close()
    proc.wait()
    return returncode
