"""Stream helpers for single-pass upload bodies."""

import io
import logging
import tempfile
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024  # 64KB chunks
SPOOL_MEMORY_BYTES = 1024 * 1024  # Spill non-seekable bodies to disk past 1MB


def is_seekable(stream: BinaryIO) -> bool:
    """Return True if the stream can be rewound."""
    seekable = getattr(stream, "seekable", None)
    if seekable is None:
        return False
    try:
        return bool(seekable())
    except (OSError, ValueError):
        return False


class PrefixedStream(io.RawIOBase):
    """Read-only stream that replays an already consumed prefix, then the rest of the source.

    Used when the leading bytes of a non-seekable stream were read for sniffing
    and must still reach the storage backend.
    """

    def __init__(self, prefix: bytes, source: BinaryIO):
        super().__init__()
        self._prefix = prefix
        self._offset = 0
        self._source = source

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._offset < len(self._prefix):
            chunk = self._prefix[self._offset : self._offset + len(buffer)]
            self._offset += len(chunk)
        else:
            chunk = self._source.read(len(buffer))
        size = len(chunk)
        buffer[:size] = chunk
        return size


class ReplayableSource:
    """Upload body that can be read from its start once per write attempt.

    Attributes:
        size: Number of bytes available, or the number read before a size
            limit stopped buffering (in which case ``size`` exceeds the limit)
    """

    def __init__(self, stream: BinaryIO, start: int, size: int, owned: bool = False):
        self._stream = stream
        self._start = start
        self._owned = owned
        self.size = size

    def open(self) -> BinaryIO:
        """Rewind to the first byte of the upload and return the stream."""
        self._stream.seek(self._start)
        return self._stream

    def close(self) -> None:
        """Release the spool file if this source created one."""
        if self._owned:
            self._stream.close()


def make_replayable(
    stream: BinaryIO, max_bytes: int, chunk_size: int = CHUNK_SIZE
) -> ReplayableSource:
    """Wrap an upload body so that every write attempt can start from byte zero.

    Seekable streams are measured in place. Anything else is copied into a
    spooled temporary file, reading at most ``max_bytes + 1`` bytes so an
    oversized body is detected without buffering all of it.

    Args:
        stream: Upload body positioned at its first byte
        max_bytes: Size limit of the upload policy
        chunk_size: Read size while spooling

    Returns:
        ReplayableSource with the measured size

    Raises:
        OSError: If the stream cannot be read
    """
    if is_seekable(stream):
        start = stream.tell()
        stream.seek(0, io.SEEK_END)
        size = stream.tell() - start
        stream.seek(start)
        return ReplayableSource(stream, start, size)

    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MEMORY_BYTES)
    size = 0
    try:
        while chunk := stream.read(min(chunk_size, max_bytes + 1 - size)):
            spool.write(chunk)
            size += len(chunk)
            if size > max_bytes:
                logger.debug(
                    "Stopped spooling oversized upload",
                    extra={"spooled_bytes": size, "max_bytes": max_bytes},
                )
                break
    except Exception:
        spool.close()
        raise
    return ReplayableSource(spool, 0, size, owned=True)


def read_sample(stream: BinaryIO, limit: int) -> bytes:
    """Read up to ``limit`` bytes, tolerating short reads from the source."""
    sample = b""
    while len(sample) < limit:
        chunk: Optional[bytes] = stream.read(limit - len(sample))
        if not chunk:
            break
        sample += chunk
    return sample
