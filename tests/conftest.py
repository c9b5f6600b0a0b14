"""Pytest configuration and shared fixtures."""

import io
from typing import Dict, List, Optional, Tuple

import pytest

from gcsupload.storage.base import Sink, StorageBackend


class FakeSink(Sink):
    """In-memory sink; failing sinks accept writes and then fail on commit or write."""

    def __init__(self, backend: "FakeStorageBackend", bucket: str, key: str, failure_mode: Optional[str]):
        self.backend = backend
        self.bucket = bucket
        self.key = key
        self.failure_mode = failure_mode
        self.buffer = bytearray()
        self.committed = False
        self.aborted = False

    def write(self, data: bytes) -> int:
        if self.failure_mode == "write" and self.buffer:
            raise ConnectionError("connection reset by peer")
        self.buffer.extend(data)
        return len(data)

    def close(self) -> None:
        if self.failure_mode in ("close", "write"):
            raise ConnectionError("connection reset by peer")
        self.committed = True
        self.backend.objects[(self.bucket, self.key)] = bytes(self.buffer)

    def abort(self) -> None:
        self.aborted = True


class FakeStorageBackend(StorageBackend):
    """Storage backend recording every sink it hands out.

    The first ``failures`` sinks fail; ``failure_mode`` picks whether they
    fail on commit ("close") or on their second write ("write").
    """

    def __init__(self, failures: int = 0, failure_mode: str = "close"):
        self.failures = failures
        self.failure_mode = failure_mode
        self.sinks: List[FakeSink] = []
        self.objects: Dict[Tuple[str, str], bytes] = {}

    def open_writer(self, bucket: str, key: str, content_type: str) -> Sink:
        failing = len(self.sinks) < self.failures
        sink = FakeSink(self, bucket, key, self.failure_mode if failing else None)
        self.sinks.append(sink)
        return sink

    def object_uri(self, bucket: str, key: str) -> str:
        return f"gs://{bucket}/{key}"

    def get_backend_name(self) -> str:
        return "fake"


class OneShotStream(io.RawIOBase):
    """Readable, non-seekable stream, like a raw request body."""

    def __init__(self, data: bytes):
        super().__init__()
        self._buffer = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        chunk = self._buffer.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)


class RecordingSleep:
    """Async sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_backend():
    """Storage backend that always succeeds."""
    return FakeStorageBackend()


@pytest.fixture
def recording_sleep():
    """Sleep function recording retry delays."""
    return RecordingSleep()
