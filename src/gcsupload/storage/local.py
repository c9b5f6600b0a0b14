"""Local filesystem storage backend."""

import os
import tempfile
from pathlib import Path
from typing import Union

from gcsupload.storage.base import Sink, StorageBackend


class LocalSink(Sink):
    """Sink writing to a temporary file that is renamed into place on commit."""

    def __init__(self, target_path: Path):
        self._target_path = target_path
        target_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = tempfile.NamedTemporaryFile(
            dir=target_path.parent, prefix=f".{target_path.name}.", suffix=".part", delete=False
        )

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def close(self) -> None:
        self._file.close()
        os.replace(self._file.name, self._target_path)

    def abort(self) -> None:
        self._file.close()
        Path(self._file.name).unlink(missing_ok=True)


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend laid out as ``{base_path}/{bucket}/{key}``."""

    def __init__(self, base_path: Union[str, Path] = "data/uploads"):
        self.base_path = Path(base_path)

    def _target_path(self, bucket: str, key: str) -> Path:
        return self.base_path / bucket / key

    def open_writer(self, bucket: str, key: str, content_type: str) -> Sink:
        return LocalSink(self._target_path(bucket, key))

    def object_uri(self, bucket: str, key: str) -> str:
        return self._target_path(bucket, key).resolve().as_uri()

    def get_backend_name(self) -> str:
        return "local"
