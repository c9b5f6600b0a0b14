"""Abstract storage backend interface."""

from abc import ABC, abstractmethod


class Sink(ABC):
    """Write destination for one object.

    Bytes become visible in the bucket only after ``close()`` commits them.
    ``abort()`` discards whatever was written and must be safe to call on a
    sink that already failed.
    """

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write a chunk and return the number of bytes accepted."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Commit the object."""
        pass

    @abstractmethod
    def abort(self) -> None:
        """Discard the object without committing."""
        pass


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod
    def open_writer(self, bucket: str, key: str, content_type: str) -> Sink:
        """Open a fresh sink for an object.

        Args:
            bucket: Bucket identifier
            key: Object key inside the bucket
            content_type: MIME type recorded on the object

        Returns:
            New Sink; every call returns a distinct instance
        """
        pass

    @abstractmethod
    def object_uri(self, bucket: str, key: str) -> str:
        """Return the URI under which an object is addressed."""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
