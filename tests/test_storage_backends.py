"""Tests for storage backends."""

from unittest.mock import MagicMock, patch

import pytest

from gcsupload.core.config import Settings
from gcsupload.storage.factory import get_storage_backend
from gcsupload.storage.gcs import GCSSink, GCSStorageBackend
from gcsupload.storage.local import LocalStorageBackend


class TestLocalStorageBackend:
    """Tests for local storage backend."""

    def test_commit_writes_object(self, tmp_path):
        """Test that closing the sink makes the object visible."""
        backend = LocalStorageBackend(base_path=tmp_path)

        sink = backend.open_writer("test-bucket", "test.csv", "text/csv")
        sink.write(b"name,age\n")
        sink.write(b"John,30")

        target = tmp_path / "test-bucket" / "test.csv"
        assert not target.exists()

        sink.close()

        assert target.read_bytes() == b"name,age\nJohn,30"
        assert list((tmp_path / "test-bucket").iterdir()) == [target]

    def test_abort_leaves_nothing_behind(self, tmp_path):
        backend = LocalStorageBackend(base_path=tmp_path)

        sink = backend.open_writer("test-bucket", "test.csv", "text/csv")
        sink.write(b"partial")
        sink.abort()

        assert list((tmp_path / "test-bucket").iterdir()) == []

    def test_each_writer_is_fresh(self, tmp_path):
        """Test a second writer replaces rather than appends."""
        backend = LocalStorageBackend(base_path=tmp_path)

        first = backend.open_writer("b", "k.csv", "text/csv")
        first.write(b"first")
        first.abort()
        second = backend.open_writer("b", "k.csv", "text/csv")
        second.write(b"second")
        second.close()

        assert (tmp_path / "b" / "k.csv").read_bytes() == b"second"

    def test_object_uri(self, tmp_path):
        backend = LocalStorageBackend(base_path=tmp_path)

        uri = backend.object_uri("test-bucket", "test.csv")

        assert uri.startswith("file://")
        assert uri.endswith("/test-bucket/test.csv")

    def test_get_backend_name(self):
        assert LocalStorageBackend().get_backend_name() == "local"


class TestGCSStorageBackend:
    """Tests for GCS storage backend."""

    def test_open_writer(self):
        """Test a new blob writer is opened for the object."""
        with patch("gcsupload.storage.gcs.storage.Client") as mock_client_class:
            mock_client = MagicMock()
            mock_bucket = MagicMock()
            mock_blob = MagicMock()
            mock_client_class.return_value = mock_client
            mock_client.bucket.return_value = mock_bucket
            mock_bucket.blob.return_value = mock_blob

            backend = GCSStorageBackend(project_id="test-project")
            sink = backend.open_writer("test-bucket", "test.csv", "text/csv")

            mock_client_class.assert_called_once_with(project="test-project")
            mock_client.bucket.assert_called_once_with("test-bucket")
            mock_bucket.blob.assert_called_once_with("test.csv")
            mock_blob.open.assert_called_once_with("wb", ignore_flush=True)
            assert mock_blob.content_type == "text/csv"
            assert isinstance(sink, GCSSink)

    def test_client_is_reused(self):
        with patch("gcsupload.storage.gcs.storage.Client") as mock_client_class:
            backend = GCSStorageBackend()
            backend.open_writer("test-bucket", "a.csv", "text/csv")
            backend.open_writer("test-bucket", "b.csv", "text/csv")

            mock_client_class.assert_called_once()

    def test_sink_write_and_commit(self):
        mock_blob = MagicMock()
        writer = mock_blob.open.return_value
        writer.write.return_value = 5

        sink = GCSSink(mock_blob)
        assert sink.write(b"hello") == 5
        sink.close()

        writer.write.assert_called_once_with(b"hello")
        writer.close.assert_called_once()

    def test_sink_abort_does_not_commit(self):
        """Test that an aborted upload is never finalized."""
        mock_blob = MagicMock()
        writer = mock_blob.open.return_value

        sink = GCSSink(mock_blob)
        sink.write(b"partial")
        sink.abort()

        writer.close.assert_not_called()

    def test_open_writer_requires_bucket(self):
        backend = GCSStorageBackend(client=MagicMock())

        with pytest.raises(ValueError, match="bucket name not configured"):
            backend.open_writer("", "test.csv", "text/csv")

    def test_object_uri(self):
        backend = GCSStorageBackend(client=MagicMock())

        assert backend.object_uri("test-bucket", "test.csv") == "gs://test-bucket/test.csv"

    def test_get_backend_name(self):
        assert GCSStorageBackend(client=MagicMock()).get_backend_name() == "gcs"


class TestStorageFactory:
    """Tests for backend selection."""

    def test_local(self, tmp_path):
        backend = get_storage_backend(Settings(STORAGE_BACKEND="local", LOCAL_STORAGE_PATH=str(tmp_path)))

        assert isinstance(backend, LocalStorageBackend)
        assert backend.base_path == tmp_path

    def test_gcs(self):
        backend = get_storage_backend(Settings(STORAGE_BACKEND="gcs", GCS_BUCKET_NAME="test-bucket"))

        assert isinstance(backend, GCSStorageBackend)

    def test_gcs_without_bucket(self):
        with pytest.raises(ValueError, match="GCS_BUCKET_NAME not configured"):
            get_storage_backend(Settings(STORAGE_BACKEND="gcs", GCS_BUCKET_NAME=""))

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            get_storage_backend(Settings(STORAGE_BACKEND="s3"))
