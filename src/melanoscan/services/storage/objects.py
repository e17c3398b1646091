"""Binary object stores for uploaded scan images."""
from __future__ import annotations

import threading
from pathlib import Path
from typing import List, Optional, Protocol


class ObjectStore(Protocol):
    def put(self, data: bytes, key: str, content_type: Optional[str] = None) -> str:
        """Store ``data`` under ``key`` and return its public URL."""

    def url_for(self, key: str) -> str:
        ...

    def list_keys(self) -> List[str]:
        ...

    def delete(self, key: str) -> None:
        ...


class LocalObjectStore:
    """Writes objects below a directory and serves them from ``base_url``."""

    def __init__(self, root: Path | str, base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Object key {key!r} escapes the storage root")
        return path

    def put(self, data: bytes, key: str, content_type: Optional[str] = None) -> str:
        path = self._path(key)
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return self.url_for(key)

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def list_keys(self) -> List[str]:
        if not self.root.exists():
            return []
        return sorted(
            path.relative_to(self.root).as_posix() for path in self.root.rglob("*") if path.is_file()
        )

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class GCSObjectStore:
    """Google Cloud Storage bucket with public object URLs."""

    def __init__(self, bucket_name: str, client=None) -> None:
        if not bucket_name:
            raise ValueError("GCS bucket name must be configured")
        if client is None:
            from google.cloud import storage

            client = storage.Client()
        self.bucket = client.bucket(bucket_name)

    def put(self, data: bytes, key: str, content_type: Optional[str] = None) -> str:
        blob = self.bucket.blob(key)
        blob.upload_from_string(data, content_type=content_type)
        return self.url_for(key)

    def url_for(self, key: str) -> str:
        return f"https://storage.googleapis.com/{self.bucket.name}/{key}"

    def list_keys(self) -> List[str]:
        return [blob.name for blob in self.bucket.list_blobs()]

    def delete(self, key: str) -> None:
        self.bucket.blob(key).delete()
