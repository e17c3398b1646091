"""Object and document store backends selected from settings."""
from __future__ import annotations

from functools import lru_cache

from ...config import settings
from .documents import (
    DocumentStore,
    FirestoreDocumentStore,
    MemoryDocumentStore,
    SQLiteDocumentStore,
)
from .objects import GCSObjectStore, LocalObjectStore, ObjectStore


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    if settings.object_store == "gcs":
        return GCSObjectStore(settings.gcs_bucket)
    if settings.object_store == "local":
        return LocalObjectStore(settings.local_storage_dir, settings.local_storage_base_url)
    raise ValueError(f"Unknown object store backend: {settings.object_store!r}")


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    if settings.document_store == "firestore":
        return FirestoreDocumentStore(settings.firestore_collection)
    if settings.document_store == "sqlite":
        return SQLiteDocumentStore(settings.sqlite_path)
    if settings.document_store == "memory":
        return MemoryDocumentStore()
    raise ValueError(f"Unknown document store backend: {settings.document_store!r}")


__all__ = [
    "DocumentStore",
    "FirestoreDocumentStore",
    "GCSObjectStore",
    "LocalObjectStore",
    "MemoryDocumentStore",
    "ObjectStore",
    "SQLiteDocumentStore",
    "get_document_store",
    "get_object_store",
]
