"""Process-wide service singletons."""
from __future__ import annotations

from functools import lru_cache

import torch

from ..config import settings
from .model_loader import ModelLoader
from .pipeline import ScanPipeline
from .records import RecordBuilder
from .storage import get_document_store, get_object_store


@lru_cache(maxsize=1)
def get_device() -> torch.device:
    return torch.device("cuda" if torch.cuda.is_available() else "cpu")


@lru_cache(maxsize=1)
def get_model_loader() -> ModelLoader:
    return ModelLoader(
        settings.model_dir,
        manifest_name=settings.model_manifest,
        producer=settings.model_producer,
        device=get_device(),
    )


@lru_cache(maxsize=1)
def get_pipeline() -> ScanPipeline:
    builder = RecordBuilder(
        get_object_store(),
        get_document_store(),
        timeout=settings.storage_timeout,
    )
    return ScanPipeline(
        get_model_loader(),
        builder,
        max_upload_bytes=settings.max_upload_bytes,
        max_concurrent_inference=settings.max_concurrent_inference,
        model_wait_timeout=settings.model_wait_timeout,
        decode_timeout=settings.decode_timeout,
        inference_timeout=settings.inference_timeout,
    )


__all__ = ["get_device", "get_model_loader", "get_pipeline"]
